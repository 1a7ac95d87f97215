"""Domain exceptions raised below the API layer."""


class UnknownFieldError(KeyError):
    """A field id that is not part of the questionnaire schema.

    Raised by the assessment store; indicates a client/schema mismatch rather
    than a data availability problem.
    """

    def __init__(self, field_name: str):
        super().__init__(field_name)
        self.field_name = field_name

    def __str__(self) -> str:
        return f"Unknown assessment field: {self.field_name}"


class StorageError(Exception):
    """A key/value storage backend failed to read or write."""


class TemplatePlaceholderError(ValueError):
    """Report variables do not match the template's placeholder set."""

    def __init__(self, missing: set[str], unknown: set[str]):
        self.missing = missing
        self.unknown = unknown
        parts = []
        if missing:
            parts.append(f"missing values for {sorted(missing)}")
        if unknown:
            parts.append(f"no placeholder for {sorted(unknown)}")
        super().__init__("Template placeholder mismatch: " + "; ".join(parts))


class ReportRenderError(Exception):
    """A report document could not be produced."""
