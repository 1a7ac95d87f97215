"""HTML report rendering with Jinja2."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, StrictUndefined, meta

from src.core.errors import TemplatePlaceholderError

DEFAULT_TEMPLATE_PATH = (
    Path(__file__).resolve().parent.parent / "templates" / "ai_risk_assessment_report.html"
)

# Values are escaped unless they are markupsafe.Markup
environment = Environment(autoescape=True, undefined=StrictUndefined, keep_trailing_newline=True)


@lru_cache
def load_template(path: str | None = None) -> str:
    template_path = Path(path) if path else DEFAULT_TEMPLATE_PATH
    return template_path.read_text(encoding="utf-8")


def template_placeholders(template: str) -> set[str]:
    """Variables the template reads.

    Raises:
        jinja2.TemplateSyntaxError: the template does not parse
    """
    return meta.find_undeclared_variables(environment.parse(template))


def check_placeholders(template: str, variables: dict[str, str], *, strict: bool = True) -> None:
    """Raise when the variables and the template placeholders disagree.

    Missing values always fail. Variables with no matching placeholder only
    fail in strict mode, so custom templates may show a subset.
    """
    placeholders = template_placeholders(template)
    missing = placeholders - variables.keys()
    unknown = set(variables) - placeholders if strict else set()
    if missing or unknown:
        raise TemplatePlaceholderError(missing=missing, unknown=unknown)


def render_html(template: str, variables: dict[str, str], *, strict: bool = True) -> str:
    check_placeholders(template, variables, strict=strict)
    return environment.from_string(template).render(variables)
