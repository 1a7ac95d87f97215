"""Error response schemas."""
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Matches FastAPI's ``HTTPException`` body, used for all 4xx/5xx responses.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"detail": "Unknown assessment field: notAField"},
                {"detail": "Enhancement service timed out"},
                {"detail": "Could not render pdf report"},
            ]
        }
    )

    detail: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Unknown assessment field: notAField"],
    )
