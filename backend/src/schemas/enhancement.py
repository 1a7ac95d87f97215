"""Pydantic schemas for the answer enhancement service."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EnhancementStyle = Literal["professional", "technical", "academic"]


class EnhanceAnswerRequest(BaseModel):
    """Request body sent to the enhancement service."""

    question: str = Field(..., min_length=1)
    hints: str = ""
    user_input: str = Field(..., min_length=1, max_length=20000)
    enhancement_style: EnhancementStyle = "professional"


class EnhanceAnswerResponse(BaseModel):
    enhanced_text: str
    original_text: str
    enhancement_style: str
    confidence: float = Field(..., ge=0, le=1)
    improvements: list[str] = Field(default_factory=list)


class GetSuggestionsRequest(BaseModel):
    question: str = Field(..., min_length=1)
    hints: str = ""
    num_suggestions: int = Field(3, ge=1, le=10)


class GetSuggestionsResponse(BaseModel):
    suggestions: list[str] = Field(default_factory=list)
    question: str
    context: str = ""
    count: int = Field(..., ge=0)


class AnalyzeComplianceRequest(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class AnalyzeComplianceResponse(BaseModel):
    analysis: str
    question: str
    answer: str
    timestamp: str


class EnhancementHealth(BaseModel):
    status: str
    service: str
    test_result: str


class FieldEnhanceRequest(BaseModel):
    """Request schema for enhancing the stored answer of one field."""

    model_config = ConfigDict(extra="forbid")

    user_input: str | None = Field(
        default=None,
        max_length=20000,
        description="Text to enhance; defaults to the field's stored answer",
    )
    enhancement_style: EnhancementStyle = "professional"
    apply: bool = Field(
        default=False,
        description="Store the enhanced text as the field's answer on success",
    )

    @field_validator("user_input")
    @classmethod
    def strip_input(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class FieldSuggestionsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    num_suggestions: int = Field(3, ge=1, le=10)


class FieldEnhanceResponse(EnhanceAnswerResponse):
    field: str
    applied: bool
