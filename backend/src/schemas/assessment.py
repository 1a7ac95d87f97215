"""Pydantic schemas for assessment records and their derived metrics."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class RiskLevel(str, Enum):
    """Risk level derived from questionnaire completion."""

    PENDING = "Pending"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def label(self) -> str:
        if self is RiskLevel.PENDING:
            return self.value
        return f"{self.value} Risk"


class AssessmentRecord(BaseModel):
    """Persisted questionnaire state for one project.

    Serialized by alias, which is the storage layout:
    ``{assessmentData, lastUpdated, autoSectionsCompleted, projectId}``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    project_id: str = Field(alias="projectId", min_length=1)
    answers: dict[str, str] = Field(alias="assessmentData")
    last_updated: datetime = Field(alias="lastUpdated")
    auto_sections_completed: frozenset[int] = Field(
        default_factory=frozenset, alias="autoSectionsCompleted"
    )

    @field_validator("auto_sections_completed", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return frozenset() if v is None else v

    @field_validator("last_updated")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=UTC)

    @field_serializer("auto_sections_completed")
    def _serialize_auto_sections(self, v: frozenset[int]) -> list[int]:
        return sorted(v)

    @field_serializer("last_updated")
    def _serialize_last_updated(self, v: datetime) -> str:
        return v.isoformat()

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class PendingItem(BaseModel):
    """A user section with unanswered required questions."""

    section_number: int
    section_title: str
    missing_field_count: int = Field(..., ge=1)

    @property
    def label(self) -> str:
        return f"{self.section_title} ({self.missing_field_count} questions remaining)"


class SectionProgress(BaseModel):
    """Answered/total required questions for one user section."""

    number: int
    title: str
    completed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    is_complete: bool


class AutoSectionStatus(BaseModel):
    number: int
    title: str
    is_complete: bool


class DerivedMetrics(BaseModel):
    """Summary metrics recomputed from a record; never persisted."""

    completion_percentage: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    completed_section_count: int = Field(..., ge=0)
    total_section_count: int = Field(..., ge=0)
    pending_items: list[PendingItem] = Field(default_factory=list)


class ProgressSummary(DerivedMetrics):
    """Derived metrics plus the display extras the questionnaire page shows."""

    risk_label: str
    pending_labels: list[str] = Field(default_factory=list)
    sections: list[SectionProgress] = Field(default_factory=list)
    auto_sections: list[AutoSectionStatus] = Field(default_factory=list)
    estimated_completion_time: str
    last_updated_ago: str


class AssessmentResponse(BaseModel):
    """Record plus its derived metrics and the save indicator state."""

    project_id: str
    answers: dict[str, str]
    last_updated: datetime
    auto_sections_completed: list[int]
    metrics: DerivedMetrics
    is_saving: bool = False
    last_saved_at: datetime | None = None


class FieldUpdate(BaseModel):
    """Request schema for setting one answer."""

    model_config = ConfigDict(extra="forbid")

    value: str = Field(..., max_length=20000)


class AnswersUpdate(BaseModel):
    """Request schema for setting several answers at once."""

    model_config = ConfigDict(extra="forbid")

    answers: dict[str, str] = Field(..., min_length=1, max_length=200)


class ReloadRequest(BaseModel):
    """Client's in-memory record, reconciled against storage on focus regain."""

    model_config = ConfigDict(extra="forbid")

    answers: dict[str, str]
    last_updated: datetime
    auto_sections_completed: list[int] = Field(default_factory=list)


class ReloadResponse(AssessmentResponse):
    source: str = Field(..., description="'storage' or 'client'")
