"""Pydantic schemas for project details, analyses and reports."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProjectDetails(BaseModel):
    """Read-only project metadata from the project directory."""

    model_config = ConfigDict(extra="ignore")

    project_id: str
    project_name: str | None = None
    description: str | None = None
    project_type: str | None = None
    project_status: str | None = None
    version: str | None = None


class ReportFormat(str, Enum):
    PDF = "pdf"
    HTML = "html"
    DOCX = "docx"

    @property
    def media_type(self) -> str:
        return {
            ReportFormat.PDF: "application/pdf",
            ReportFormat.HTML: "text/html; charset=utf-8",
            ReportFormat.DOCX: (
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
            ),
        }[self]


class AnalysisRecord(BaseModel):
    """Stored result of an analysis run (``riskAssessment_<projectId>``)."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="projectId")
    project_name: str = Field(alias="projectName")
    assessment_data: dict[str, str] = Field(alias="assessmentData")
    ai_recommendations: str = Field(alias="aiRecommendations")
    pdf_data: str | None = Field(default=None, alias="pdfData")
    timestamp: str
    progress: int = Field(..., ge=0, le=100)
    risk_level: str = Field(alias="riskLevel")

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisSummary(BaseModel):
    """Entry of the ``riskAssessmentAnalyses`` list."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="projectId")
    project_name: str = Field(alias="projectName")
    timestamp: str
    progress: int = Field(..., ge=0, le=100)
    risk_level: str = Field(alias="riskLevel")
    pdf_available: bool | None = Field(default=None, alias="pdfAvailable")

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisResponse(BaseModel):
    """Analysis record without the embedded PDF payload."""

    project_id: str
    project_name: str
    ai_recommendations: str
    timestamp: str
    progress: int
    risk_level: str
    pdf_available: bool
    generated: bool


class ReportRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: ReportFormat = ReportFormat.PDF
    refresh_analysis: bool = Field(
        default=True,
        description="Regenerate narrative recommendations before rendering",
    )
