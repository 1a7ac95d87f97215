"""Analysis runs and report rendering for a project's assessment."""

from __future__ import annotations

import base64
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from src.core.config import Settings, get_settings
from src.core.errors import ReportRenderError, StorageError
from src.core.metrics import observe_report_render
from src.core.structured_logging import log_json
from src.schemas.report import AnalysisRecord, ProjectDetails, ReportFormat
from src.services.analysis_service import AnalysisService
from src.services.assessment_store import AssessmentStateStore
from src.services.docx_generator import generate_assessment_document
from src.services.html_report import load_template, render_html
from src.services.narrative_service import NarrativeService
from src.services.pdf_report import render_pdf
from src.services.project_directory import ProjectDirectoryClient
from src.services.report_variables import DEFAULT_PROJECT_NAME, build_report_variables

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def report_filename(project_name: str, report_format: ReportFormat) -> str:
    stem = "_".join(project_name.split()) or "Report"
    return f"AI_Risk_Assessment_Report_{stem}.{report_format.value}"


@dataclass(frozen=True)
class RenderedReport:
    content: bytes
    report_format: ReportFormat
    filename: str
    analysis: AnalysisRecord

    @property
    def media_type(self) -> str:
        return self.report_format.media_type


class ReportService:
    """Run the narrative analysis and render reports in the requested format."""

    def __init__(
        self,
        store: AssessmentStateStore,
        analysis_service: AnalysisService,
        narrative_service: NarrativeService,
        project_directory: ProjectDirectoryClient,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.analysis_service = analysis_service
        self.narrative_service = narrative_service
        self.project_directory = project_directory
        self.settings = settings or get_settings()
        self._clock = clock

    async def _project_details(self, project_id: str) -> ProjectDetails:
        details = await self.project_directory.get_project_details(project_id)
        return details or ProjectDetails(project_id=project_id)

    async def run_analysis(self, project_id: str) -> AnalysisRecord:
        """Generate recommendations for the stored answers and record the analysis."""
        record = await self.store.load(project_id)
        details = await self._project_details(project_id)
        project_name = details.project_name or DEFAULT_PROJECT_NAME

        narrative = await self.narrative_service.generate_recommendations(
            project_name, record.answers
        )
        metrics = self.store.derive_metrics(record)
        analysis = AnalysisRecord(
            project_id=project_id,
            project_name=project_name,
            assessment_data=dict(record.answers),
            ai_recommendations=narrative.text,
            timestamp=self._clock().isoformat(),
            progress=metrics.completion_percentage,
            risk_level=metrics.risk_level.label,
        )
        await self.analysis_service.save_analysis(analysis)
        return analysis

    def _render(self, report_format: ReportFormat, variables: dict[str, str]) -> bytes:
        schema = self.store.schema
        if report_format == ReportFormat.HTML:
            template_path = self.settings.report_template_path
            template = load_template(template_path)
            # Custom templates may show a subset of the variables
            html = render_html(template, variables, strict=template_path is None)
            return html.encode("utf-8")
        if report_format == ReportFormat.DOCX:
            return generate_assessment_document(variables, schema).getvalue()
        return render_pdf(variables, schema)

    async def generate_report(
        self,
        project_id: str,
        report_format: ReportFormat = ReportFormat.PDF,
        refresh_analysis: bool = True,
    ) -> RenderedReport:
        """Render the report, running a fresh analysis first when requested.

        Raises:
            ReportRenderError: the template or the document library failed
        """
        analysis = None if refresh_analysis else await self.analysis_service.get_analysis(
            project_id
        )
        if analysis is None:
            analysis = await self.run_analysis(project_id)

        record = await self.store.load(project_id)
        details = await self._project_details(project_id)
        variables = build_report_variables(
            record,
            self.store.schema,
            project_details=details,
            ai_recommendations=analysis.ai_recommendations,
            now=self._clock(),
        )

        started = time.perf_counter()
        try:
            content = self._render(report_format, variables)
        except Exception as exc:
            # Template errors, missing files and reportlab/python-docx failures alike
            observe_report_render(report_format=report_format.value, ok=False)
            log_json(
                logger,
                logging.ERROR,
                "report_render_failed",
                project_id=project_id,
                report_format=report_format.value,
                error=str(exc),
            )
            raise ReportRenderError(f"Could not render {report_format.value} report") from exc

        observe_report_render(report_format=report_format.value, ok=True)
        log_json(
            logger,
            logging.INFO,
            "report_rendered",
            project_id=project_id,
            report_format=report_format.value,
            size_bytes=len(content),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

        if report_format == ReportFormat.PDF:
            analysis = analysis.model_copy(
                update={"pdf_data": base64.b64encode(content).decode("ascii")}
            )
            try:
                await self.analysis_service.save_analysis(analysis)
            except StorageError as exc:
                log_json(
                    logger,
                    logging.WARNING,
                    "analysis_pdf_store_failed",
                    project_id=project_id,
                    error=str(exc),
                )

        return RenderedReport(
            content=content,
            report_format=report_format,
            filename=report_filename(analysis.project_name, report_format),
            analysis=analysis,
        )
