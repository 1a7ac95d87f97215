"""Unit tests for analysis runs and report generation."""

import base64
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.core.errors import ReportRenderError, StorageError
from src.schemas.report import ReportFormat
from src.services.analysis_service import AnalysisService
from src.services.narrative_service import NarrativeResult
from src.services.project_directory import ProjectDirectoryClient
from src.services.report_service import ReportService, report_filename


@pytest.fixture
def narrative():
    service = AsyncMock()
    service.generate_recommendations.return_value = NarrativeResult(
        text="1. Appoint a model owner.", used_fallback=False, model="test-model"
    )
    return service


@pytest.fixture
def analysis_service(storage):
    return AnalysisService(storage)


@pytest.fixture
def report_service(store, analysis_service, narrative, settings, clock, directory_transport):
    return ReportService(
        store,
        analysis_service,
        narrative,
        ProjectDirectoryClient(settings=settings, transport=directory_transport),
        settings=settings,
        clock=clock,
    )


async def _answer(store, project_id="p1", **answers):
    record = store.set_fields(await store.load(project_id), answers)
    await store.save(record)
    return record


def test_report_filename():
    assert (
        report_filename("Credit Scoring Model", ReportFormat.PDF)
        == "AI_Risk_Assessment_Report_Credit_Scoring_Model.pdf"
    )
    assert report_filename("   ", ReportFormat.HTML) == "AI_Risk_Assessment_Report_Report.html"


class TestRunAnalysis:
    @pytest.mark.asyncio
    async def test_records_progress_and_risk(self, report_service, store, analysis_service, narrative, clock):
        await _answer(store, aiSystemPurpose="Credit scoring", personalInfoUsed="yes")

        analysis = await report_service.run_analysis("p1")

        assert analysis.project_name == "Credit Scoring Model"
        assert analysis.progress == 4
        assert analysis.risk_level == "Pending"
        assert analysis.timestamp == clock.now.isoformat()
        assert analysis.assessment_data["aiSystemPurpose"] == "Credit scoring"
        narrative.generate_recommendations.assert_awaited_once()
        assert (await analysis_service.get_analysis("p1")).ai_recommendations == (
            "1. Appoint a model owner."
        )

    @pytest.mark.asyncio
    async def test_unknown_project_uses_default_name(self, store, analysis_service, narrative, settings, clock):
        def handler(request):
            return httpx.Response(404, json={"detail": "Not found"})

        service = ReportService(
            store,
            analysis_service,
            narrative,
            ProjectDirectoryClient(settings=settings, transport=httpx.MockTransport(handler)),
            settings=settings,
            clock=clock,
        )

        analysis = await service.run_analysis("p1")

        assert analysis.project_name == "AI System"


class TestGenerateReport:
    @pytest.mark.asyncio
    async def test_pdf_is_stored_with_analysis(self, report_service, analysis_service):
        report = await report_service.generate_report("p1", ReportFormat.PDF)

        assert report.content.startswith(b"%PDF")
        assert report.media_type == "application/pdf"
        stored = await analysis_service.get_analysis("p1")
        assert base64.b64decode(stored.pdf_data) == report.content
        assert (await analysis_service.list_analyses())[0].pdf_available is True

    @pytest.mark.asyncio
    async def test_html_report(self, report_service, store):
        await _answer(store, aiSystemDescription="Ranks applications for manual review")

        report = await report_service.generate_report("p1", ReportFormat.HTML)

        html = report.content.decode("utf-8")
        assert "Credit Scoring Model" in html
        assert "Ranks applications for manual review" in html
        assert "1. Appoint a model owner." in html
        assert report.filename.endswith(".html")

    @pytest.mark.asyncio
    async def test_existing_analysis_is_reused(self, report_service, narrative):
        await report_service.run_analysis("p1")

        await report_service.generate_report("p1", ReportFormat.DOCX, refresh_analysis=False)

        assert narrative.generate_recommendations.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_analysis_is_generated(self, report_service, narrative):
        await report_service.generate_report("p1", ReportFormat.DOCX, refresh_analysis=False)

        assert narrative.generate_recommendations.await_count == 1

    @pytest.mark.asyncio
    async def test_render_failure_raises(self, report_service):
        with patch(
            "src.services.report_service.render_pdf", side_effect=RuntimeError("font missing")
        ):
            with pytest.raises(ReportRenderError, match="Could not render pdf report"):
                await report_service.generate_report("p1", ReportFormat.PDF)

    @pytest.mark.asyncio
    async def test_pdf_store_failure_still_returns_report(self, report_service, analysis_service):
        original = analysis_service.save_analysis
        calls = []

        async def save_analysis(record):
            calls.append(record)
            if record.pdf_data:
                raise StorageError("disk full")
            await original(record)

        analysis_service.save_analysis = save_analysis

        report = await report_service.generate_report("p1", ReportFormat.PDF)

        assert report.content.startswith(b"%PDF")
        assert len(calls) == 2
        assert (await analysis_service.get_analysis("p1")).pdf_data is None
