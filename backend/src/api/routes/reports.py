"""API routes for analyses and report downloads."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.deps import get_analysis_service, get_report_service
from src.core.errors import ReportRenderError, StorageError
from src.schemas.errors import ErrorResponse
from src.schemas.report import (
    AnalysisRecord,
    AnalysisResponse,
    AnalysisSummary,
    ReportRequest,
)
from src.services.analysis_service import AnalysisService
from src.services.report_service import ReportService

router = APIRouter()


def _analysis_response(analysis: AnalysisRecord, generated: bool) -> AnalysisResponse:
    return AnalysisResponse(
        project_id=analysis.project_id,
        project_name=analysis.project_name,
        ai_recommendations=analysis.ai_recommendations,
        timestamp=analysis.timestamp,
        progress=analysis.progress,
        risk_level=analysis.risk_level,
        pdf_available=bool(analysis.pdf_data),
        generated=generated,
    )


def _storage_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Analysis could not be stored",
    )


@router.get(
    "/analyses",
    response_model=list[AnalysisSummary],
    summary="List analyses",
)
async def list_analyses(
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> list[AnalysisSummary]:
    """One entry per project, as of its latest analysis run."""
    return await analysis_service.list_analyses()


@router.get(
    "/projects/{project_id}/analysis",
    response_model=AnalysisResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get latest analysis",
)
async def get_analysis(
    project_id: str,
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    analysis = await analysis_service.get_analysis(project_id)
    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No analysis has been run for this project",
        )
    generated = await analysis_service.is_generated(project_id)
    return _analysis_response(analysis, generated)


@router.post(
    "/projects/{project_id}/analysis",
    response_model=AnalysisResponse,
    status_code=status.HTTP_201_CREATED,
    responses={503: {"model": ErrorResponse}},
    summary="Run analysis",
)
async def run_analysis(
    project_id: str,
    report_service: ReportService = Depends(get_report_service),
) -> AnalysisResponse:
    """Generate narrative recommendations for the stored answers.

    Falls back to a fixed text when the language model is unavailable.
    """
    try:
        analysis = await report_service.run_analysis(project_id)
    except StorageError as exc:
        raise _storage_unavailable() from exc
    return _analysis_response(analysis, generated=True)


@router.post(
    "/projects/{project_id}/reports",
    responses={
        200: {
            "content": {
                "application/pdf": {},
                "text/html": {},
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document": {},
            },
            "description": "Rendered report file",
        },
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Generate report",
)
async def generate_report(
    project_id: str,
    body: ReportRequest | None = None,
    report_service: ReportService = Depends(get_report_service),
) -> Response:
    """Render the assessment report as PDF, HTML or DOCX."""
    body = body or ReportRequest()
    try:
        report = await report_service.generate_report(
            project_id,
            report_format=body.format,
            refresh_analysis=body.refresh_analysis,
        )
    except ReportRenderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        raise _storage_unavailable() from exc

    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
