"""API routes for a project's risk-assessment questionnaire state."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from src.api.deps import get_project_directory, get_store
from src.core.errors import UnknownFieldError
from src.schemas.assessment import (
    AnswersUpdate,
    AssessmentRecord,
    AssessmentResponse,
    FieldUpdate,
    ProgressSummary,
    ReloadRequest,
    ReloadResponse,
)
from src.schemas.errors import ErrorResponse
from src.services.assessment_store import AssessmentStateStore
from src.services.project_directory import ProjectDirectoryClient

router = APIRouter()


def _to_response(record: AssessmentRecord, store: AssessmentStateStore) -> AssessmentResponse:
    return AssessmentResponse(
        project_id=record.project_id,
        answers=dict(record.answers),
        last_updated=record.last_updated,
        auto_sections_completed=sorted(record.auto_sections_completed),
        metrics=store.derive_metrics(record),
        is_saving=store.is_saving(record.project_id),
        last_saved_at=store.last_saved_at(record.project_id),
    )


def _schedule_save(
    record: AssessmentRecord,
    store: AssessmentStateStore,
    background_tasks: BackgroundTasks,
) -> None:
    """Persist after the response; later requests see the record right away."""
    store.remember(record)
    store.mark_saving(record.project_id)
    background_tasks.add_task(store.save, record)


def _unknown_field(exc: UnknownFieldError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=str(exc),
    )


@router.get(
    "/{project_id}/assessment",
    response_model=AssessmentResponse,
    summary="Load assessment",
)
async def get_assessment(
    project_id: str,
    store: AssessmentStateStore = Depends(get_store),
) -> AssessmentResponse:
    """Load the stored record, or an empty one when nothing has been saved yet."""
    record = await store.load(project_id)
    return _to_response(record, store)


@router.put(
    "/{project_id}/assessment/fields/{field_name}",
    response_model=AssessmentResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Update one answer",
)
async def update_field(
    project_id: str,
    field_name: str,
    body: FieldUpdate,
    background_tasks: BackgroundTasks,
    store: AssessmentStateStore = Depends(get_store),
) -> AssessmentResponse:
    record = await store.load(project_id)
    try:
        record = store.set_field(record, field_name, body.value)
    except UnknownFieldError as exc:
        raise _unknown_field(exc) from exc

    _schedule_save(record, store, background_tasks)
    return _to_response(record, store)


@router.put(
    "/{project_id}/assessment/answers",
    response_model=AssessmentResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Update several answers",
)
async def update_answers(
    project_id: str,
    body: AnswersUpdate,
    background_tasks: BackgroundTasks,
    store: AssessmentStateStore = Depends(get_store),
) -> AssessmentResponse:
    """Apply a batch of answers; nothing is written if any field id is unknown."""
    record = await store.load(project_id)
    try:
        record = store.set_fields(record, body.answers)
    except UnknownFieldError as exc:
        raise _unknown_field(exc) from exc

    _schedule_save(record, store, background_tasks)
    return _to_response(record, store)


@router.post(
    "/{project_id}/assessment/reset",
    response_model=AssessmentResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Reset assessment",
)
async def reset_assessment(
    project_id: str,
    confirm: bool = Query(False, description="Must be true; a reset cannot be undone"),
    store: AssessmentStateStore = Depends(get_store),
) -> AssessmentResponse:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset requires confirm=true; all answers will be deleted",
        )
    record = await store.reset_record(project_id)
    return _to_response(record, store)


@router.post(
    "/{project_id}/assessment/reload",
    response_model=ReloadResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Reconcile a client copy with storage",
)
async def reload_assessment(
    project_id: str,
    body: ReloadRequest,
    background_tasks: BackgroundTasks,
    store: AssessmentStateStore = Depends(get_store),
) -> ReloadResponse:
    """Last write wins: the newer of the client's record and the stored one is kept.

    A newer client record is written back so storage catches up.
    """
    try:
        current = store.record_from_client(
            project_id,
            body.answers,
            body.last_updated,
            body.auto_sections_completed,
        )
    except UnknownFieldError as exc:
        raise _unknown_field(exc) from exc

    record, source = await store.reload(current)
    if source == "client":
        _schedule_save(record, store, background_tasks)

    return ReloadResponse(**_to_response(record, store).model_dump(), source=source)


@router.post(
    "/{project_id}/assessment/auto-sections/refresh",
    response_model=AssessmentResponse,
    summary="Refresh auto-completed sections",
)
async def refresh_auto_sections(
    project_id: str,
    background_tasks: BackgroundTasks,
    store: AssessmentStateStore = Depends(get_store),
    directory: ProjectDirectoryClient = Depends(get_project_directory),
) -> AssessmentResponse:
    """Mark model-derived sections complete when the project has model records."""
    record = await store.load(project_id)
    signal = await directory.auto_section_signal(project_id)
    updated = store.mark_auto_sections_from_signal(record, signal)
    if updated.auto_sections_completed != record.auto_sections_completed:
        _schedule_save(updated, store, background_tasks)
    return _to_response(updated, store)


@router.get(
    "/{project_id}/assessment/progress",
    response_model=ProgressSummary,
    summary="Get progress summary",
)
async def get_progress(
    project_id: str,
    store: AssessmentStateStore = Depends(get_store),
) -> ProgressSummary:
    record = await store.load(project_id)
    return store.progress_summary(record)
