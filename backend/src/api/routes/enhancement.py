"""API routes proxying the answer enhancement service."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from src.api.deps import get_enhancement_client, get_store
from src.core.questionnaire import FieldSpec
from src.schemas.enhancement import (
    AnalyzeComplianceRequest,
    AnalyzeComplianceResponse,
    EnhanceAnswerRequest,
    EnhancementHealth,
    FieldEnhanceRequest,
    FieldEnhanceResponse,
    FieldSuggestionsRequest,
    GetSuggestionsRequest,
    GetSuggestionsResponse,
)
from src.schemas.errors import ErrorResponse
from src.services.assessment_store import AssessmentStateStore
from src.services.enhancement_client import EnhancementClient

router = APIRouter()

UPSTREAM_ERRORS = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _field_spec(store: AssessmentStateStore, field_name: str) -> FieldSpec:
    if not store.schema.has_field(field_name):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown assessment field: {field_name}",
        )
    return store.schema.get_field(field_name)


@router.post(
    "/projects/{project_id}/enhancement/fields/{field_name}/enhance",
    response_model=FieldEnhanceResponse,
    responses=UPSTREAM_ERRORS,
    summary="Enhance an answer",
)
async def enhance_field(
    project_id: str,
    field_name: str,
    body: FieldEnhanceRequest,
    background_tasks: BackgroundTasks,
    store: AssessmentStateStore = Depends(get_store),
    client: EnhancementClient = Depends(get_enhancement_client),
) -> FieldEnhanceResponse:
    """Rewrite an answer with the enhancement service.

    With ``apply=true`` the enhanced text replaces the stored answer. Upstream
    failures return 502/504 and leave the answer untouched.
    """
    spec = _field_spec(store, field_name)
    record = await store.load(project_id)

    user_input = body.user_input or record.answers.get(field_name, "").strip()
    if not user_input:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to enhance: the answer is empty",
        )

    result = await client.enhance_answer(
        EnhanceAnswerRequest(
            question=spec.question,
            hints=spec.hints,
            user_input=user_input,
            enhancement_style=body.enhancement_style,
        )
    )

    applied = False
    if body.apply and result.enhanced_text:
        # Other answers may have changed during the upstream call
        record = store.set_field(await store.load(project_id), field_name, result.enhanced_text)
        store.remember(record)
        store.mark_saving(project_id)
        background_tasks.add_task(store.save, record)
        applied = True

    return FieldEnhanceResponse(**result.model_dump(), field=field_name, applied=applied)


@router.post(
    "/projects/{project_id}/enhancement/fields/{field_name}/suggestions",
    response_model=GetSuggestionsResponse,
    responses=UPSTREAM_ERRORS,
    summary="Get answer suggestions",
)
async def field_suggestions(
    project_id: str,
    field_name: str,
    body: FieldSuggestionsRequest,
    store: AssessmentStateStore = Depends(get_store),
    client: EnhancementClient = Depends(get_enhancement_client),
) -> GetSuggestionsResponse:
    spec = _field_spec(store, field_name)
    return await client.get_suggestions(
        GetSuggestionsRequest(
            question=spec.question,
            hints=spec.hints,
            num_suggestions=body.num_suggestions,
        )
    )


@router.post(
    "/projects/{project_id}/enhancement/fields/{field_name}/analyze-compliance",
    response_model=AnalyzeComplianceResponse,
    responses=UPSTREAM_ERRORS,
    summary="Analyze an answer for compliance",
)
async def analyze_field_compliance(
    project_id: str,
    field_name: str,
    store: AssessmentStateStore = Depends(get_store),
    client: EnhancementClient = Depends(get_enhancement_client),
) -> AnalyzeComplianceResponse:
    spec = _field_spec(store, field_name)
    record = await store.load(project_id)
    answer = record.answers.get(field_name, "").strip()
    if not answer:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to analyze: the answer is empty",
        )
    return await client.analyze_compliance(
        AnalyzeComplianceRequest(question=spec.question, answer=answer)
    )


@router.get(
    "/enhancement/health",
    response_model=EnhancementHealth,
    responses={502: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    summary="Enhancement service health",
)
async def enhancement_health(
    client: EnhancementClient = Depends(get_enhancement_client),
) -> EnhancementHealth:
    return await client.health_check()
