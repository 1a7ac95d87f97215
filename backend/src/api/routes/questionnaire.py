"""API route for the questionnaire definition."""

from fastapi import APIRouter, Depends

from src.api.deps import get_store
from src.schemas.questionnaire import (
    AutoSectionDefinition,
    FieldOption,
    QuestionnaireField,
    QuestionnaireResponse,
    QuestionnaireSection,
)
from src.services.assessment_store import AssessmentStateStore

router = APIRouter()


@router.get(
    "/questionnaire",
    response_model=QuestionnaireResponse,
    summary="Get questionnaire definition",
)
async def get_questionnaire_definition(
    store: AssessmentStateStore = Depends(get_store),
) -> QuestionnaireResponse:
    """Sections, questions, hints and answer options used to render the form."""
    schema = store.schema
    return QuestionnaireResponse(
        version=schema.version,
        sections=[
            QuestionnaireSection(
                number=section.number,
                title=section.title,
                minutes_per_question=section.minutes_per_question,
                fields=[
                    QuestionnaireField(
                        id=spec.id,
                        question=spec.question,
                        hints=spec.hints,
                        kind=spec.kind,
                        options=[FieldOption(**option) for option in spec.options],
                        required=spec.required,
                        placeholder=spec.placeholder,
                    )
                    for spec in section.fields
                ],
            )
            for section in schema.user_sections
        ],
        auto_sections=[
            AutoSectionDefinition(number=s.number, title=s.title, items=list(s.items))
            for s in schema.auto_sections
        ],
        total_section_count=schema.total_section_count,
    )
