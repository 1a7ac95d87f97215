"""Narrative recommendations generated from questionnaire answers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import HTTPException

from src.core.prompts import (
    ANSWER_TEMPLATE,
    FALLBACK_RECOMMENDATIONS,
    NO_ANSWERS_RECOMMENDATIONS,
    SYSTEM_PROMPT,
)
from src.core.questionnaire import QuestionnaireSchema, get_questionnaire
from src.core.structured_logging import log_json
from src.services.llm_service import LlmService

logger = logging.getLogger(__name__)

MAX_ANSWER_CHARS = 2000


@dataclass(frozen=True)
class NarrativeResult:
    text: str
    used_fallback: bool
    model: str | None = None


def build_recommendations_prompt(
    project_name: str,
    answers: dict[str, str],
    schema: QuestionnaireSchema,
) -> str:
    """User prompt listing every non-empty answer with its section and question.

    Answers follow questionnaire order; ids outside the schema are skipped.
    """
    blocks = []
    for section in schema.user_sections:
        for spec in section.fields:
            answer = answers.get(spec.id, "")
            if not answer:
                continue
            blocks.append(
                ANSWER_TEMPLATE.format(
                    section=section.title,
                    question=spec.question,
                    answer=answer[:MAX_ANSWER_CHARS],
                )
            )

    return (
        f"Project: {project_name}\n\n"
        "USER RESPONSES TO ANALYZE:\n"
        + "\n".join(blocks)
        + "\nMAKE EVERY RECOMMENDATION UNIQUE - NO REPETITION ALLOWED!"
    )


class NarrativeService:
    """Produce free-text recommendations; never fails the caller."""

    def __init__(
        self,
        llm_service: LlmService | None = None,
        schema: QuestionnaireSchema | None = None,
    ):
        self.llm_service = llm_service or LlmService()
        self.schema = schema or get_questionnaire()

    async def generate_recommendations(
        self, project_name: str, answers: dict[str, str]
    ) -> NarrativeResult:
        if not any(answers.get(fid) for fid in self.schema.field_ids):
            return NarrativeResult(text=NO_ANSWERS_RECOMMENDATIONS, used_fallback=True)

        if not self.llm_service.llm_available():
            log_json(logger, logging.INFO, "narrative_llm_unavailable")
            return NarrativeResult(text=FALLBACK_RECOMMENDATIONS, used_fallback=True)

        prompt = build_recommendations_prompt(project_name, answers, self.schema)
        try:
            completion = await self.llm_service.generate(
                system_prompt=SYSTEM_PROMPT,
                user_prompt=prompt,
            )
        except HTTPException as exc:
            log_json(
                logger,
                logging.WARNING,
                "narrative_generation_failed",
                status_code=exc.status_code,
                detail=exc.detail,
            )
            return NarrativeResult(text=FALLBACK_RECOMMENDATIONS, used_fallback=True)

        if not completion.text:
            return NarrativeResult(
                text=FALLBACK_RECOMMENDATIONS, used_fallback=True, model=completion.model
            )

        log_json(
            logger,
            logging.INFO,
            "narrative_generated",
            model=completion.model,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
            duration_ms=completion.duration_ms,
        )
        return NarrativeResult(text=completion.text, used_fallback=False, model=completion.model)
