"""Progress and risk-level derivation for assessment records.

All functions are pure: they read a record and a questionnaire schema and
never touch storage. Only required fields are counted.
"""

from __future__ import annotations

from datetime import UTC, datetime

from src.core.questionnaire import QuestionnaireSchema
from src.schemas.assessment import (
    AssessmentRecord,
    AutoSectionStatus,
    DerivedMetrics,
    PendingItem,
    ProgressSummary,
    RiskLevel,
    SectionProgress,
)

# Lower bounds (inclusive) of each risk level, checked in order
RISK_LEVEL_THRESHOLDS = (
    (80, RiskLevel.LOW),
    (60, RiskLevel.MEDIUM),
    (25, RiskLevel.HIGH),
)


def is_filled(value: str | None) -> bool:
    """A field counts as answered when it holds a non-empty string."""
    return bool(value)


def _round_half_up(numerator: int, denominator: int) -> int:
    # Integer arithmetic so 12.5 rounds to 13, not to the even neighbour
    return (2 * numerator + denominator) // (2 * denominator)


def compute_completion_percentage(
    record: AssessmentRecord, schema: QuestionnaireSchema
) -> int:
    """Percentage of required fields plus auto sections that are complete.

    Returns:
        round(100 * (uc + ac) / (U + A)), or 0 when there is nothing to complete
    """
    required = schema.required_field_ids
    total_user = len(required)
    done_user = sum(1 for fid in required if is_filled(record.answers.get(fid)))

    total_auto = schema.auto_section_count
    done_auto = min(len(record.auto_sections_completed), total_auto)

    total = total_user + total_auto
    if total == 0:
        return 0
    return _round_half_up(100 * (done_user + done_auto), total)


def risk_level_for_percentage(percentage: int) -> RiskLevel:
    """Map a completion percentage to a risk level.

    This is a completion proxy: answer content is not inspected.
    """
    for lower_bound, level in RISK_LEVEL_THRESHOLDS:
        if percentage >= lower_bound:
            return level
    return RiskLevel.PENDING


def compute_risk_level(record: AssessmentRecord, schema: QuestionnaireSchema) -> RiskLevel:
    return risk_level_for_percentage(compute_completion_percentage(record, schema))


def section_progress(
    record: AssessmentRecord, schema: QuestionnaireSchema
) -> list[SectionProgress]:
    """Per user section answered/total counts, in declaration order."""
    items = []
    for section in schema.user_sections:
        required = section.required_fields
        completed = sum(1 for f in required if is_filled(record.answers.get(f.id)))
        items.append(
            SectionProgress(
                number=section.number,
                title=section.title,
                completed=completed,
                total=len(required),
                is_complete=completed == len(required),
            )
        )
    return items


def compute_completed_section_count(
    record: AssessmentRecord, schema: QuestionnaireSchema
) -> int:
    """Fully answered user sections plus completed auto sections."""
    complete_user = sum(1 for s in section_progress(record, schema) if s.is_complete)
    return complete_user + len(record.auto_sections_completed)


def list_pending_items(
    record: AssessmentRecord, schema: QuestionnaireSchema
) -> list[PendingItem]:
    """User sections with unanswered required fields, in declaration order.

    Auto sections never appear here.
    """
    return [
        PendingItem(
            section_number=s.number,
            section_title=s.title,
            missing_field_count=s.total - s.completed,
        )
        for s in section_progress(record, schema)
        if s.completed < s.total
    ]


def estimated_completion_time(record: AssessmentRecord, schema: QuestionnaireSchema) -> str:
    """Rough time left to answer the remaining required questions.

    Returns:
        "Completed", "<m> min", "<h>h" or "<h>h <m>m"
    """
    minutes = 0
    for section in schema.user_sections:
        remaining = sum(
            1 for f in section.required_fields if not is_filled(record.answers.get(f.id))
        )
        minutes += remaining * section.minutes_per_question

    if minutes <= 0:
        return "Completed"
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def time_ago(moment: datetime, now: datetime | None = None) -> str:
    """Compact relative time used next to "last updated"."""
    now = now or datetime.now(UTC)
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def derive_metrics(record: AssessmentRecord, schema: QuestionnaireSchema) -> DerivedMetrics:
    percentage = compute_completion_percentage(record, schema)
    return DerivedMetrics(
        completion_percentage=percentage,
        risk_level=risk_level_for_percentage(percentage),
        completed_section_count=compute_completed_section_count(record, schema),
        total_section_count=schema.total_section_count,
        pending_items=list_pending_items(record, schema),
    )


def progress_summary(
    record: AssessmentRecord,
    schema: QuestionnaireSchema,
    now: datetime | None = None,
) -> ProgressSummary:
    """Derived metrics plus per-section detail for the questionnaire page."""
    metrics = derive_metrics(record, schema)
    return ProgressSummary(
        **metrics.model_dump(),
        risk_label=metrics.risk_level.label,
        pending_labels=[item.label for item in metrics.pending_items],
        sections=section_progress(record, schema),
        auto_sections=[
            AutoSectionStatus(
                number=s.number,
                title=s.title,
                is_complete=s.number in record.auto_sections_completed,
            )
            for s in schema.auto_sections
        ],
        estimated_completion_time=estimated_completion_time(record, schema),
        last_updated_ago=time_ago(record.last_updated, now),
    )
