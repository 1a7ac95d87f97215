"""Unit tests for progress and risk-level derivation."""

from datetime import timedelta

import pytest

from src.core.questionnaire import QuestionnaireSchema, get_questionnaire
from src.schemas.assessment import AssessmentRecord, RiskLevel
from src.services import progress_service


def _record(schema: QuestionnaireSchema, filled: dict[str, str] | None = None, auto=()):
    answers = schema.empty_answers()
    answers.update(filled or {})
    return AssessmentRecord(
        project_id="p1",
        answers=answers,
        last_updated="2026-01-15T12:00:00+00:00",
        auto_sections_completed=frozenset(auto),
    )


class TestCompletionPercentage:
    def test_empty_record_is_zero(self, scenario_schema):
        record = _record(scenario_schema)

        assert progress_service.compute_completion_percentage(record, scenario_schema) == 0

    def test_everything_complete_is_hundred(self, scenario_schema):
        record = _record(
            scenario_schema,
            {fid: "x" for fid in scenario_schema.field_ids},
            auto=(3, 5, 6, 8, 9, 10),
        )

        assert progress_service.compute_completion_percentage(record, scenario_schema) == 100

    def test_rounds_half_up(self):
        """Test 1 of 8 (12.5%) rounds to 13."""
        schema = QuestionnaireSchema.from_table(
            [{"number": 1, "title": "S", "fields": [{"id": f"f{i}"} for i in range(8)]}]
        )
        record = _record(schema, {"f0": "x"})

        assert progress_service.compute_completion_percentage(record, schema) == 13

    def test_schema_without_anything_to_complete(self):
        schema = QuestionnaireSchema.from_table([])

        assert progress_service.compute_completion_percentage(_record(schema), schema) == 0

    def test_optional_fields_are_not_counted(self):
        schema = get_questionnaire()
        optional = [fid for fid in schema.field_ids if fid not in schema.required_field_ids]
        record = _record(schema, {fid: "details" for fid in optional})

        assert len(optional) == 4
        assert progress_service.compute_completion_percentage(record, schema) == 0

    def test_whitespace_counts_as_filled(self, scenario_schema):
        record = _record(scenario_schema, {"s1q1": "   "})

        assert progress_service.compute_completion_percentage(record, scenario_schema) == 4

    def test_filling_a_field_never_decreases_progress(self, scenario_schema):
        record = _record(scenario_schema)
        previous = 0
        for field_id in scenario_schema.field_ids:
            record = _record(scenario_schema, {**record.answers, field_id: "x"})
            current = progress_service.compute_completion_percentage(record, scenario_schema)
            assert current > previous
            previous = current

    def test_extra_auto_sections_are_capped(self, scenario_schema):
        record = _record(scenario_schema, auto=range(1, 20))

        # 6 of 28 units
        assert progress_service.compute_completion_percentage(record, scenario_schema) == 21


class TestRiskLevel:
    @pytest.mark.parametrize(
        ("percentage", "expected"),
        [
            (0, RiskLevel.PENDING),
            (24, RiskLevel.PENDING),
            (25, RiskLevel.HIGH),
            (30, RiskLevel.HIGH),
            (59, RiskLevel.HIGH),
            (60, RiskLevel.MEDIUM),
            (65, RiskLevel.MEDIUM),
            (79, RiskLevel.MEDIUM),
            (80, RiskLevel.LOW),
            (85, RiskLevel.LOW),
            (100, RiskLevel.LOW),
        ],
    )
    def test_thresholds(self, percentage, expected):
        assert progress_service.risk_level_for_percentage(percentage) == expected

    def test_labels(self):
        assert RiskLevel.PENDING.label == "Pending"
        assert RiskLevel.HIGH.label == "High Risk"


class TestSections:
    def test_completed_section_count_adds_auto_sections(self, scenario_schema):
        filled = {f"s1q{i}": "x" for i in range(1, 5)}
        record = _record(scenario_schema, filled, auto=(3, 5))

        assert progress_service.compute_completed_section_count(record, scenario_schema) == 3

    def test_pending_items_cover_incomplete_user_sections(self, scenario_schema):
        filled = {f"s1q{i}": "x" for i in range(1, 5)}
        filled["s2q1"] = "x"
        record = _record(scenario_schema, filled, auto=(3, 5, 6, 8, 9, 10))

        items = progress_service.list_pending_items(record, scenario_schema)

        assert [(i.section_number, i.missing_field_count) for i in items] == [
            (2, 5),
            (4, 5),
            (7, 7),
        ]
        assert items[0].label == "Section 2 (5 questions remaining)"

    def test_pending_items_follow_declared_order(self):
        schema = get_questionnaire()
        items = progress_service.list_pending_items(_record(schema), schema)

        assert [i.section_number for i in items] == [1, 2, 3, 4, 5, 8, 9, 10, 7]

    def test_complete_record_has_no_pending_items(self, scenario_schema):
        record = _record(scenario_schema, {fid: "x" for fid in scenario_schema.field_ids})

        assert progress_service.list_pending_items(record, scenario_schema) == []


class TestEstimatedTime:
    def test_completed(self, scenario_schema):
        record = _record(scenario_schema, {fid: "x" for fid in scenario_schema.field_ids})

        assert progress_service.estimated_completion_time(record, scenario_schema) == "Completed"

    def test_minutes_only(self, scenario_schema):
        filled = {fid: "x" for fid in scenario_schema.field_ids[1:]}
        record = _record(scenario_schema, filled)

        assert progress_service.estimated_completion_time(record, scenario_schema) == "3 min"

    def test_privacy_questions_take_longer(self):
        schema = get_questionnaire()
        privacy = next(s for s in schema.user_sections if s.number == 7)
        filled = {fid: "x" for fid in schema.field_ids}
        filled[privacy.fields[0].id] = ""
        record = _record(schema, filled)

        assert progress_service.estimated_completion_time(record, schema) == "4 min"

    def test_hours_and_minutes(self):
        """Test 31 required non-privacy questions at 3 min plus 9 privacy ones at 4 min."""
        schema = get_questionnaire()

        assert progress_service.estimated_completion_time(_record(schema), schema) == "2h 9m"


class TestTimeAgo:
    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=10), "Just now"),
            (timedelta(minutes=5), "5m ago"),
            (timedelta(hours=3), "3h ago"),
            (timedelta(days=2), "2d ago"),
        ],
    )
    def test_formats(self, delta, expected, scenario_schema):
        record = _record(scenario_schema)

        assert progress_service.time_ago(record.last_updated, record.last_updated + delta) == expected


class TestProgressSummary:
    def test_summary_for_fresh_default_record(self):
        schema = get_questionnaire()
        record = _record(schema)

        summary = progress_service.progress_summary(record, schema, now=record.last_updated)

        assert summary.completion_percentage == 0
        assert summary.risk_level == RiskLevel.PENDING
        assert summary.risk_label == "Pending"
        assert summary.total_section_count == 15
        assert summary.completed_section_count == 0
        assert len(summary.sections) == 9
        assert [a.number for a in summary.auto_sections] == [3, 5, 6, 8, 9, 10]
        assert summary.pending_labels[0] == "AI System Information (4 questions remaining)"
        assert summary.last_updated_ago == "Just now"
