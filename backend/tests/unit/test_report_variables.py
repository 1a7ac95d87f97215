"""Unit tests for report template variables and the domain risk matrix."""

from datetime import UTC, datetime

import pytest

from src.core.prompts import FALLBACK_RECOMMENDATIONS
from src.core.questionnaire import get_questionnaire
from src.schemas.assessment import AssessmentRecord
from src.schemas.report import ProjectDetails
from src.services.report_variables import (
    NOT_PROVIDED,
    RISK_DOMAINS,
    assess_domain,
    build_report_variables,
    matrix_risk_level,
    priority_for_risk_level,
)

REPORT_DATE = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


def _record(answers: dict[str, str] | None = None, auto=()) -> AssessmentRecord:
    schema = get_questionnaire()
    merged = schema.empty_answers()
    merged.update(answers or {})
    return AssessmentRecord(
        project_id="p1",
        answers=merged,
        last_updated=REPORT_DATE,
        auto_sections_completed=frozenset(auto),
    )


class TestDomainScores:
    def test_privacy_with_personal_data_and_no_assessment(self):
        risk = assess_domain("privacy", _record({"personalInfoUsed": "yes"}))

        assert (risk.score, risk.likelihood, risk.impact) == (7, "High", "High")
        assert risk.risk_level == "HIGH"
        assert risk.priority == "Critical"

    def test_privacy_without_personal_data(self):
        risk = assess_domain("privacy", _record({"personalInfoUsed": "no"}))

        assert (risk.score, risk.likelihood, risk.impact) == (3, "Low", "Medium")
        assert risk.risk_level == "LOW"

    def test_privacy_assessed_but_not_by_design(self):
        risk = assess_domain(
            "privacy",
            _record(
                {"personalInfoUsed": "yes", "privacyRiskAssessment": "yes", "privacyByDesign": "no"}
            ),
        )

        assert risk.score == 6

    @pytest.mark.parametrize(
        ("bias_training", "expected"),
        [("no", 8), ("", 6), ("yes", 3)],
    )
    def test_bias_scores(self, bias_training, expected):
        assert assess_domain("bias", _record({"biasTraining": bias_training})).score == expected

    def test_bias_impact_for_financial_purpose(self):
        record = _record({"aiSystemPurpose": "Automated credit decisions", "biasTraining": "no"})

        risk = assess_domain("bias", record)

        assert risk.impact == "High"
        assert risk.risk_level == "HIGH"

    def test_governance_impact_is_always_high(self):
        risk = assess_domain(
            "governance",
            _record({"rolesDocumented": "yes", "personnelTrained": "yes", "humanOverride": "yes"}),
        )

        assert (risk.score, risk.impact, risk.risk_level) == (3, "High", "MEDIUM")

    @pytest.mark.parametrize(
        ("answers", "expected"),
        [
            ({"rolesDocumented": "no"}, 8),
            ({"rolesDocumented": "yes", "personnelTrained": "no"}, 7),
            ({"rolesDocumented": "yes", "personnelTrained": "yes", "humanOverride": "no"}, 6),
        ],
    )
    def test_governance_scores(self, answers, expected):
        assert assess_domain("governance", _record(answers)).score == expected

    def test_robustness_scores(self):
        assert assess_domain("robustness", _record()).score == 7
        assert (
            assess_domain(
                "robustness", _record({"threatsIdentified": "yes", "maliciousUseAssessed": "no"})
            ).score
            == 6
        )

    def test_auto_sections_lower_explainability_and_security(self):
        assert assess_domain("explainability", _record()).score == 5
        assert assess_domain("explainability", _record(auto=(6,))).score == 3
        assert assess_domain("security", _record(auto=(5,))).score == 3


class TestMatrixHelpers:
    @pytest.mark.parametrize(
        ("likelihood", "impact", "expected"),
        [
            ("High", "High", "HIGH"),
            ("High", "Medium", "MEDIUM"),
            ("Low", "High", "MEDIUM"),
            ("Medium", "Medium", "MEDIUM"),
            ("Low", "Medium", "LOW"),
        ],
    )
    def test_matrix_risk_level(self, likelihood, impact, expected):
        assert matrix_risk_level(likelihood, impact) == expected

    def test_priority(self):
        assert priority_for_risk_level("HIGH") == "Critical"
        assert priority_for_risk_level("MEDIUM") == "High"
        assert priority_for_risk_level("LOW") == "Medium"


class TestBuildReportVariables:
    def test_empty_answers_render_not_provided(self):
        variables = build_report_variables(_record(), get_questionnaire(), now=REPORT_DATE)

        assert variables["ai_system_description"] == NOT_PROVIDED
        assert variables["privacy_by_design"] == NOT_PROVIDED
        assert variables["project_name"] == "AI System"
        assert variables["assessment_date"] == "2026-03-01"

    def test_executive_summary_uses_store_metrics(self):
        schema = get_questionnaire()
        section_one = {
            "aiSystemDescription": "A gradient boosted model ranking loan applications",
            "aiSystemPurpose": "Credit risk scoring",
            "deploymentMethod": "Internal API",
            "deploymentRequirements": "yes",
        }
        record = _record(section_one, auto=(3, 5, 6, 8, 9, 10))

        variables = build_report_variables(record, schema, now=REPORT_DATE)

        # 4 answered + 6 auto out of 40 + 6
        assert variables["completion_percentage"] == "22"
        assert variables["overall_risk_level"] == "Pending"
        assert variables["completed_sections"] == "7"
        assert variables["total_sections"] == "15"
        assert variables["compliance_readiness"] == "Initial Readiness"

    def test_every_field_and_domain_has_a_value(self):
        schema = get_questionnaire()

        variables = build_report_variables(_record(), schema, now=REPORT_DATE)

        for field_id in schema.field_ids:
            assert schema.get_field(field_id).placeholder in variables
        for domain in RISK_DOMAINS:
            for suffix in ("score", "likelihood", "impact", "risk_level", "priority"):
                assert f"{domain}_{suffix}" in variables

    def test_disclaimer_when_input_is_incomplete(self):
        variables = build_report_variables(_record(), get_questionnaire(), now=REPORT_DATE)

        assert 'class="disclaimer"' in variables["assessment_disclaimer"]

    def test_no_disclaimer_for_complete_input(self):
        schema = get_questionnaire()
        answers = {fid: "A sufficiently detailed answer" for fid in schema.field_ids}

        variables = build_report_variables(
            _record(answers, auto=(3, 5, 6, 8, 9, 10)), schema, now=REPORT_DATE
        )

        assert variables["assessment_disclaimer"] == ""
        assert variables["overall_risk_level"] == "Low Risk"
        assert variables["compliance_readiness"] == "High Readiness"

    def test_project_details_and_recommendations(self):
        details = ProjectDetails(project_id="p1", project_name="Loan Scorer", description="Ranks loans")

        variables = build_report_variables(
            _record(),
            get_questionnaire(),
            project_details=details,
            ai_recommendations="Document model owners.",
            now=REPORT_DATE,
        )

        assert variables["project_name"] == "Loan Scorer"
        assert variables["project_description"] == "Ranks loans"
        assert variables["ai_recommendations"] == "Document model owners."

    def test_missing_recommendations_use_fallback(self):
        variables = build_report_variables(_record(), get_questionnaire(), now=REPORT_DATE)

        assert variables["ai_recommendations"] == FALLBACK_RECOMMENDATIONS
