"""Report template variables derived from an assessment record.

Produces the flat placeholder -> text mapping consumed by the HTML, PDF and
DOCX renderers: executive summary, one entry per questionnaire field, the
six-domain risk matrix and the narrative recommendations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from markupsafe import Markup

from src.core.prompts import FALLBACK_RECOMMENDATIONS
from src.core.questionnaire import QuestionnaireSchema
from src.schemas.assessment import AssessmentRecord
from src.schemas.report import ProjectDetails
from src.services import progress_service

NOT_PROVIDED = "Not provided"
DEFAULT_PROJECT_NAME = "AI System"

RISK_DOMAINS = ("privacy", "bias", "explainability", "robustness", "governance", "security")

# Auto sections whose completion stands in for explainability/security controls
EXPLAINABILITY_AUTO_SECTION = 6
SECURITY_AUTO_SECTION = 5

FINANCIAL_PURPOSE_KEYWORDS = ("financial", "credit", "lending")

INCOMPLETE_INPUT_DISCLAIMER = (
    "[!] Disclaimer: This report includes inferred evaluations where user input was "
    "incomplete. Final risk posture should be reassessed upon receiving full input."
)

NIST_COMPLIANCE_STATUS = "Framework alignment established with systematic risk identification"
ISO_COMPLIANCE_STATUS = (
    "Risk management framework established with systematic risk identification"
)


@dataclass(frozen=True)
class DomainRisk:
    domain: str
    score: int
    likelihood: str
    impact: str
    risk_level: str
    priority: str

    def as_variables(self) -> dict[str, str]:
        return {
            f"{self.domain}_score": str(self.score),
            f"{self.domain}_likelihood": self.likelihood,
            f"{self.domain}_impact": self.impact,
            f"{self.domain}_risk_level": self.risk_level,
            f"{self.domain}_priority": self.priority,
        }


def _answer(answers: dict[str, str], field_id: str) -> str:
    return (answers.get(field_id) or "").strip().lower()


def domain_risk_score(domain: str, record: AssessmentRecord) -> int:
    """Lookup-table style score (1-10, higher is riskier) for one domain."""
    answers = record.answers
    if domain == "privacy":
        if _answer(answers, "personalInfoUsed") != "yes":
            return 3
        if _answer(answers, "privacyRiskAssessment") != "yes":
            return 7
        if _answer(answers, "privacyByDesign") == "no":
            return 6
        return 4

    if domain == "bias":
        bias_training = _answer(answers, "biasTraining")
        if bias_training == "no":
            return 8
        if not bias_training:
            return 6
        return 3

    if domain == "robustness":
        if _answer(answers, "threatsIdentified") != "yes":
            return 7
        if _answer(answers, "maliciousUseAssessed") == "no":
            return 6
        return 4

    if domain == "governance":
        if _answer(answers, "rolesDocumented") == "no":
            return 8
        if _answer(answers, "personnelTrained") == "no":
            return 7
        if _answer(answers, "humanOverride") == "no":
            return 6
        return 3

    if domain == "explainability":
        return 3 if EXPLAINABILITY_AUTO_SECTION in record.auto_sections_completed else 5

    if domain == "security":
        return 3 if SECURITY_AUTO_SECTION in record.auto_sections_completed else 5

    return 5


def likelihood_for_score(score: int) -> str:
    if score >= 7:
        return "High"
    if score >= 4:
        return "Medium"
    return "Low"


def domain_impact(domain: str, record: AssessmentRecord) -> str:
    purpose = _answer(record.answers, "aiSystemPurpose")
    has_personal_data = _answer(record.answers, "personalInfoUsed") == "yes"
    is_financial = any(word in purpose for word in FINANCIAL_PURPOSE_KEYWORDS)

    if domain == "privacy" and has_personal_data:
        return "High"
    if domain == "bias" and is_financial:
        return "High"
    if domain == "governance":
        return "High"
    return "Medium"


def matrix_risk_level(likelihood: str, impact: str) -> str:
    if likelihood == "High" and impact == "High":
        return "HIGH"
    if likelihood == "High" or impact == "High":
        return "MEDIUM"
    if likelihood == "Medium" and impact == "Medium":
        return "MEDIUM"
    return "LOW"


def priority_for_risk_level(risk_level: str) -> str:
    return {"HIGH": "Critical", "MEDIUM": "High", "LOW": "Medium"}.get(risk_level, "Low")


def assess_domain(domain: str, record: AssessmentRecord) -> DomainRisk:
    score = domain_risk_score(domain, record)
    likelihood = likelihood_for_score(score)
    impact = domain_impact(domain, record)
    risk_level = matrix_risk_level(likelihood, impact)
    return DomainRisk(
        domain=domain,
        score=score,
        likelihood=likelihood,
        impact=impact,
        risk_level=risk_level,
        priority=priority_for_risk_level(risk_level),
    )


def risk_matrix(record: AssessmentRecord) -> list[DomainRisk]:
    return [assess_domain(domain, record) for domain in RISK_DOMAINS]


def _compliance_readiness(progress: int) -> str:
    if progress >= 80:
        return "High Readiness"
    if progress >= 60:
        return "Moderate Readiness"
    return "Initial Readiness"


def needs_disclaimer(record: AssessmentRecord, progress: int) -> bool:
    description = record.answers.get("aiSystemDescription") or ""
    return progress < 60 or len(description) < 20


def build_report_variables(
    record: AssessmentRecord,
    schema: QuestionnaireSchema,
    project_details: ProjectDetails | None = None,
    ai_recommendations: str = "",
    now: datetime | None = None,
) -> dict[str, str]:
    """Flat placeholder -> plain text mapping for one report.

    Empty answers become "Not provided". ``assessment_disclaimer`` is the only
    value holding markup (a ``Markup`` instance); the HTML renderer escapes
    everything else.
    """
    now = now or datetime.now(UTC)
    metrics = progress_service.derive_metrics(record, schema)
    progress = metrics.completion_percentage
    personal_data = _answer(record.answers, "personalInfoUsed") == "yes"

    variables: dict[str, str] = {
        "project_name": (project_details and project_details.project_name)
        or DEFAULT_PROJECT_NAME,
        "project_description": (project_details and project_details.description)
        or NOT_PROVIDED,
        "assessment_date": now.strftime("%Y-%m-%d"),
        "overall_risk_level": metrics.risk_level.label,
        "completion_percentage": str(progress),
        "completed_sections": str(metrics.completed_section_count),
        "total_sections": str(metrics.total_section_count),
        "governance_strengths": (
            "Risk domain coverage appears to be emerging. May reduce regulatory audit risk "
            "pending verification of implementation depth"
            if _answer(record.answers, "rolesDocumented") == "yes"
            else "Oversight framework may be partially documented. Direct evidence of "
            "decision-making authority during incidents not confirmed"
        ),
        "security_strengths": (
            "Security controls appear to be considered. Effectiveness against fraud and "
            "operational disruptions requires validation"
        ),
        "privacy_strengths": (
            "Privacy framework appears to be developing. GDPR/CCPA compliance claims "
            "require independent verification"
            if personal_data
            else "Limited personal data processing reduces regulatory exposure"
        ),
        "explainability_strengths": (
            "Explainability concepts may be implemented. Audit trail effectiveness not "
            "confirmed"
        ),
        "compliance_readiness": _compliance_readiness(progress),
        "privacy_compliance_status": (
            "Privacy impact assessments and data protection controls documented"
            if personal_data
            else "Limited personal data processing reduces regulatory exposure"
        ),
        "nist_compliance_status": NIST_COMPLIANCE_STATUS,
        "iso_compliance_status": ISO_COMPLIANCE_STATUS,
        "assessment_disclaimer": (
            Markup('<div class="disclaimer">{}</div>').format(INCOMPLETE_INPUT_DISCLAIMER)
            if needs_disclaimer(record, progress)
            else ""
        ),
    }

    for field_id in schema.field_ids:
        spec = schema.get_field(field_id)
        variables[spec.placeholder] = record.answers.get(field_id) or NOT_PROVIDED

    for domain_risk in risk_matrix(record):
        variables.update(domain_risk.as_variables())

    variables["ai_recommendations"] = ai_recommendations or FALLBACK_RECOMMENDATIONS
    return variables
