"""AI risk-assessment questionnaire definition.

The questionnaire is declared once here as a data table and consumed by the
assessment store (progress and pending items), the API (form rendering), the
narrative prompt builder and the report templater.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

QUESTIONNAIRE_VERSION = "1.0"

YES_NO = [
    {"value": "yes", "label": "Yes"},
    {"value": "no", "label": "No"},
]

YES_NO_NA = YES_NO + [{"value": "na", "label": "N/A"}]

HUMAN_INVOLVEMENT_OPTIONS = [
    {"value": "self-learning", "label": "Self-Learning or Autonomous System"},
    {"value": "human-in-loop", "label": "Overseen by a Human-in-the-Loop"},
    {"value": "human-on-loop", "label": "Overseen by a Human-on-the-Loop"},
    {"value": "human-command", "label": "Overseen by a Human-in-Command"},
]

DESCRIPTION_HINT = "Provide additional details or context..."

USER_SECTIONS = [
    {
        "number": 1,
        "title": "AI System Information",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "aiSystemDescription",
                "question": "Describe the AI system",
                "hints": "Briefly provide the basic information of the AI system...",
                "kind": "text",
            },
            {
                "id": "aiSystemPurpose",
                "question": "What is the purpose of developing the AI system?",
                "hints": "Describe how the AI system will address a need...",
                "kind": "text",
            },
            {
                "id": "deploymentMethod",
                "question": "How will the system be deployed for its intended uses?",
                "hints": "Describe the deployment strategy...",
                "kind": "text",
            },
            {
                "id": "deploymentRequirements",
                "question": (
                    "Have requirements for system deployment and operation been "
                    "initially identified?"
                ),
                "kind": "choice",
                "options": YES_NO,
            },
        ],
    },
    {
        "number": 2,
        "title": "Human and Stakeholder Involvement",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "rolesDocumented",
                "question": (
                    "Have the roles and responsibilities of personnel involved in the design, "
                    "development, deployment, assessment, and monitoring of the AI system been "
                    "defined and documented?"
                ),
                "hints": (
                    "Include a brief description of each stakeholder's role in the AI "
                    "lifecycle or link to relevant documentation."
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "rolesDocumentedDescription",
                "question": "Additional Description",
                "hints": DESCRIPTION_HINT,
                "kind": "text",
                "required": False,
            },
            {
                "id": "personnelTrained",
                "question": (
                    "Are personnel provided with the necessary skills, training, and resources "
                    "needed in order to fulfill their assigned roles and responsibilities?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "personnelTrainedDescription",
                "question": "Additional Description",
                "hints": DESCRIPTION_HINT,
                "kind": "text",
                "required": False,
            },
            {
                "id": "humanInvolvement",
                "question": (
                    "What is the level of human involvement and control in relation to the "
                    "AI system?"
                ),
                "kind": "choice",
                "options": HUMAN_INVOLVEMENT_OPTIONS,
            },
            {
                "id": "biasTraining",
                "question": (
                    "Are the relevant personnel dealing with AI systems properly trained to "
                    "interpret AI model output and decisions as well as to detect and manage "
                    "bias in data?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "biasTrainingDescription",
                "question": "Additional Description",
                "hints": DESCRIPTION_HINT,
                "kind": "text",
                "required": False,
            },
            {
                "id": "humanIntervention",
                "question": (
                    "Are processes defined and documented where human intervention is "
                    "required by the AI system?"
                ),
                "hints": (
                    "There are a number of cases and scenarios where human intervention is "
                    "needed to ensure the safe, ethical, and secure use of AI."
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "humanOverride",
                "question": (
                    "Do human reviewers have the expertise and authority to override "
                    "decisions made by the AI and modify them to the appropriate outcome?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "humanOverrideDescription",
                "question": "Additional Description",
                "hints": DESCRIPTION_HINT,
                "kind": "text",
                "required": False,
            },
        ],
    },
    {
        "number": 3,
        "title": "Valid and Reliable AI",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "impactAssessmentMechanisms",
                "question": (
                    "Are mechanisms in place to identify and assess the impacts of the AI "
                    "system on individuals, the environment, communities, and society?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "negativeImpactsReassessed",
                "question": (
                    "Are potential negative impacts re-assessed if there are significant "
                    "changes to the AI system in all stages of the AI lifecycle?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "mitigatingMeasuresImplemented",
                "question": (
                    "Are identified potential negative impacts used to inform and implement "
                    "mitigating measures throughout the AI lifecycle?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "regulationsIdentified",
                "question": (
                    "Have all existing regulations and guidelines that may affect the AI "
                    "system been identified?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 4,
        "title": "Safety and Reliability of AI",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "riskLevels",
                "question": (
                    "Are tolerable risk levels defined for the AI system based on the business "
                    "objectives, regulatory compliance, and data sensitivity requirements of "
                    "the system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "threatsIdentified",
                "question": (
                    "Have the possible threats to the AI system (design faults, technical "
                    "faults, environmental threats) been identified, and the possible "
                    "consequences to AI trustworthiness?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "maliciousUseAssessed",
                "question": (
                    "Are the risks of possible malicious use, misuse, or inappropriate use of "
                    "the AI system assessed?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 5,
        "title": "Secure and Resilient AI",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "vulnerabilityAssessmentMechanisms",
                "question": (
                    "Are mechanisms in place to assess vulnerabilities in terms of security "
                    "and resiliency across the AI lifecycle?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "redTeamExercises",
                "question": (
                    "Are red-team exercises used to actively test the system under "
                    "adversarial or stress conditions?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "securityModificationProcesses",
                "question": (
                    "Are processes in place to modify system security and countermeasures to "
                    "increase robustness?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "incidentResponseProcesses",
                "question": "Are processes in place to respond to incidents related to AI systems?",
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "securityTestsMetrics",
                "question": (
                    "Are processes in place to establish and track security tests and metrics?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 8,
        "title": "Fairness and Unbiased AI",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "demographicsDocumented",
                "question": (
                    "Are demographics of those involved in design and development documented "
                    "to capture potential biases?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "aiActorsBiasAwareness",
                "question": (
                    "Are AI actors aware of the possible bias they can inject into the design "
                    "and development?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 9,
        "title": "Transparent and Accountable AI",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "sufficientInfoProvided",
                "question": (
                    "Is sufficient information provided to relevant AI actors to assist in "
                    "making informed decisions?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "endUsersAware",
                "question": (
                    "Are end users aware that they are interacting with an AI system and not "
                    "a human?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "endUsersInformed",
                "question": (
                    "Are end-users informed of the purpose, criteria, and limitations of the "
                    "decisions generated?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "endUsersBenefits",
                "question": "Are end-users informed of the benefits of the AI system?",
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "externalStakeholders",
                "question": (
                    "Is a mechanism in place to regularly communicate with external "
                    "stakeholders?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 10,
        "title": "AI Accountability",
        "minutes_per_question": 3,
        "fields": [
            {
                "id": "riskManagementSystem",
                "question": (
                    "Is a risk management system implemented to address risks identified in "
                    "the AI system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "aiSystemAuditable",
                "question": "Can the AI system be audited by independent third parties?",
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
    {
        "number": 7,
        "title": "Privacy and Data Governance",
        "minutes_per_question": 4,
        "fields": [
            {
                "id": "personalInfoUsed",
                "question": (
                    "Is the AI system being trained, or was it developed, by using or "
                    "processing personal information?"
                ),
                "kind": "choice",
                "options": YES_NO,
            },
            {
                "id": "personalInfoCategories",
                "question": (
                    "Please describe the categories of personal information used by the AI "
                    "system. Indicate if the system is using sensitive or special categories "
                    "of personal information, including a description of the legal basis for "
                    "processing the personal information."
                ),
                "hints": "Describe the categories of personal information...",
                "kind": "text",
            },
            {
                "id": "privacyRegulations",
                "question": (
                    "Have applicable legal regulations for privacy been identified and "
                    "considered before processing personal information to train, develop, or "
                    "deploy the AI system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "privacyRiskAssessment",
                "question": (
                    "Has a privacy risk assessment been conducted to ensure the privacy and "
                    "security of the personal information used for the AI system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "privacyByDesign",
                "question": (
                    "Have measures to achieve privacy by design and default been implemented "
                    "when applicable to mitigate identified privacy risks?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "individualsInformed",
                "question": (
                    "Are individuals informed of the processing of their personal information "
                    "for the development of the AI system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "privacyRights",
                "question": (
                    "Have mechanisms been implemented to enable individuals to exercise their "
                    "right to privacy for any personal information used in the AI system?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "dataQuality",
                "question": (
                    "Are measures in place to ensure that the data used to develop the AI "
                    "system is up-to-date, complete, and representative of the AI environment?"
                ),
                "kind": "choice",
                "options": YES_NO_NA,
            },
            {
                "id": "thirdPartyRisks",
                "question": "Have risks been assessed in using datasets obtained from third parties?",
                "kind": "choice",
                "options": YES_NO_NA,
            },
        ],
    },
]

# Parts of the questionnaire answered from the project's model and dataset
# records instead of by the user.
AUTO_SECTIONS = [
    {
        "number": 3,
        "title": "Valid and Reliable AI (model evidence)",
        "items": [
            "Data quality and integrity results",
            "Risk and benefit mapping",
        ],
    },
    {
        "number": 5,
        "title": "Secure and Resilient AI (performance monitoring)",
        "items": [
            "Are procedures and relevant performance metrics in place to monitor AI "
            "system's accuracy?",
        ],
    },
    {
        "number": 6,
        "title": "Explainable and Interpretable AI",
        "items": [
            "Are measures in place to address the traceability of the AI system during its "
            "entire lifecycle?",
            "Are measures in place to continuously assess the quality of the input data to "
            "the AI system?",
            "Are explanations on the decision of the AI system provided to relevant users "
            "and stakeholders?",
        ],
    },
    {
        "number": 8,
        "title": "Fairness and Unbiased AI (fairness evaluation)",
        "items": [
            "Is a strategy established to avoid creating or reinforcing unfair bias in the "
            "AI system?",
        ],
    },
    {
        "number": 9,
        "title": "Transparent and Accountable AI (model documentation)",
        "items": ["Model documentation available to relevant AI actors"],
    },
    {
        "number": 10,
        "title": "AI Accountability (audit trail)",
        "items": ["Model versions and datasets recorded for independent audit"],
    },
]

# Auto sections completed when the project directory reports model records
MODEL_DATA_AUTO_SECTIONS = frozenset({3, 5, 6, 8, 9, 10})

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def placeholder_name(field_id: str) -> str:
    """Report template placeholder for a field id (camelCase -> snake_case)."""
    return _CAMEL_BOUNDARY.sub("_", field_id).lower()


@dataclass(frozen=True)
class FieldSpec:
    id: str
    question: str
    hints: str = ""
    kind: str = "text"
    options: tuple[dict, ...] = ()
    required: bool = True

    @property
    def placeholder(self) -> str:
        return placeholder_name(self.id)


@dataclass(frozen=True)
class UserSection:
    number: int
    title: str
    fields: tuple[FieldSpec, ...]
    minutes_per_question: int = 3

    @property
    def required_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.required)


@dataclass(frozen=True)
class AutoSection:
    number: int
    title: str
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuestionnaireSchema:
    """Immutable view over a questionnaire table.

    Field ids must be unique across all user sections; auto section numbers
    must be unique among auto sections.
    """

    user_sections: tuple[UserSection, ...]
    auto_sections: tuple[AutoSection, ...] = ()
    version: str = QUESTIONNAIRE_VERSION
    _field_index: dict[str, FieldSpec] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _section_index: dict[str, UserSection] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for section in self.user_sections:
            for spec in section.fields:
                if spec.id in self._field_index:
                    raise ValueError(f"Duplicate questionnaire field id: {spec.id}")
                self._field_index[spec.id] = spec
                self._section_index[spec.id] = section

        auto_numbers = [s.number for s in self.auto_sections]
        if len(auto_numbers) != len(set(auto_numbers)):
            raise ValueError("Duplicate auto section number")

    @classmethod
    def from_table(
        cls,
        user_sections: list[dict],
        auto_sections: list[dict] | None = None,
        version: str = QUESTIONNAIRE_VERSION,
    ) -> QuestionnaireSchema:
        return cls(
            user_sections=tuple(
                UserSection(
                    number=s["number"],
                    title=s["title"],
                    minutes_per_question=s.get("minutes_per_question", 3),
                    fields=tuple(
                        FieldSpec(
                            id=f["id"],
                            question=f.get("question", f["id"]),
                            hints=f.get("hints", ""),
                            kind=f.get("kind", "text"),
                            options=tuple(f.get("options", ())),
                            required=f.get("required", True),
                        )
                        for f in s["fields"]
                    ),
                )
                for s in user_sections
            ),
            auto_sections=tuple(
                AutoSection(
                    number=s["number"],
                    title=s["title"],
                    items=tuple(s.get("items", ())),
                )
                for s in auto_sections or []
            ),
            version=version,
        )

    @property
    def field_ids(self) -> tuple[str, ...]:
        return tuple(self._field_index)

    @property
    def required_field_ids(self) -> tuple[str, ...]:
        return tuple(fid for fid, spec in self._field_index.items() if spec.required)

    @property
    def auto_section_count(self) -> int:
        return len(self.auto_sections)

    @property
    def total_section_count(self) -> int:
        return len(self.user_sections) + len(self.auto_sections)

    def has_field(self, field_id: str) -> bool:
        return field_id in self._field_index

    def get_field(self, field_id: str) -> FieldSpec:
        return self._field_index[field_id]

    def section_of(self, field_id: str) -> UserSection:
        return self._section_index[field_id]

    def empty_answers(self) -> dict[str, str]:
        return {fid: "" for fid in self._field_index}


@lru_cache
def get_questionnaire() -> QuestionnaireSchema:
    """Get the default questionnaire schema."""
    return QuestionnaireSchema.from_table(USER_SECTIONS, AUTO_SECTIONS)
