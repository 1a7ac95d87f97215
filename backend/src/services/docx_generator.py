"""DOCX generator service for risk-assessment reports."""
from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH

from src.core.questionnaire import QuestionnaireSchema
from src.services.report_variables import INCOMPLETE_INPUT_DISCLAIMER, RISK_DOMAINS


def _add_key_value_table(doc, rows: list[tuple[str, str]], style: str = "Light Grid Accent 1"):
    table = doc.add_table(rows=len(rows), cols=2)
    table.style = style
    for idx, (label, value) in enumerate(rows):
        table.rows[idx].cells[0].text = label
        table.rows[idx].cells[1].text = value
    return table


def generate_assessment_document(
    variables: dict[str, str],
    schema: QuestionnaireSchema,
) -> BytesIO:
    """Generate the risk-assessment report as DOCX file.

    Args:
        variables: Placeholder mapping from ``build_report_variables``
        schema: Questionnaire used to lay out the responses section

    Returns:
        BytesIO buffer containing the generated DOCX file
    """
    doc = Document()

    title = doc.add_heading("AI Risk Assessment Report", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    doc.add_heading("Project Information", level=1)
    _add_key_value_table(
        doc,
        [
            ("Project", variables["project_name"]),
            ("Description", variables["project_description"]),
            ("Assessment Date", variables["assessment_date"]),
        ],
    )

    if variables.get("assessment_disclaimer"):
        para = doc.add_paragraph()
        para.add_run(INCOMPLETE_INPUT_DISCLAIMER).italic = True

    doc.add_heading("Executive Summary", level=1)
    _add_key_value_table(
        doc,
        [
            ("Overall Risk Level", variables["overall_risk_level"]),
            ("Completion", f"{variables['completion_percentage']}%"),
            (
                "Sections Completed",
                f"{variables['completed_sections']} / {variables['total_sections']}",
            ),
            ("Compliance Readiness", variables["compliance_readiness"]),
        ],
    )

    doc.add_heading("Observed Strengths", level=2)
    for label, key in (
        ("Governance", "governance_strengths"),
        ("Security", "security_strengths"),
        ("Privacy", "privacy_strengths"),
        ("Explainability", "explainability_strengths"),
    ):
        para = doc.add_paragraph(style="List Bullet")
        para.add_run(f"{label}: ").bold = True
        para.add_run(variables[key])

    doc.add_heading("Risk Matrix", level=1)
    matrix = doc.add_table(rows=len(RISK_DOMAINS) + 1, cols=6)
    matrix.style = "Light Grid Accent 1"
    for col, header in enumerate(
        ("Domain", "Score", "Likelihood", "Impact", "Risk Level", "Priority")
    ):
        matrix.rows[0].cells[col].text = header
    for idx, domain in enumerate(RISK_DOMAINS, start=1):
        cells = matrix.rows[idx].cells
        cells[0].text = domain.capitalize()
        cells[1].text = variables[f"{domain}_score"]
        cells[2].text = variables[f"{domain}_likelihood"]
        cells[3].text = variables[f"{domain}_impact"]
        cells[4].text = variables[f"{domain}_risk_level"]
        cells[5].text = variables[f"{domain}_priority"]

    doc.add_heading("Compliance Status", level=1)
    _add_key_value_table(
        doc,
        [
            ("Privacy Regulations", variables["privacy_compliance_status"]),
            ("NIST AI RMF", variables["nist_compliance_status"]),
            ("ISO/IEC 23894", variables["iso_compliance_status"]),
        ],
    )

    doc.add_page_break()
    doc.add_heading("Questionnaire Responses", level=1)
    for section in schema.user_sections:
        doc.add_heading(f"{section.number}. {section.title}", level=2)
        _add_key_value_table(
            doc,
            [(spec.question, variables.get(spec.placeholder, "")) for spec in section.fields],
            style="Light List Accent 1",
        )
        doc.add_paragraph()  # Spacer

    doc.add_heading("Recommendations", level=1)
    doc.add_paragraph(variables["ai_recommendations"])

    buffer = BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer
