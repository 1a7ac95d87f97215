"""PDF rendering of the risk-assessment report with reportlab."""

from __future__ import annotations

from html import escape
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from src.core.questionnaire import QuestionnaireSchema
from src.services.report_variables import INCOMPLETE_INPUT_DISCLAIMER, RISK_DOMAINS

PRIMARY_COLOR = colors.HexColor("#143C78")
HEADER_COLOR = colors.HexColor("#325082")
STRIPE_COLOR = colors.HexColor("#F5F5FA")


def _styles():
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="ReportTitle",
            parent=styles["Title"],
            fontSize=22,
            textColor=PRIMARY_COLOR,
            spaceAfter=12,
            alignment=TA_CENTER,
        )
    )
    styles.add(
        ParagraphStyle(
            name="ChapterTitle",
            parent=styles["Heading1"],
            fontSize=15,
            textColor=PRIMARY_COLOR,
            spaceBefore=16,
            spaceAfter=8,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=HEADER_COLOR,
            spaceBefore=10,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="BodyPara",
            parent=styles["Normal"],
            fontSize=10,
            leading=14,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="CellText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )
    styles.add(
        ParagraphStyle(
            name="Disclaimer",
            parent=styles["Normal"],
            fontSize=10,
            backColor=colors.HexColor("#FEF3C7"),
            borderPadding=6,
            spaceBefore=6,
            spaceAfter=12,
        )
    )
    return styles


def _para(text: str, style) -> Paragraph:
    # Paragraph parses inline markup; newlines need explicit breaks
    return Paragraph(escape(text).replace("\n", "<br/>"), style)


def _table(rows: list[list], col_widths: list[float], header: bool = True) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1 if header else 0)
    commands = [
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CCCCCC")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    if header:
        commands.extend(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ]
        )
        for i in range(2, len(rows), 2):
            commands.append(("BACKGROUND", (0, i), (-1, i), STRIPE_COLOR))
    table.setStyle(TableStyle(commands))
    return table


def render_pdf(variables: dict[str, str], schema: QuestionnaireSchema) -> bytes:
    """Render report variables into a PDF document.

    Args:
        variables: Placeholder mapping from ``build_report_variables``
        schema: Questionnaire used to lay out the responses section

    Returns:
        PDF file content
    """
    styles = _styles()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=f"AI Risk Assessment Report - {variables['project_name']}",
    )

    story = [
        _para("AI Risk Assessment Report", styles["ReportTitle"]),
        _para(
            f"{variables['project_name']} - Assessment date: {variables['assessment_date']}",
            styles["BodyPara"],
        ),
    ]
    if variables.get("assessment_disclaimer"):
        story.append(_para(INCOMPLETE_INPUT_DISCLAIMER, styles["Disclaimer"]))

    story.append(_para("Executive Summary", styles["ChapterTitle"]))
    summary_rows = [
        ["Metric", "Value"],
        ["Overall risk level", variables["overall_risk_level"]],
        ["Completion", f"{variables['completion_percentage']}%"],
        [
            "Sections completed",
            f"{variables['completed_sections']} / {variables['total_sections']}",
        ],
        ["Compliance readiness", variables["compliance_readiness"]],
    ]
    story.append(_table(summary_rows, [2.2 * inch, 4.3 * inch]))

    story.append(_para("Observed strengths", styles["SectionTitle"]))
    for label, key in (
        ("Governance", "governance_strengths"),
        ("Security", "security_strengths"),
        ("Privacy", "privacy_strengths"),
        ("Explainability", "explainability_strengths"),
    ):
        story.append(_para(f"{label}: {variables[key]}", styles["BodyPara"]))

    story.append(_para("Risk Matrix", styles["ChapterTitle"]))
    matrix_rows = [["Domain", "Score", "Likelihood", "Impact", "Risk level", "Priority"]]
    for domain in RISK_DOMAINS:
        matrix_rows.append(
            [
                domain.capitalize(),
                variables[f"{domain}_score"],
                variables[f"{domain}_likelihood"],
                variables[f"{domain}_impact"],
                variables[f"{domain}_risk_level"],
                variables[f"{domain}_priority"],
            ]
        )
    story.append(_table(matrix_rows, [1.3 * inch] + [1.04 * inch] * 5))

    story.append(_para("Compliance Status", styles["ChapterTitle"]))
    compliance_rows = [
        ["Framework", "Status"],
        ["Privacy regulations", _para(variables["privacy_compliance_status"], styles["CellText"])],
        ["NIST AI RMF", _para(variables["nist_compliance_status"], styles["CellText"])],
        ["ISO/IEC 23894", _para(variables["iso_compliance_status"], styles["CellText"])],
    ]
    story.append(_table(compliance_rows, [1.8 * inch, 4.7 * inch]))

    story.append(_para("Questionnaire Responses", styles["ChapterTitle"]))
    for section in schema.user_sections:
        story.append(_para(f"{section.number}. {section.title}", styles["SectionTitle"]))
        rows = [["Question", "Response"]]
        for spec in section.fields:
            rows.append(
                [
                    _para(spec.question, styles["CellText"]),
                    _para(variables.get(spec.placeholder, ""), styles["CellText"]),
                ]
            )
        story.append(_table(rows, [3.0 * inch, 3.5 * inch]))
        story.append(Spacer(1, 0.1 * inch))

    story.append(_para("Recommendations", styles["ChapterTitle"]))
    story.append(_para(variables["ai_recommendations"], styles["BodyPara"]))

    doc.build(story)
    return buffer.getvalue()
