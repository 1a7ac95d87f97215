"""Unit tests for HTML, PDF and DOCX report rendering."""

from datetime import UTC, datetime
from io import BytesIO

import pytest
from docx import Document
from jinja2 import TemplateSyntaxError

from src.core.errors import TemplatePlaceholderError
from src.core.questionnaire import get_questionnaire
from src.schemas.assessment import AssessmentRecord
from src.services.docx_generator import generate_assessment_document
from src.services.html_report import (
    check_placeholders,
    load_template,
    render_html,
    template_placeholders,
)
from src.services.pdf_report import render_pdf
from src.services.report_variables import build_report_variables


@pytest.fixture
def variables() -> dict[str, str]:
    schema = get_questionnaire()
    answers = schema.empty_answers()
    answers["aiSystemPurpose"] = "Scoring <b>loan</b> applications & flagging fraud"
    answers["personalInfoUsed"] = "yes"
    record = AssessmentRecord(
        project_id="p1",
        answers=answers,
        last_updated=datetime(2026, 3, 1, tzinfo=UTC),
    )
    return build_report_variables(
        record,
        schema,
        ai_recommendations="1. Run a privacy impact assessment.\n2. Train reviewers.",
        now=datetime(2026, 3, 1, tzinfo=UTC),
    )


class TestHtmlReport:
    def test_bundled_template_matches_variables(self, variables):
        """Test the bundled template and the variable map agree exactly."""
        template = load_template()

        check_placeholders(template, variables)
        assert template_placeholders(template) == set(variables)

    def test_values_are_substituted_and_escaped(self, variables):
        html = render_html(load_template(), variables)

        assert "{{" not in html
        assert "Scoring &lt;b&gt;loan&lt;/b&gt; applications &amp; flagging fraud" in html
        assert "Not provided" in html

    def test_disclaimer_markup_is_kept(self, variables):
        html = render_html(load_template(), variables)

        assert '<div class="disclaimer">' in html

    def test_missing_value_is_rejected(self, variables):
        del variables["privacy_score"]

        with pytest.raises(TemplatePlaceholderError) as exc_info:
            render_html(load_template(), variables)

        assert exc_info.value.missing == {"privacy_score"}

    def test_unknown_variable_is_rejected_in_strict_mode(self):
        with pytest.raises(TemplatePlaceholderError) as exc_info:
            render_html("<p>{{ project_name }}</p>", {"project_name": "x", "renamed": "y"})

        assert exc_info.value.unknown == {"renamed"}

    def test_subset_template_allowed_when_not_strict(self):
        html = render_html(
            "<p>{{project_name}}</p>", {"project_name": "A & B", "extra": "y"}, strict=False
        )

        assert html == "<p>A &amp; B</p>"

    def test_answers_are_not_evaluated_as_template_code(self):
        html = render_html("<p>{{ project_name }}</p>", {"project_name": "{{ 7 * 7 }}"})

        assert html == "<p>{{ 7 * 7 }}</p>"

    def test_custom_template_may_use_filters(self):
        template = "<h1>{{ project_name | upper }}</h1>"

        assert template_placeholders(template) == {"project_name"}
        assert render_html(template, {"project_name": "scoring"}) == "<h1>SCORING</h1>"

    def test_template_syntax_error_is_raised(self):
        with pytest.raises(TemplateSyntaxError):
            render_html("<p>{{ project_name </p>", {"project_name": "x"})


class TestPdfReport:
    def test_renders_pdf_bytes(self, variables):
        content = render_pdf(variables, get_questionnaire())

        assert content.startswith(b"%PDF")
        assert len(content) > 1000


class TestDocxReport:
    def test_renders_document_with_sections(self, variables):
        buffer = generate_assessment_document(variables, get_questionnaire())

        document = Document(BytesIO(buffer.getvalue()))
        headings = [p.text for p in document.paragraphs if p.style.name.startswith("Heading")]
        assert "Risk Matrix" in headings
        assert "7. Privacy and Data Governance" in headings

        cell_texts = {cell.text for table in document.tables for row in table.rows for cell in row.cells}
        assert "Scoring <b>loan</b> applications & flagging fraud" in cell_texts
