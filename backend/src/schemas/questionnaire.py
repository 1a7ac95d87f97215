"""Pydantic schemas for the questionnaire definition endpoint."""

from pydantic import BaseModel, Field


class FieldOption(BaseModel):
    value: str
    label: str


class QuestionnaireField(BaseModel):
    id: str
    question: str
    hints: str = ""
    kind: str = Field(..., description="'text' or 'choice'")
    options: list[FieldOption] = Field(default_factory=list)
    required: bool = True
    placeholder: str = Field(..., description="Report template placeholder name")


class QuestionnaireSection(BaseModel):
    number: int
    title: str
    minutes_per_question: int
    fields: list[QuestionnaireField]


class AutoSectionDefinition(BaseModel):
    number: int
    title: str
    items: list[str] = Field(default_factory=list)


class QuestionnaireResponse(BaseModel):
    """Full questionnaire: user-answered sections plus auto-completed ones."""

    version: str
    sections: list[QuestionnaireSection]
    auto_sections: list[AutoSectionDefinition]
    total_section_count: int
