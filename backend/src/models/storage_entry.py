"""Key/value storage entry model."""

from sqlalchemy import Column, String, Text

from src.models.base import TimestampedModel


class StorageEntry(TimestampedModel):
    """One key/value pair of assessment storage.

    Keys follow the questionnaire client's layout (``assessment_<projectId>``,
    ``riskAssessment_<projectId>``, ``riskAssessmentAnalyses``, ...); values
    are JSON documents or plain flag strings.
    """

    __tablename__ = "storage_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<StorageEntry(key={self.key})>"
