"""Analysis records: narrative results and rendered PDFs per project.

Layout in key/value storage:
    riskAssessment_<projectId>           full AnalysisRecord
    riskAssessmentGenerated_<projectId>  "true" once an analysis exists
    riskAssessmentTimestamp_<projectId>  ISO timestamp of the latest analysis
    riskAssessmentAnalyses               list of AnalysisSummary, one per project
"""

from __future__ import annotations

import json
import logging

from pydantic import TypeAdapter, ValidationError

from src.core.structured_logging import log_json
from src.schemas.report import AnalysisRecord, AnalysisSummary
from src.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)

ANALYSIS_KEY_PREFIX = "riskAssessment_"
GENERATED_KEY_PREFIX = "riskAssessmentGenerated_"
TIMESTAMP_KEY_PREFIX = "riskAssessmentTimestamp_"
ANALYSES_LIST_KEY = "riskAssessmentAnalyses"

_summary_list = TypeAdapter(list[AnalysisSummary])


def analysis_storage_key(project_id: str) -> str:
    return f"{ANALYSIS_KEY_PREFIX}{project_id}"


class AnalysisService:
    """Read and write analysis records.

    Unlike assessment saves, write failures propagate (StorageError) so the
    caller can report that the analysis was not recorded.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    async def get_analysis(self, project_id: str) -> AnalysisRecord | None:
        raw = await self.storage.get_item(analysis_storage_key(project_id))
        if raw is None:
            return None
        try:
            return AnalysisRecord.model_validate_json(raw)
        except ValidationError as exc:
            log_json(
                logger,
                logging.WARNING,
                "analysis_record_corrupt",
                project_id=project_id,
                error=str(exc),
            )
            return None

    async def list_analyses(self) -> list[AnalysisSummary]:
        raw = await self.storage.get_item(ANALYSES_LIST_KEY)
        if raw is None:
            return []
        try:
            return _summary_list.validate_json(raw)
        except ValidationError as exc:
            log_json(logger, logging.WARNING, "analysis_list_corrupt", error=str(exc))
            return []

    async def is_generated(self, project_id: str) -> bool:
        return await self.storage.get_item(f"{GENERATED_KEY_PREFIX}{project_id}") == "true"

    async def save_analysis(self, record: AnalysisRecord) -> None:
        """Store the record and replace the project's entry in the analyses list."""
        project_id = record.project_id
        await self.storage.set_item(
            analysis_storage_key(project_id), json.dumps(record.to_storage())
        )

        summaries = [s for s in await self.list_analyses() if s.project_id != project_id]
        summaries.append(
            AnalysisSummary(
                project_id=project_id,
                project_name=record.project_name,
                timestamp=record.timestamp,
                progress=record.progress,
                risk_level=record.risk_level,
                pdf_available=True if record.pdf_data else None,
            )
        )
        await self.storage.set_item(
            ANALYSES_LIST_KEY, json.dumps([s.to_storage() for s in summaries])
        )

        await self.storage.set_item(f"{GENERATED_KEY_PREFIX}{project_id}", "true")
        await self.storage.set_item(f"{TIMESTAMP_KEY_PREFIX}{project_id}", record.timestamp)

        log_json(
            logger,
            logging.INFO,
            "analysis_saved",
            project_id=project_id,
            progress=record.progress,
            risk_level=record.risk_level,
            pdf_available=bool(record.pdf_data),
        )
