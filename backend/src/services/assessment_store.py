"""Assessment state store.

Owns the canonical questionnaire record for each project, keeps it in sync
with key/value storage, and exposes the derived progress and risk metrics.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from src.core.config import Settings, get_settings
from src.core.errors import StorageError, UnknownFieldError
from src.core.metrics import observe_assessment_save
from src.core.questionnaire import QuestionnaireSchema, get_questionnaire
from src.core.structured_logging import log_json
from src.schemas.assessment import (
    AssessmentRecord,
    DerivedMetrics,
    PendingItem,
    ProgressSummary,
    RiskLevel,
)
from src.services import progress_service
from src.services.storage_service import KeyValueStorage, get_storage

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "assessment_"


def assessment_storage_key(project_id: str) -> str:
    return f"{STORAGE_KEY_PREFIX}{project_id}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AssessmentStateStore:
    """Load/save/merge questionnaire records and derive their metrics.

    The store keeps the session record of every project it has served. That
    record stays authoritative when a write fails; storage only replaces it
    when the persisted copy is newer (or equally new and the session record
    has nothing unsaved). Storage problems never propagate: a missing or
    unreadable record becomes the empty default and failed writes are
    logged. Only unknown field ids raise (UnknownFieldError).
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        schema: QuestionnaireSchema | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.schema = schema or get_questionnaire()
        self.settings = settings or get_settings()
        self._clock = clock
        self._save_started_at: dict[str, datetime] = {}
        self._last_saved_at: dict[str, datetime] = {}
        self._records: dict[str, AssessmentRecord] = {}
        # Projects whose session record may differ from storage
        self._unsaved: set[str] = set()

    # -- record lifecycle -------------------------------------------------

    def new_record(self, project_id: str) -> AssessmentRecord:
        """Empty default record: every field blank, no auto sections done."""
        return AssessmentRecord(
            project_id=project_id,
            answers=self.schema.empty_answers(),
            last_updated=self._clock(),
            auto_sections_completed=frozenset(),
        )

    async def _read(self, project_id: str) -> AssessmentRecord | None:
        key = assessment_storage_key(project_id)
        try:
            raw = await self.storage.get_item(key)
        except StorageError as exc:
            log_json(
                logger,
                logging.WARNING,
                "assessment_load_failed",
                project_id=project_id,
                error=str(exc),
            )
            return None

        if raw is None:
            return None

        try:
            return self._parse(project_id, raw)
        except ValueError as exc:
            # json.JSONDecodeError and pydantic.ValidationError are ValueErrors
            log_json(
                logger,
                logging.WARNING,
                "assessment_record_corrupt",
                project_id=project_id,
                error=str(exc),
            )
            return None

    def _parse(self, project_id: str, raw: str) -> AssessmentRecord:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("stored record is not an object")

        stored_answers = data.get("assessmentData")
        if not isinstance(stored_answers, dict):
            raise ValueError("assessmentData is missing or not an object")

        answers = self.schema.empty_answers()
        dropped = []
        for field_name, value in stored_answers.items():
            if field_name not in answers:
                dropped.append(field_name)
                continue
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"answer for {field_name} is not a string")
            answers[field_name] = value

        if dropped:
            log_json(
                logger,
                logging.INFO,
                "assessment_fields_dropped",
                project_id=project_id,
                fields=sorted(dropped),
            )

        stored_project_id = data.get("projectId")
        if stored_project_id not in (None, project_id):
            log_json(
                logger,
                logging.WARNING,
                "assessment_project_mismatch",
                project_id=project_id,
                stored_project_id=stored_project_id,
            )

        try:
            return AssessmentRecord(
                project_id=project_id,
                answers=answers,
                last_updated=data.get("lastUpdated"),
                auto_sections_completed=data.get("autoSectionsCompleted"),
            )
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

    async def load(self, project_id: str) -> AssessmentRecord:
        """Return the project's current record.

        The session record wins over storage while it holds unsaved changes
        and is at least as new as the persisted copy; otherwise the persisted
        record (or the empty default when there is none) is adopted. Never
        raises for missing or corrupted storage.
        """
        persisted = await self._read(project_id)
        cached = self._records.get(project_id)
        if cached is not None:
            if persisted is None:
                return cached
            if project_id in self._unsaved and persisted.last_updated <= cached.last_updated:
                return cached

        record = persisted or self.new_record(project_id)
        self.remember(record, unsaved=False)
        return record

    def remember(self, record: AssessmentRecord, unsaved: bool = True) -> None:
        """Make record the project's session record unless a newer one is held."""
        cached = self._records.get(record.project_id)
        if cached is not None and cached.last_updated > record.last_updated:
            return
        self._records[record.project_id] = record
        if unsaved:
            self._unsaved.add(record.project_id)
        else:
            self._unsaved.discard(record.project_id)

    async def save(self, record: AssessmentRecord) -> None:
        """Write the record under ``assessment_<projectId>``.

        Failures are logged and otherwise ignored; the record stays the
        session record so later loads still see it.
        """
        self.remember(record)
        self.mark_saving(record.project_id)
        key = assessment_storage_key(record.project_id)
        try:
            await self.storage.set_item(key, json.dumps(record.to_storage()))
        except StorageError as exc:
            observe_assessment_save(ok=False)
            log_json(
                logger,
                logging.WARNING,
                "assessment_save_failed",
                project_id=record.project_id,
                error=str(exc),
            )
            return

        if self._records.get(record.project_id) == record:
            self._unsaved.discard(record.project_id)
        self._last_saved_at[record.project_id] = self._clock()
        observe_assessment_save(ok=True)
        log_json(
            logger,
            logging.DEBUG,
            "assessment_saved",
            project_id=record.project_id,
            last_updated=record.last_updated,
        )

    async def reset_record(self, project_id: str) -> AssessmentRecord:
        """Delete the stored record and return a fresh empty one. Not undoable."""
        removed = True
        try:
            await self.storage.remove_item(assessment_storage_key(project_id))
        except StorageError as exc:
            removed = False
            log_json(
                logger,
                logging.WARNING,
                "assessment_reset_failed",
                project_id=project_id,
                error=str(exc),
            )
        log_json(logger, logging.INFO, "assessment_reset", project_id=project_id)
        record = self.new_record(project_id)
        self._records[project_id] = record
        if removed:
            self._unsaved.discard(project_id)
        else:
            self._unsaved.add(project_id)
        return record

    async def reload(
        self, current: AssessmentRecord
    ) -> tuple[AssessmentRecord, str]:
        """Reconcile a client-held record with storage (last write wins).

        The winner becomes the session record.

        Returns:
            (record, source) where source is "storage" when the persisted record
            replaced the client one and "client" when it was discarded
        """
        persisted = await self._read(current.project_id)
        if persisted is None or persisted.last_updated < current.last_updated:
            self.remember(current)
            return current, "client"
        self.remember(persisted, unsaved=False)
        return persisted, "storage"

    # -- pure mutations ---------------------------------------------------

    def _touch(self, record: AssessmentRecord) -> datetime:
        # Never move lastUpdated backwards, even if the clock does
        return max(self._clock(), record.last_updated)

    def set_field(
        self, record: AssessmentRecord, field_name: str, value: str
    ) -> AssessmentRecord:
        """Return a copy of record with one answer replaced and lastUpdated refreshed.

        Raises:
            UnknownFieldError: field_name is not part of the questionnaire
        """
        return self.set_fields(record, {field_name: value})

    def set_fields(
        self, record: AssessmentRecord, values: Mapping[str, str]
    ) -> AssessmentRecord:
        """Apply several answers at once; nothing changes if any id is unknown."""
        for field_name in values:
            if not self.schema.has_field(field_name):
                raise UnknownFieldError(field_name)

        answers = dict(record.answers)
        answers.update(values)
        return record.model_copy(
            update={"answers": answers, "last_updated": self._touch(record)}
        )

    def record_from_client(
        self,
        project_id: str,
        answers: Mapping[str, str],
        last_updated: datetime,
        auto_sections_completed: Iterable[int] = (),
    ) -> AssessmentRecord:
        """Rebuild a record held by a client, keeping its own timestamp.

        Raises:
            UnknownFieldError: an answer id is not part of the questionnaire
        """
        merged = self.schema.empty_answers()
        for field_name, value in answers.items():
            if field_name not in merged:
                raise UnknownFieldError(field_name)
            merged[field_name] = value
        return AssessmentRecord(
            project_id=project_id,
            answers=merged,
            last_updated=last_updated,
            auto_sections_completed=frozenset(auto_sections_completed),
        )

    def mark_auto_sections_from_signal(
        self, record: AssessmentRecord, section_numbers: Iterable[int]
    ) -> AssessmentRecord:
        """Replace the completed auto-section set wholesale."""
        return record.model_copy(
            update={"auto_sections_completed": frozenset(section_numbers)}
        )

    # -- save indicator ---------------------------------------------------

    def mark_saving(self, project_id: str) -> None:
        self._save_started_at[project_id] = self._clock()

    def is_saving(self, project_id: str) -> bool:
        """True for a short hold window after a save was started."""
        started = self._save_started_at.get(project_id)
        if started is None:
            return False
        hold = timedelta(seconds=self.settings.save_indicator_seconds)
        return self._clock() - started < hold

    def last_saved_at(self, project_id: str) -> datetime | None:
        return self._last_saved_at.get(project_id)

    # -- derived metrics --------------------------------------------------

    def compute_completion_percentage(self, record: AssessmentRecord) -> int:
        return progress_service.compute_completion_percentage(record, self.schema)

    def compute_risk_level(self, record: AssessmentRecord) -> RiskLevel:
        return progress_service.compute_risk_level(record, self.schema)

    def compute_completed_section_count(self, record: AssessmentRecord) -> int:
        return progress_service.compute_completed_section_count(record, self.schema)

    def list_pending_items(self, record: AssessmentRecord) -> list[PendingItem]:
        return progress_service.list_pending_items(record, self.schema)

    def derive_metrics(self, record: AssessmentRecord) -> DerivedMetrics:
        return progress_service.derive_metrics(record, self.schema)

    def progress_summary(self, record: AssessmentRecord) -> ProgressSummary:
        return progress_service.progress_summary(record, self.schema, now=self._clock())


# Singleton instance
_store: AssessmentStateStore | None = None


def get_assessment_store() -> AssessmentStateStore:
    """Get assessment store singleton bound to the configured storage."""
    global _store
    if _store is None:
        _store = AssessmentStateStore(get_storage())
    return _store
