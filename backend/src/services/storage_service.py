"""Key/value storage backends for assessment state.

Values are opaque strings (JSON documents written by the callers), keyed the
same way the questionnaire client keys its browser storage, e.g.
``assessment_<projectId>``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config import get_settings
from src.core.errors import StorageError
from src.models.storage_entry import StorageEntry

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Minimal string key/value store."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Create or overwrite the value for key."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete key; absent keys are ignored."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with prefix, sorted."""


class InMemoryStorage(KeyValueStorage):
    """Process-local storage used in development and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._items if k.startswith(prefix))


class DatabaseStorage(KeyValueStorage):
    """PostgreSQL-backed storage using the ``storage_entries`` table.

    Each operation runs in its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_item(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StorageEntry.value).where(StorageEntry.key == key)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {key}") from exc

    async def set_item(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        stmt = insert(StorageEntry).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[StorageEntry.key],
            set_={"value": stmt.excluded.value, "updated_at": now},
        )
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key}") from exc

    async def remove_item(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(StorageEntry).where(StorageEntry.key == key))
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete {key}") from exc

    async def keys(self, prefix: str = "") -> list[str]:
        query = select(StorageEntry.key).order_by(StorageEntry.key)
        if prefix:
            query = query.where(StorageEntry.key.startswith(prefix, autoescape=True))
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list keys") from exc


# Singleton instance
_storage: KeyValueStorage | None = None


def get_storage() -> KeyValueStorage:
    """Get the configured storage backend singleton.

    Returns:
        KeyValueStorage for the STORAGE_BACKEND setting
    """
    global _storage
    if _storage is None:
        settings = get_settings()
        if settings.storage_backend == "database":
            from src.core.database import get_session_factory

            _storage = DatabaseStorage(get_session_factory())
        else:
            _storage = InMemoryStorage()
        logger.info("Using %s assessment storage", settings.storage_backend)
    return _storage
