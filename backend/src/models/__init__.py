"""SQLAlchemy models."""

from src.models.base import Base, TimestampedModel
from src.models.storage_entry import StorageEntry

__all__ = [
    "Base",
    "StorageEntry",
    "TimestampedModel",
]
