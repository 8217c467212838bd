"""
Persistence for projects, clips, marks and export jobs.

Two interchangeable stores behind one interface:
- InMemoryClipStore: local mode, process lifetime only
- SQLiteClipStore: database mode, single-file SQLite

Callers receive a ClipStore from create_store and never check which one.
"""

import logging
from typing import TYPE_CHECKING

from .base import ClipStore, EXPORT_MUTABLE_FIELDS
from .errors import PersistenceError, SchemaError
from .memory import InMemoryClipStore
from .sqlite import SQLiteClipStore, SCHEMA_VERSION

if TYPE_CHECKING:
    from ..settings import AppSettings

logger = logging.getLogger(__name__)


def create_store(settings: "AppSettings") -> ClipStore:
    """Pick the store implementation for the configured storage mode."""
    if settings.database_path:
        logger.info(f"[PERSISTENCE] Using SQLite store at {settings.database_path}")
        return SQLiteClipStore(settings.database_path)

    logger.info("[PERSISTENCE] Using in-memory store (local mode)")
    return InMemoryClipStore()


__all__ = [
    "ClipStore",
    "EXPORT_MUTABLE_FIELDS",
    "PersistenceError",
    "SchemaError",
    "InMemoryClipStore",
    "SQLiteClipStore",
    "SCHEMA_VERSION",
    "create_store",
]
