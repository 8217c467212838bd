"""
SQLite clip store.

Single-file database, one connection per operation. Foreign keys are
enabled on every connection so deleting a clip cascades to its marks.
Marks keep insertion order via rowid.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..clips.errors import ClipNotFoundError
from ..clips.models import Clip, Mark, Project
from ..export.models import ExportJob
from .base import ClipStore, merge_clip, merge_export
from .errors import PersistenceError, SchemaError

logger = logging.getLogger(__name__)


# Database schema version for migrations
SCHEMA_VERSION = 1

_CLIP_COLUMNS = (
    "id",
    "project_id",
    "original_filename",
    "original_path",
    "uploaded_by",
    "file_size",
    "upload_date",
    "duration",
    "width",
    "height",
    "metadata_date",
    "source",
    "filename_date",
    "processing_status",
    "proxy_url",
    "thumbnail_url",
    "failure_reason",
    "failure_type",
    "included",
    "order_index",
)

_EXPORT_COLUMNS = (
    "id",
    "project_id",
    "name",
    "status",
    "progress",
    "range_count",
    "total_duration",
    "error_message",
    "created_at",
    "completed_at",
)


def _to_db(value: Any) -> Any:
    """Convert a model field value to its column representation."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if hasattr(value, "value"):  # Enum
        return value.value
    return value


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SQLiteClipStore(ClipStore):
    """
    ClipStore backed by a SQLite file.

    Safe to share across threads: no connection outlives an operation.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: Path to SQLite database file (defaults to ./videostitch.db)
        """
        if db_path is None:
            db_path = str(Path.cwd() / "videostitch.db")

        self.db_path = db_path
        self._ensure_schema()

    @property
    def mode(self) -> str:
        return "sqlite"

    @contextmanager
    def _connect(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row  # Access columns by name
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self):
        """Create schema if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version > SCHEMA_VERSION:
                raise SchemaError(
                    f"Database schema version {current_version} is newer than "
                    f"supported version {SCHEMA_VERSION}"
                )

            if current_version < SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

    def _migrate_schema(self, conn, from_version: int):
        """Apply schema migrations."""
        cursor = conn.cursor()

        if from_version < 1:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    status TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS clips (
                    id TEXT PRIMARY KEY,
                    project_id TEXT NOT NULL,
                    original_filename TEXT NOT NULL,
                    original_path TEXT NOT NULL,
                    uploaded_by TEXT NOT NULL,
                    file_size INTEGER NOT NULL DEFAULT 0,
                    upload_date TEXT NOT NULL,
                    duration REAL,
                    width INTEGER,
                    height INTEGER,
                    metadata_date TEXT,
                    source TEXT NOT NULL,
                    filename_date TEXT,
                    processing_status TEXT NOT NULL,
                    proxy_url TEXT,
                    thumbnail_url TEXT,
                    failure_reason TEXT,
                    failure_type TEXT,
                    included INTEGER NOT NULL DEFAULT 1,
                    order_index INTEGER NOT NULL DEFAULT 0
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_clips_project_id
                ON clips (project_id)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS marks (
                    id TEXT PRIMARY KEY,
                    clip_id TEXT NOT NULL,
                    in_point REAL NOT NULL,
                    out_point REAL NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (clip_id) REFERENCES clips (id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_marks_clip_id
                ON marks (clip_id)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS exports (
                    id TEXT PRIMARY KEY,
                    project_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL,
                    progress INTEGER NOT NULL DEFAULT 0,
                    range_count INTEGER NOT NULL DEFAULT 0,
                    total_duration REAL NOT NULL DEFAULT 0,
                    error_message TEXT,
                    created_at TEXT NOT NULL,
                    completed_at TEXT
                )
            """)

            cursor.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, datetime.now(timezone.utc).isoformat()),
            )
            logger.info(f"[PERSISTENCE] Created schema v1 at {self.db_path}")

    # Row conversion

    @staticmethod
    def _row_to_project(row) -> Project:
        return Project(
            id=row["id"],
            name=row["name"],
            created_at=_parse_dt(row["created_at"]),
            status=row["status"],
        )

    @staticmethod
    def _row_to_mark(row) -> Mark:
        return Mark(
            id=row["id"],
            clip_id=row["clip_id"],
            in_point=row["in_point"],
            out_point=row["out_point"],
            created_at=_parse_dt(row["created_at"]),
        )

    @staticmethod
    def _row_to_clip(row, marks: List[Mark]) -> Clip:
        return Clip(
            id=row["id"],
            project_id=row["project_id"],
            original_filename=row["original_filename"],
            original_path=row["original_path"],
            uploaded_by=row["uploaded_by"],
            file_size=row["file_size"],
            upload_date=_parse_dt(row["upload_date"]),
            duration=row["duration"],
            width=row["width"],
            height=row["height"],
            metadata_date=_parse_dt(row["metadata_date"]),
            source=row["source"],
            filename_date=_parse_dt(row["filename_date"]),
            processing_status=row["processing_status"],
            proxy_url=row["proxy_url"],
            thumbnail_url=row["thumbnail_url"],
            failure_reason=row["failure_reason"],
            failure_type=row["failure_type"],
            included=bool(row["included"]),
            order_index=row["order_index"],
            marks=marks,
        )

    @staticmethod
    def _row_to_export(row) -> ExportJob:
        return ExportJob(
            id=row["id"],
            project_id=row["project_id"],
            name=row["name"],
            status=row["status"],
            progress=row["progress"],
            range_count=row["range_count"],
            total_duration=row["total_duration"],
            error_message=row["error_message"],
            created_at=_parse_dt(row["created_at"]),
            completed_at=_parse_dt(row["completed_at"]),
        )

    def _load_marks(self, conn, clip_id: str) -> List[Mark]:
        rows = conn.execute(
            "SELECT * FROM marks WHERE clip_id = ? ORDER BY rowid",
            (clip_id,),
        ).fetchall()
        return [self._row_to_mark(row) for row in rows]

    def _load_clip(self, conn, clip_id: str) -> Optional[Clip]:
        row = conn.execute("SELECT * FROM clips WHERE id = ?", (clip_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_clip(row, self._load_marks(conn, clip_id))

    # Projects

    def create_project(self, project: Project) -> Project:
        with self._connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO projects (id, name, created_at, status) VALUES (?, ?, ?, ?)",
                    (project.id, project.name, _to_db(project.created_at), project.status),
                )
            except sqlite3.IntegrityError:
                raise ValueError(f"Project with ID '{project.id}' already exists")
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
            return self._row_to_project(row) if row else None

    def list_projects(self) -> List[Project]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM projects ORDER BY rowid").fetchall()
            return [self._row_to_project(row) for row in rows]

    # Clips

    def create_clip(self, clip: Clip) -> Clip:
        placeholders = ", ".join("?" for _ in _CLIP_COLUMNS)
        values = tuple(_to_db(getattr(clip, column)) for column in _CLIP_COLUMNS)

        with self._connect() as conn:
            try:
                conn.execute(
                    f"INSERT INTO clips ({', '.join(_CLIP_COLUMNS)}) VALUES ({placeholders})",
                    values,
                )
            except sqlite3.IntegrityError:
                raise ValueError(f"Clip with ID '{clip.id}' already exists")
            for mark in clip.marks:
                self._insert_mark(conn, mark)
            return self._load_clip(conn, clip.id)

    def get_clip(self, clip_id: str) -> Optional[Clip]:
        with self._connect() as conn:
            return self._load_clip(conn, clip_id)

    def update_clip(self, clip_id: str, changes: Mapping[str, Any], explicit: bool = False) -> Clip:
        with self._connect() as conn:
            # Take the write lock before reading so the merge is atomic
            conn.execute("BEGIN IMMEDIATE")
            current = self._load_clip(conn, clip_id)
            if current is None:
                raise ClipNotFoundError(clip_id)

            updated = merge_clip(current, changes, explicit=explicit)
            if changes:
                columns = sorted(changes)
                assignments = ", ".join(f"{column} = ?" for column in columns)
                values = tuple(_to_db(getattr(updated, column)) for column in columns)
                conn.execute(
                    f"UPDATE clips SET {assignments} WHERE id = ?",
                    values + (clip_id,),
                )
            return updated

    def delete_clip(self, clip_id: str) -> Optional[Clip]:
        with self._connect() as conn:
            existing = self._load_clip(conn, clip_id)
            if existing is None:
                return None
            conn.execute("DELETE FROM clips WHERE id = ?", (clip_id,))
            return existing

    def list_clips(self, project_id: str) -> List[Clip]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM clips WHERE project_id = ? ORDER BY rowid",
                (project_id,),
            ).fetchall()
            return [self._row_to_clip(row, self._load_marks(conn, row["id"])) for row in rows]

    # Marks

    @staticmethod
    def _insert_mark(conn, mark: Mark) -> None:
        conn.execute(
            """
            INSERT INTO marks (id, clip_id, in_point, out_point, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (mark.id, mark.clip_id, mark.in_point, mark.out_point, _to_db(mark.created_at)),
        )

    def add_mark(self, mark: Mark) -> Mark:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM clips WHERE id = ?", (mark.clip_id,)).fetchone()
            if row is None:
                raise ClipNotFoundError(mark.clip_id)
            try:
                self._insert_mark(conn, mark)
            except sqlite3.IntegrityError:
                raise ValueError(f"Mark with ID '{mark.id}' already exists")
        return mark

    def get_mark(self, mark_id: str) -> Optional[Mark]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM marks WHERE id = ?", (mark_id,)).fetchone()
            return self._row_to_mark(row) if row else None

    def delete_mark(self, mark_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM marks WHERE id = ?", (mark_id,))
            return cursor.rowcount > 0

    # Exports

    def create_export(self, export: ExportJob) -> ExportJob:
        placeholders = ", ".join("?" for _ in _EXPORT_COLUMNS)
        values = tuple(_to_db(getattr(export, column)) for column in _EXPORT_COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO exports ({', '.join(_EXPORT_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
        return export

    def get_export(self, export_id: str) -> Optional[ExportJob]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM exports WHERE id = ?", (export_id,)).fetchone()
            return self._row_to_export(row) if row else None

    def update_export(self, export_id: str, changes: Mapping[str, Any]) -> ExportJob:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM exports WHERE id = ?", (export_id,)).fetchone()
            if row is None:
                raise KeyError(export_id)

            updated = merge_export(self._row_to_export(row), changes)
            if changes:
                columns = sorted(changes)
                assignments = ", ".join(f"{column} = ?" for column in columns)
                values = tuple(_to_db(getattr(updated, column)) for column in columns)
                conn.execute(
                    f"UPDATE exports SET {assignments} WHERE id = ?",
                    values + (export_id,),
                )
            return updated
