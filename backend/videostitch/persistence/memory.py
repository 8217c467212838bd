"""
In-memory clip store.

Used for local development and tests. State lives for the process
lifetime only. All map access is guarded by one re-entrant lock; the lock
is only held for dictionary operations, never across I/O.
"""

import threading
from typing import Any, Dict, List, Mapping, Optional

from ..clips.errors import ClipNotFoundError
from ..clips.models import Clip, Mark, Project
from ..export.models import ExportJob
from .base import ClipStore, merge_clip, merge_export


class InMemoryClipStore(ClipStore):
    """Dictionary-backed ClipStore."""

    def __init__(self):
        self._lock = threading.RLock()
        self._projects: Dict[str, Project] = {}
        # clip_id -> Clip (stored without marks)
        self._clips: Dict[str, Clip] = {}
        self._marks: Dict[str, Mark] = {}
        # clip_id -> mark ids in insertion order
        self._clip_marks: Dict[str, List[str]] = {}
        self._exports: Dict[str, ExportJob] = {}

    @property
    def mode(self) -> str:
        return "memory"

    # Projects

    def create_project(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._projects:
                raise ValueError(f"Project with ID '{project.id}' already exists")
            self._projects[project.id] = project.model_copy(deep=True)
        return project.model_copy(deep=True)

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            return project.model_copy(deep=True) if project else None

    def list_projects(self) -> List[Project]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._projects.values()]

    # Clips

    def _with_marks(self, clip: Clip) -> Clip:
        marks = [self._marks[mark_id] for mark_id in self._clip_marks.get(clip.id, [])]
        return clip.model_copy(update={"marks": list(marks)}, deep=True)

    def create_clip(self, clip: Clip) -> Clip:
        with self._lock:
            if clip.id in self._clips:
                raise ValueError(f"Clip with ID '{clip.id}' already exists")
            self._clips[clip.id] = clip.model_copy(update={"marks": []}, deep=True)
            self._clip_marks[clip.id] = []
            for mark in clip.marks:
                self._marks[mark.id] = mark
                self._clip_marks[clip.id].append(mark.id)
            return self._with_marks(self._clips[clip.id])

    def get_clip(self, clip_id: str) -> Optional[Clip]:
        with self._lock:
            clip = self._clips.get(clip_id)
            return self._with_marks(clip) if clip else None

    def update_clip(self, clip_id: str, changes: Mapping[str, Any], explicit: bool = False) -> Clip:
        with self._lock:
            clip = self._clips.get(clip_id)
            if clip is None:
                raise ClipNotFoundError(clip_id)
            updated = merge_clip(clip, changes, explicit=explicit)
            self._clips[clip_id] = updated
            return self._with_marks(updated)

    def delete_clip(self, clip_id: str) -> Optional[Clip]:
        with self._lock:
            clip = self._clips.get(clip_id)
            if clip is None:
                return None
            removed = self._with_marks(clip)
            for mark_id in self._clip_marks.pop(clip_id, []):
                self._marks.pop(mark_id, None)
            del self._clips[clip_id]
            return removed

    def list_clips(self, project_id: str) -> List[Clip]:
        with self._lock:
            return [
                self._with_marks(clip)
                for clip in self._clips.values()
                if clip.project_id == project_id
            ]

    # Marks

    def add_mark(self, mark: Mark) -> Mark:
        with self._lock:
            if mark.clip_id not in self._clips:
                raise ClipNotFoundError(mark.clip_id)
            if mark.id in self._marks:
                raise ValueError(f"Mark with ID '{mark.id}' already exists")
            self._marks[mark.id] = mark
            self._clip_marks[mark.clip_id].append(mark.id)
        return mark

    def get_mark(self, mark_id: str) -> Optional[Mark]:
        with self._lock:
            return self._marks.get(mark_id)

    def delete_mark(self, mark_id: str) -> bool:
        with self._lock:
            mark = self._marks.pop(mark_id, None)
            if mark is None:
                return False
            mark_ids = self._clip_marks.get(mark.clip_id, [])
            if mark_id in mark_ids:
                mark_ids.remove(mark_id)
            return True

    # Exports

    def create_export(self, export: ExportJob) -> ExportJob:
        with self._lock:
            self._exports[export.id] = export.model_copy(deep=True)
        return export.model_copy(deep=True)

    def get_export(self, export_id: str) -> Optional[ExportJob]:
        with self._lock:
            export = self._exports.get(export_id)
            return export.model_copy(deep=True) if export else None

    def update_export(self, export_id: str, changes: Mapping[str, Any]) -> ExportJob:
        with self._lock:
            export = self._exports.get(export_id)
            if export is None:
                raise KeyError(export_id)
            updated = merge_export(export, changes)
            self._exports[export_id] = updated
            return updated.model_copy(deep=True)

    def clear(self) -> None:
        """Remove everything. Useful for testing or resetting state."""
        with self._lock:
            self._projects.clear()
            self._clips.clear()
            self._marks.clear()
            self._clip_marks.clear()
            self._exports.clear()
