"""
Persistence interface.

One interface, interchangeable implementations (in-memory, SQLite).
Nothing above this layer branches on storage mode.

Rules every implementation follows:
- Thread-safe: called from request handlers and pipeline workers at once
- Returned models are copies; mutating them never changes stored state
- update_clip applies a PARTIAL change set, so a pipeline write never
  clobbers concurrent editorial edits or marks
- A status change is checked against the STORED status inside the same
  atomic update
- Clips are returned with their marks populated in insertion order
- Deleting a clip deletes its marks
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..clips.models import Clip, Mark, Project, ProcessingStatus, MUTABLE_CLIP_FIELDS
from ..clips.state import validate_clip_transition
from ..export.models import ExportJob

EXPORT_MUTABLE_FIELDS = frozenset({
    "status",
    "progress",
    "range_count",
    "total_duration",
    "error_message",
    "completed_at",
})


def check_changes(changes: Mapping[str, Any], allowed: frozenset, entity: str) -> Dict[str, Any]:
    """
    Reject changes to fields that are fixed after creation.

    Raises:
        ValueError: Unknown or immutable field
    """
    invalid = sorted(set(changes) - allowed)
    if invalid:
        raise ValueError(f"Cannot update {entity} field(s): {', '.join(invalid)}")
    return dict(changes)


class ClipStore(ABC):
    """Storage for projects, clips, marks and export jobs."""

    @property
    @abstractmethod
    def mode(self) -> str:
        """Short storage mode name for health output."""
        pass

    # Projects

    @abstractmethod
    def create_project(self, project: Project) -> Project:
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    def list_projects(self) -> List[Project]:
        pass

    # Clips

    @abstractmethod
    def create_clip(self, clip: Clip) -> Clip:
        """
        Store a new clip.

        Raises:
            ValueError: A clip with the same id already exists
        """
        pass

    @abstractmethod
    def get_clip(self, clip_id: str) -> Optional[Clip]:
        pass

    @abstractmethod
    def update_clip(
        self,
        clip_id: str,
        changes: Mapping[str, Any],
        explicit: bool = False,
    ) -> Clip:
        """
        Apply a partial update atomically and return the updated clip.

        explicit=True permits the re-ingest transition FAILED -> PROCESSING.

        Raises:
            ClipNotFoundError: Clip does not exist (e.g. deleted meanwhile)
            InvalidStateTransitionError: Stored status cannot move to the new one
            ValueError: Field is not mutable
        """
        pass

    @abstractmethod
    def delete_clip(self, clip_id: str) -> Optional[Clip]:
        """Delete a clip and its marks. Returns the removed clip, or None."""
        pass

    @abstractmethod
    def list_clips(self, project_id: str) -> List[Clip]:
        """Clips of a project in creation order."""
        pass

    # Marks

    @abstractmethod
    def add_mark(self, mark: Mark) -> Mark:
        """
        Append a mark to its clip.

        Raises:
            ClipNotFoundError: Owning clip does not exist
        """
        pass

    @abstractmethod
    def get_mark(self, mark_id: str) -> Optional[Mark]:
        pass

    @abstractmethod
    def delete_mark(self, mark_id: str) -> bool:
        """Delete a mark. Returns False if it did not exist."""
        pass

    # Exports

    @abstractmethod
    def create_export(self, export: ExportJob) -> ExportJob:
        pass

    @abstractmethod
    def get_export(self, export_id: str) -> Optional[ExportJob]:
        pass

    @abstractmethod
    def update_export(self, export_id: str, changes: Mapping[str, Any]) -> ExportJob:
        """
        Raises:
            KeyError: Export job does not exist
        """
        pass


def merge_clip(clip: Clip, changes: Mapping[str, Any], explicit: bool = False) -> Clip:
    """Validated copy of clip with changes applied."""
    checked = check_changes(changes, MUTABLE_CLIP_FIELDS, "clip")
    if "processing_status" in checked:
        validate_clip_transition(
            clip.processing_status,
            ProcessingStatus(checked["processing_status"]),
            explicit=explicit,
        )
    data = clip.model_dump()
    data.update(checked)
    return Clip.model_validate(data)


def merge_export(export: ExportJob, changes: Mapping[str, Any]) -> ExportJob:
    checked = check_changes(changes, EXPORT_MUTABLE_FIELDS, "export")
    data = export.model_dump()
    data.update(checked)
    return ExportJob.model_validate(data)
