"""
ClipService: synchronous clip, mark and project operations.

Everything here runs on the caller's thread and raises to the caller.
Pipeline work is in IngestionService; this service only reads pipeline
state (current_status) and edits editorial fields.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional, Union

from ..clips.errors import (
    ClipNotFoundError,
    InvalidRangeError,
    ProjectNotFoundError,
)
from ..clips.models import Clip, Mark, ProcessingStatus, Project
from ..execution.paths import ArtifactLayout
from ..export.models import ExportPlan
from ..export.plan import compute_export_plan
from ..ordering.ranking import SortMode, sort_clips
from ..persistence.base import ClipStore

logger = logging.getLogger(__name__)


def validate_range(in_point: float, out_point: float, duration: Optional[float]) -> None:
    """
    Check 0 <= in < out <= duration.

    The duration bound applies only when the duration is known and > 0.

    Raises:
        InvalidRangeError: Range is not valid for the clip
    """
    if not (math.isfinite(in_point) and math.isfinite(out_point)):
        raise InvalidRangeError(in_point, out_point, "in and out must be finite numbers")
    if in_point < 0:
        raise InvalidRangeError(in_point, out_point, "in point must not be negative")
    if out_point <= in_point:
        raise InvalidRangeError(in_point, out_point, "out point must be after in point")
    if duration and duration > 0 and out_point > duration:
        raise InvalidRangeError(
            in_point, out_point, f"out point exceeds clip duration ({duration}s)"
        )


class ClipService:
    """
    Project, clip and mark operations over a ClipStore.

    Holds no state of its own; safe to share between request handlers.
    """

    def __init__(self, store: ClipStore, layout: ArtifactLayout):
        self.store = store
        self.layout = layout

    # Projects

    def create_project(self, name: str) -> Project:
        name = (name or "").strip()
        if not name:
            raise ValueError("Project name must not be empty")
        project = self.store.create_project(Project(name=name))
        logger.info(f"Created project {project.id} ({project.name})")
        return project

    def get_project(self, project_id: str) -> Project:
        """
        Raises:
            ProjectNotFoundError: Project does not exist
        """
        project = self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    # Clips

    def get_clip(self, clip_id: str) -> Clip:
        clip = self.store.get_clip(clip_id)
        if clip is None:
            raise ClipNotFoundError(clip_id)
        return clip

    def current_status(self, clip_id: str) -> ProcessingStatus:
        """
        Raises:
            ClipNotFoundError: Clip does not exist
        """
        return self.get_clip(clip_id).processing_status

    def sorted_clips(
        self,
        project_id: str,
        mode: Union[SortMode, str] = SortMode.SMART,
    ) -> List[Clip]:
        """
        Clips of a project in the requested order.

        Raises:
            ProjectNotFoundError: Project does not exist
            ValueError: Unknown sort mode
        """
        self.get_project(project_id)
        return sort_clips(self.store.list_clips(project_id), mode)

    def update_editorial(
        self,
        clip_id: str,
        included: Optional[bool] = None,
        order_index: Optional[int] = None,
    ) -> Clip:
        """
        Change the editorial fields of a clip. Pipeline fields are untouched.

        Raises:
            ClipNotFoundError: Clip does not exist
        """
        changes = {}
        if included is not None:
            changes["included"] = included
        if order_index is not None:
            changes["order_index"] = order_index

        if not changes:
            return self.get_clip(clip_id)
        return self.store.update_clip(clip_id, changes)

    def delete_clip(self, clip_id: str) -> bool:
        """
        Delete a clip with its marks, original upload and artifacts.

        Idempotent: deleting an unknown clip returns False.
        """
        clip = self.store.delete_clip(clip_id)
        if clip is None:
            return False

        removed = self.layout.discard(clip_id)
        original = Path(clip.original_path)
        try:
            original.unlink()
            removed += 1
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove original upload {original}: {e}")

        logger.info(f"Deleted clip {clip_id} ({len(clip.marks)} marks, {removed} files)")
        return True

    # Marks

    def add_mark(self, clip_id: str, in_point: float, out_point: float) -> Mark:
        """
        Add an in/out range to a clip.

        Raises:
            ClipNotFoundError: Clip does not exist
            InvalidRangeError: Range is not valid for the clip
        """
        clip = self.get_clip(clip_id)
        in_point = float(in_point)
        out_point = float(out_point)
        validate_range(in_point, out_point, clip.duration)
        return self.store.add_mark(Mark(clip_id=clip_id, in_point=in_point, out_point=out_point))

    def remove_mark(self, mark_id: str) -> None:
        """Delete a mark. Unknown marks are ignored."""
        if not self.store.delete_mark(mark_id):
            logger.debug(f"Mark {mark_id} already removed")

    # Export planning

    def export_plan(
        self,
        project_id: str,
        mode: Union[SortMode, str] = SortMode.MANUAL,
    ) -> ExportPlan:
        """
        Export plan over the project's clips in the given order.

        Pure recomputation; no transcoding is triggered.
        """
        return compute_export_plan(self.sorted_clips(project_id, mode))
