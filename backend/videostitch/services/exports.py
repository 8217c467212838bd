"""
ExportService: export job bookkeeping.

Rendering is not implemented. A job computes the export plan for the
project, records its summary and moves straight to READY:

    QUEUED -> PROCESSING -> READY
                        \\-> FAILED (plan could not be computed)
"""

import logging

from ..clips.errors import ProjectNotFoundError
from ..clips.models import utc_now
from ..export.models import ExportJob, ExportStatus
from ..ordering.ranking import SortMode
from ..persistence.base import ClipStore
from .clips import ClipService

logger = logging.getLogger(__name__)


class ExportNotFoundError(Exception):
    """Raised when an export job ID does not exist."""

    def __init__(self, export_id: str):
        self.export_id = export_id
        super().__init__(f"Export not found: {export_id}")


class ExportService:
    """Creates and tracks export jobs."""

    def __init__(self, store: ClipStore, clips: ClipService):
        self.store = store
        self.clips = clips

    def start_export(self, project_id: str, name: str = "export") -> ExportJob:
        """
        Create an export job for a project and run it.

        Raises:
            ProjectNotFoundError: Project does not exist
        """
        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)

        job = self.store.create_export(ExportJob(project_id=project_id, name=name or "export"))
        logger.info(f"[EXPORT] Queued export {job.id} for project {project_id}")

        job = self.store.update_export(job.id, {"status": ExportStatus.PROCESSING})
        try:
            plan = self.clips.export_plan(project_id, SortMode.MANUAL)
        except Exception as e:
            logger.error(f"[EXPORT] Export {job.id} failed: {e}")
            return self.store.update_export(job.id, {
                "status": ExportStatus.FAILED,
                "error_message": str(e),
                "completed_at": utc_now(),
            })

        job = self.store.update_export(job.id, {
            "status": ExportStatus.READY,
            "progress": 100,
            "range_count": plan.range_count,
            "total_duration": plan.total_duration,
            "completed_at": utc_now(),
        })
        logger.info(
            f"[EXPORT] Export {job.id} ready: {plan.range_count} ranges, "
            f"{plan.total_duration:.2f}s from {plan.clip_count} clips"
        )
        return job

    def get_export(self, export_id: str) -> ExportJob:
        """
        Raises:
            ExportNotFoundError: Export does not exist
        """
        job = self.store.get_export(export_id)
        if job is None:
            raise ExportNotFoundError(export_id)
        return job
