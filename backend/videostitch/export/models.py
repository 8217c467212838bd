"""
Export data models.

ExportPlan is the computed set of ranges to render; ExportJob tracks one
export request. Rendering itself happens elsewhere: a job only records
the plan summary and moves to READY.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..clips.models import Clip, new_id, utc_now


class ExportRange(BaseModel):
    """One exportable time range on a clip."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    in_point: float
    out_point: float
    mark_id: Optional[str] = None  # None for a whole-clip range

    @property
    def duration(self) -> float:
        return self.out_point - self.in_point

    @property
    def is_whole_clip(self) -> bool:
        return self.mark_id is None


class ClipExportRanges(BaseModel):
    """A clip and the ranges it contributes to an export."""

    model_config = ConfigDict(extra="forbid")

    clip: Clip
    ranges: List[ExportRange] = Field(default_factory=list)

    @property
    def duration(self) -> float:
        return sum(r.duration for r in self.ranges)


class ExportPlan(BaseModel):
    """
    Everything an export would render, in clip order.

    range_count counts ranges (marks, or one per unmarked clip).
    mark_count counts explicit marks only.
    """

    model_config = ConfigDict(extra="forbid")

    range_count: int = 0
    total_duration: float = 0.0
    mark_count: int = 0
    clip_count: int = 0
    per_clip: List[ClipExportRanges] = Field(default_factory=list)


class ExportStatus(str, Enum):
    """Export job status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class ExportJob(BaseModel):
    """One export request for a project."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_id)
    project_id: str
    name: str = "export"
    status: ExportStatus = ExportStatus.QUEUED
    progress: int = 0  # 0 - 100
    range_count: int = 0
    total_duration: float = 0.0
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
