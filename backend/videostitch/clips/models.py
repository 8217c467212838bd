"""
Project, Clip and Mark data models.

A Project owns Clips; a Clip owns its Marks (insertion order).
Each clip moves independently through its processing status.
One clip failing must never affect other clips.

All models use Pydantic for validation.
State transitions are validated externally (see state.py).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..metadata.models import SourceCategory


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ProcessingStatus(str, Enum):
    """
    Clip pipeline status.

    New uploads start in PROCESSING: ingestion begins immediately and there
    is no separate queued state. PENDING exists for records created without
    an ingest (e.g. rows written by another process).
    """

    PENDING = "pending"  # Recorded, pipeline not started
    PROCESSING = "processing"  # Probe/transcode in flight
    READY = "ready"  # Proxy and thumbnail available
    FAILED = "failed"  # Pipeline stopped; needs explicit re-ingest


class Project(BaseModel):
    """A collaboration container for clips."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_id)
    name: str
    created_at: datetime = Field(default_factory=utc_now)
    status: str = "active"


class Mark(BaseModel):
    """
    One in/out range on a clip.

    Created and deleted, never mutated in place.
    Range validity is checked by the service at creation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=new_id)
    clip_id: str
    in_point: float
    out_point: float
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def duration(self) -> float:
        return self.out_point - self.in_point


class Clip(BaseModel):
    """
    One uploaded raw video with its derived artifacts and status.

    INVARIANT: processing_status == READY implies proxy_url and
    thumbnail_url are both set. PROCESSING and FAILED clips carry no
    artifact locations.
    """

    model_config = ConfigDict(extra="forbid")

    # Identity
    id: str = Field(default_factory=new_id)
    project_id: str

    # Immutable inputs
    original_filename: str
    original_path: str
    uploaded_by: str = "anonymous"
    file_size: int = 0
    upload_date: datetime = Field(default_factory=utc_now)

    # Technical metadata (populated by the probe)
    duration: Optional[float] = None  # seconds
    width: Optional[int] = None
    height: Optional[int] = None
    metadata_date: Optional[datetime] = None  # container creation_time

    # Filename-derived
    source: SourceCategory = SourceCategory.OTHER
    filename_date: Optional[datetime] = None

    # Pipeline
    processing_status: ProcessingStatus = ProcessingStatus.PROCESSING
    proxy_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    failure_reason: Optional[str] = None
    failure_type: Optional[str] = None

    # Editorial
    included: bool = True
    order_index: int = 0
    marks: List[Mark] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.processing_status == ProcessingStatus.READY

    @property
    def known_duration(self) -> float:
        """Duration in seconds, 0 when unknown."""
        return self.duration or 0.0


# Fields the pipeline and editorial operations may change after creation.
# Everything else on Clip is fixed at upload.
MUTABLE_CLIP_FIELDS = frozenset({
    "duration",
    "width",
    "height",
    "metadata_date",
    "processing_status",
    "proxy_url",
    "thumbnail_url",
    "failure_reason",
    "failure_type",
    "included",
    "order_index",
})
