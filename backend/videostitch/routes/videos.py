"""
Video (clip) endpoints.

Upload stores the original under a collision-free name, creates the
clip record and schedules its pipeline; the response returns before any
transcoding happens. Clients poll /status.
"""

import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel, ConfigDict

from ..clips.errors import (
    ClipNotFoundError,
    InvalidStateTransitionError,
    ProjectNotFoundError,
)
from ..clips.models import Clip, ProcessingStatus
from ..services.ingestion import IngestionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["videos"])

ALLOWED_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v", ".3gp"})


def stored_upload_name(original_filename: str) -> str:
    """<epoch_ms>-<uuid4><ext>, extension lower-cased."""
    ext = Path(original_filename).suffix.lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}{ext}"


class ClipResponse(BaseModel):
    success: bool = True
    video: Clip


class StatusResponse(BaseModel):
    id: str
    processing_status: ProcessingStatus
    proxy_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    failure_reason: Optional[str] = None


class UpdateClipRequest(BaseModel):
    """Editorial fields only; pipeline fields are not client-writable."""

    model_config = ConfigDict(extra="forbid")

    included: Optional[bool] = None
    order_index: Optional[int] = None


class OperationResponse(BaseModel):
    success: bool = True


@router.post("/projects/{project_id}/videos", response_model=ClipResponse, status_code=201)
def upload_video(
    project_id: str,
    request: Request,
    video: UploadFile = File(...),
    uploaded_by: str = Form(default="anonymous", alias="uploadedBy"),
):
    settings = request.app.state.settings
    ingestion = request.app.state.ingestion_service

    original_filename = Path(video.filename or "").name
    if not original_filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    ext = Path(original_filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext or original_filename}'. "
                   f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    if request.app.state.clip_service.store.get_project(project_id) is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")

    destination = settings.upload_dir / stored_upload_name(original_filename)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("wb") as out:
        shutil.copyfileobj(video.file, out)
    file_size = destination.stat().st_size

    logger.info(f"[UPLOAD] {original_filename} -> {destination.name} ({file_size} bytes)")

    try:
        clip = ingestion.register_upload(
            project_id=project_id,
            original_filename=original_filename,
            original_path=str(destination),
            file_size=file_size,
            uploaded_by=uploaded_by,
        )
    except ProjectNotFoundError as e:
        destination.unlink(missing_ok=True)
        raise HTTPException(status_code=404, detail=str(e))
    except IngestionError as e:
        destination.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=e.message)

    return ClipResponse(video=clip)


@router.get("/videos/{clip_id}/status", response_model=StatusResponse)
def get_status(clip_id: str, request: Request):
    try:
        clip = request.app.state.clip_service.get_clip(clip_id)
    except ClipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return StatusResponse(
        id=clip.id,
        processing_status=clip.processing_status,
        proxy_url=clip.proxy_url,
        thumbnail_url=clip.thumbnail_url,
        failure_reason=clip.failure_reason,
    )


@router.patch("/videos/{clip_id}", response_model=ClipResponse)
def update_video(clip_id: str, body: UpdateClipRequest, request: Request):
    try:
        clip = request.app.state.clip_service.update_editorial(
            clip_id,
            included=body.included,
            order_index=body.order_index,
        )
    except ClipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ClipResponse(video=clip)


@router.post("/videos/{clip_id}/reprocess", response_model=ClipResponse)
def reprocess_video(clip_id: str, request: Request):
    """Explicitly re-run the pipeline for a failed clip."""
    try:
        clip = request.app.state.ingestion_service.reingest(clip_id)
    except ClipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ClipResponse(video=clip)


@router.delete("/videos/{clip_id}", response_model=OperationResponse)
def delete_video(clip_id: str, request: Request):
    # Deleting an unknown clip is not an error
    request.app.state.clip_service.delete_clip(clip_id)
    return OperationResponse()
