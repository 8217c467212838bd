"""
Export endpoints.

The export plan is a pure summary (no transcoding). Starting an export
creates a job that records the plan and completes immediately.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict

from ..clips.errors import ProjectNotFoundError
from ..export.models import ExportJob, ExportRange
from ..ordering.ranking import SortMode
from ..services.exports import ExportNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["exports"])


class ClipPlanEntry(BaseModel):
    clip_id: str
    original_filename: str
    ranges: List[ExportRange]


class ExportPlanResponse(BaseModel):
    success: bool = True
    range_count: int
    total_duration: float
    mark_count: int
    clip_count: int
    clips: List[ClipPlanEntry]


class StartExportRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None


class ExportResponse(BaseModel):
    success: bool = True
    export: ExportJob


@router.get("/projects/{project_id}/export-plan", response_model=ExportPlanResponse)
def get_export_plan(
    project_id: str,
    request: Request,
    sort: str = Query(default=SortMode.MANUAL.value),
):
    try:
        plan = request.app.state.clip_service.export_plan(project_id, sort)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ExportPlanResponse(
        range_count=plan.range_count,
        total_duration=plan.total_duration,
        mark_count=plan.mark_count,
        clip_count=plan.clip_count,
        clips=[
            ClipPlanEntry(
                clip_id=entry.clip.id,
                original_filename=entry.clip.original_filename,
                ranges=entry.ranges,
            )
            for entry in plan.per_clip
        ],
    )


@router.post("/projects/{project_id}/export", response_model=ExportResponse, status_code=201)
def start_export(project_id: str, request: Request, body: Optional[StartExportRequest] = None):
    name = body.name if body and body.name else "export"
    try:
        job = request.app.state.export_service.start_export(project_id, name)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ExportResponse(export=job)


@router.get("/exports/{export_id}", response_model=ExportResponse)
def get_export(export_id: str, request: Request):
    try:
        job = request.app.state.export_service.get_export(export_id)
    except ExportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ExportResponse(export=job)
