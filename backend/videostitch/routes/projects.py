"""
Project endpoints.

GET /api/projects/{id} returns the project with its clips in the
requested order (smart by default).
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict

from ..clips.errors import ProjectNotFoundError
from ..clips.models import Clip, Project
from ..ordering.ranking import SortMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


class CreateProjectRequest(BaseModel):
    """Request body for project creation."""

    model_config = ConfigDict(extra="forbid")

    name: str


class ProjectResponse(BaseModel):
    success: bool = True
    project: Project


class ProjectDetailResponse(BaseModel):
    success: bool = True
    project: Project
    sort: SortMode
    videos: List[Clip]


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(body: CreateProjectRequest, request: Request):
    try:
        project = request.app.state.clip_service.create_project(body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProjectResponse(project=project)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: str,
    request: Request,
    sort: str = Query(default=SortMode.SMART.value),
):
    clip_service = request.app.state.clip_service
    try:
        project = clip_service.get_project(project_id)
        videos = clip_service.sorted_clips(project_id, sort)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ProjectDetailResponse(project=project, sort=SortMode(sort.lower()), videos=videos)
