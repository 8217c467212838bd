"""
Mark endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from ..clips.errors import ClipNotFoundError, InvalidRangeError
from ..clips.models import Mark

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["marks"])


class CreateMarkRequest(BaseModel):
    """In/out points in seconds."""

    model_config = ConfigDict(extra="forbid")

    in_point: float
    out_point: float


class MarkResponse(BaseModel):
    success: bool = True
    mark: Mark


class OperationResponse(BaseModel):
    success: bool = True


@router.post("/videos/{clip_id}/marks", response_model=MarkResponse, status_code=201)
def add_mark(clip_id: str, body: CreateMarkRequest, request: Request):
    try:
        mark = request.app.state.clip_service.add_mark(clip_id, body.in_point, body.out_point)
    except ClipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MarkResponse(mark=mark)


@router.delete("/marks/{mark_id}", response_model=OperationResponse)
def remove_mark(mark_id: str, request: Request):
    request.app.state.clip_service.remove_mark(mark_id)
    return OperationResponse()
