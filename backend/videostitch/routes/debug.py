"""
Debug endpoints.

Exposes the bounded in-process log buffer, newest entry first.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from ..observability.log_buffer import LogEntry, MAX_LOG_ENTRIES

router = APIRouter(prefix="/api/debug", tags=["debug"])


@router.get("/logs", response_model=List[LogEntry])
async def get_logs(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_LOG_ENTRIES),
):
    return request.app.state.log_buffer.entries(limit=limit)
