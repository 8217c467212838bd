"""
Health and tool availability endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    mode: str  # local | database
    timestamp: str


class FFmpegStatusResponse(BaseModel):
    available: bool
    version: Optional[str] = None


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    settings = request.app.state.settings
    return HealthResponse(
        status="ok",
        mode=settings.storage_mode,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/check-ffmpeg", response_model=FFmpegStatusResponse)
def check_ffmpeg(request: Request):
    """Report whether the transcoder can be launched."""
    transcoder = request.app.state.transcoder
    available = transcoder.available
    version = None
    if available and hasattr(transcoder, "version"):
        version = transcoder.version()
    return FFmpegStatusResponse(available=available, version=version)
