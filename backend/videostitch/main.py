"""
VideoStitch backend service: clip upload, processing, marks and export plans.

Run with:
    videostitch serve
    uvicorn videostitch.main:create_app --factory
"""

import functools
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .execution.base import Transcoder
from .execution.ffmpeg import FFmpegTranscoder
from .execution.paths import ArtifactLayout
from .metadata.extractors import probe
from .observability.log_buffer import LogBuffer, configure_logging
from .persistence import create_store
from .persistence.base import ClipStore
from .pipeline.processor import ClipProcessor, Prober
from .routes import debug, exports, health, marks, projects, videos
from .services.clips import ClipService
from .services.exports import ExportService
from .services.ingestion import IngestionService
from .settings import AppSettings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Drain running pipelines before the process exits
    app.state.ingestion_service.shutdown(wait=True)


def create_app(
    settings: Optional[AppSettings] = None,
    transcoder: Optional[Transcoder] = None,
    prober: Optional[Prober] = None,
    store: Optional[ClipStore] = None,
) -> FastAPI:
    """
    Build the application and its services.

    Args:
        settings: Configuration (read from the environment if None)
        transcoder: Proxy/thumbnail producer (ffmpeg if None)
        prober: Metadata probe (ffprobe if None)
        store: Clip storage (chosen from settings if None)
    """
    if settings is None:
        settings = AppSettings.from_env()

    log_buffer = LogBuffer()
    configure_logging(settings.log_level, log_buffer)

    settings.ensure_directories()

    if store is None:
        store = create_store(settings)
    if transcoder is None:
        transcoder = FFmpegTranscoder(
            ffmpeg_path=settings.ffmpeg_path,
            timeout=settings.transcode_timeout_seconds,
        )
    if prober is None:
        prober = functools.partial(
            probe,
            ffprobe_path=settings.ffprobe_path,
            timeout=settings.probe_timeout_seconds,
        )

    layout = ArtifactLayout(proxy_dir=settings.proxy_dir, thumbnail_dir=settings.thumbnail_dir)
    layout.ensure_directories()

    processor = ClipProcessor(store=store, prober=prober, transcoder=transcoder, layout=layout)
    clip_service = ClipService(store=store, layout=layout)

    app = FastAPI(title="VideoStitch Backend", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.log_buffer = log_buffer
    app.state.transcoder = transcoder
    app.state.store = store
    app.state.clip_service = clip_service
    app.state.ingestion_service = IngestionService(
        store=store,
        processor=processor,
        max_workers=settings.max_workers,
    )
    app.state.export_service = ExportService(store=store, clips=clip_service)

    app.include_router(health.router)
    app.include_router(debug.router)
    app.include_router(projects.router)
    app.include_router(videos.router)
    app.include_router(marks.router)
    app.include_router(exports.router)

    app.mount("/proxies", StaticFiles(directory=str(settings.proxy_dir)), name="proxies")
    app.mount("/thumbnails", StaticFiles(directory=str(settings.thumbnail_dir)), name="thumbnails")

    @app.get("/")
    async def root():
        return {"service": "videostitch-backend", "status": "running"}

    if not transcoder.available:
        logger.error(f"[TOOL_MISSING] {transcoder.name} is not available; uploads will fail processing")

    logger.info(
        f"VideoStitch backend ready (storage={settings.storage_mode}, "
        f"data_dir={settings.data_dir}, workers={settings.max_workers})"
    )
    return app
