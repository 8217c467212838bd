"""
IngestionService: the single entry point for clip processing.

Every clip reaches the pipeline through this service:
- New uploads (register_upload)
- Explicit recovery of a failed clip (reingest)

ingest() returns immediately. The pipeline runs on a bounded worker pool
and its progress is observed only through the clip's processing status.

CONSTRAINTS:
- At most one in-flight pipeline per clip id; a re-ingest that arrives
  while the previous run is still finishing is queued, never dropped
- The in-flight lock is never held across subprocess calls
- Failures inside a pipeline never reach the caller
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from datetime import timezone, tzinfo
from typing import Dict, List, Optional, Set

from ..clips.errors import (
    ClipNotFoundError,
    InvalidStateTransitionError,
    ProjectNotFoundError,
)
from ..clips.models import Clip, ProcessingStatus
from ..metadata.filename import classify_source, extract_filename_timestamp
from ..persistence.base import ClipStore
from ..pipeline.processor import ClipProcessor

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 2
THREAD_NAME_PREFIX = "clip_pipeline"
IDLE_POLL_SECONDS = 0.01


class IngestionError(Exception):
    """Raised when an upload cannot be accepted for processing."""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename


class IngestionService:
    """
    Creates clip records and schedules their pipelines.

    Usage:
        service = IngestionService(store, processor, max_workers=2)
        clip = service.register_upload(project_id, "VID_20230514_183012.mp4", path)
        service.wait_idle(timeout=60)
        service.shutdown()
    """

    def __init__(
        self,
        store: ClipStore,
        processor: ClipProcessor,
        max_workers: int = DEFAULT_MAX_WORKERS,
        filename_tz: tzinfo = timezone.utc,
    ):
        """
        Args:
            store: Clip storage shared with request handlers
            processor: Pipeline run for each ingested clip
            max_workers: Concurrent pipelines
            filename_tz: Zone for wall-clock times embedded in filenames
        """
        self.store = store
        self.processor = processor
        self.filename_tz = filename_tz
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=THREAD_NAME_PREFIX,
        )
        self._lock = threading.Lock()
        self._in_flight: Dict[str, Future] = {}
        self._queued: Set[str] = set()  # re-runs waiting for the current run to end
        self._closed = False

    def register_upload(
        self,
        project_id: str,
        original_filename: str,
        original_path: str,
        file_size: int = 0,
        uploaded_by: str = "anonymous",
    ) -> Clip:
        """
        Record a new upload and start its pipeline.

        Filename heuristics are applied here, once, at record creation.

        Returns:
            The stored clip, in PROCESSING

        Raises:
            ProjectNotFoundError: Project does not exist
            IngestionError: Upload is not acceptable
        """
        if not original_filename or not original_filename.strip():
            raise IngestionError("Upload has no filename")
        if not original_path:
            raise IngestionError("Upload has no stored path", filename=original_filename)

        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)

        existing = self.store.list_clips(project_id)
        clip = Clip(
            project_id=project_id,
            original_filename=original_filename,
            original_path=original_path,
            uploaded_by=uploaded_by or "anonymous",
            file_size=file_size,
            source=classify_source(original_filename),
            filename_date=extract_filename_timestamp(original_filename, tz=self.filename_tz),
            processing_status=ProcessingStatus.PROCESSING,
            order_index=len(existing),
        )
        clip = self.store.create_clip(clip)

        logger.info(
            f"[INGEST] Registered clip {clip.id} ({original_filename}, "
            f"source={clip.source.value}) in project {project_id}"
        )
        self.ingest(clip)
        return clip

    def ingest(self, clip: Clip) -> None:
        """
        Schedule the pipeline for a clip and return immediately.

        A clip whose pipeline is already in flight is not scheduled again.
        """
        self._schedule(clip.id, clip.original_filename, queue_if_running=False)

    def reingest(self, clip_id: str) -> Clip:
        """
        Explicitly re-run the pipeline for a FAILED clip.

        The clip's previous run may still be finishing (its FAILED write
        lands before its worker returns); the re-run is then queued and
        starts as soon as that run ends.

        Raises:
            ClipNotFoundError: Clip does not exist
            InvalidStateTransitionError: Clip is not FAILED (READY is final)
        """
        clip = self.store.get_clip(clip_id)
        if clip is None:
            raise ClipNotFoundError(clip_id)
        if clip.processing_status != ProcessingStatus.FAILED:
            raise InvalidStateTransitionError(
                "clip",
                clip.processing_status.value,
                ProcessingStatus.PROCESSING.value,
            )

        clip = self.store.update_clip(
            clip_id,
            {
                "processing_status": ProcessingStatus.PROCESSING,
                "proxy_url": None,
                "thumbnail_url": None,
                "failure_reason": None,
                "failure_type": None,
            },
            explicit=True,
        )
        logger.info(f"[INGEST] Re-ingesting clip {clip_id}")
        self._schedule(clip_id, clip.original_filename, queue_if_running=True)
        return clip

    def is_in_flight(self, clip_id: str) -> bool:
        with self._lock:
            if clip_id in self._queued:
                return True
            future = self._in_flight.get(clip_id)
            return future is not None and not future.done()

    def in_flight_count(self) -> int:
        with self._lock:
            running = {clip_id for clip_id, f in self._in_flight.items() if not f.done()}
            return len(running | self._queued)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until no pipeline is in flight or queued.

        Returns:
            True if idle, False if the timeout expired first
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                futures: List[Future] = [f for f in self._in_flight.values() if not f.done()]
                queued = bool(self._queued)
            if not futures and not queued:
                return True

            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            if futures:
                wait_futures(futures, timeout=remaining)
            else:
                # A queued re-run is submitted by the finishing run's callback
                time.sleep(IDLE_POLL_SECONDS if remaining is None else min(IDLE_POLL_SECONDS, remaining))

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting clips and (optionally) drain running pipelines."""
        with self._lock:
            self._closed = True
        logger.info(f"[INGEST] Shutting down pipeline pool (wait={wait})")
        self._executor.shutdown(wait=wait)

    def _schedule(self, clip_id: str, filename: str, queue_if_running: bool) -> None:
        with self._lock:
            if self._closed:
                raise IngestionError("Ingestion service is shut down", filename=filename)
            running = self._in_flight.get(clip_id)
            if running is not None and not running.done():
                if queue_if_running:
                    self._queued.add(clip_id)
                    logger.info(f"[INGEST] Clip {clip_id} is finishing a previous run; re-run queued")
                else:
                    logger.warning(f"[INGEST] Clip {clip_id} is already processing; ignoring")
                return
            future = self._submit_locked(clip_id)

        self._watch(clip_id, future)

    def _submit_locked(self, clip_id: str) -> Future:
        """Submit a pipeline run; caller holds self._lock."""
        future = self._executor.submit(self.processor.process, clip_id)
        self._in_flight[clip_id] = future
        return future

    def _watch(self, clip_id: str, future: Future) -> None:
        # Outside the lock: a callback on an already-finished future runs inline
        future.add_done_callback(lambda f, clip_id=clip_id: self._finished(clip_id, f))
        logger.debug(f"[INGEST] Scheduled pipeline for clip {clip_id}")

    def _finished(self, clip_id: str, future: Future) -> None:
        rerun = None
        with self._lock:
            if self._in_flight.get(clip_id) is future:
                del self._in_flight[clip_id]
            if clip_id in self._queued and clip_id not in self._in_flight:
                self._queued.discard(clip_id)
                if self._closed:
                    logger.warning(f"[INGEST] Dropping queued re-run of clip {clip_id}: service is shut down")
                else:
                    rerun = self._submit_locked(clip_id)

        error = future.exception() if not future.cancelled() else None
        if error is not None:
            logger.error(f"[INGEST] Pipeline for clip {clip_id} raised: {error!r}")

        if rerun is not None:
            logger.info(f"[INGEST] Starting queued re-run of clip {clip_id}")
            self._watch(clip_id, rerun)
