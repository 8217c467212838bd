"""
Per-clip processing pipeline.

Runs once per clip per ingest, on a worker thread:

    PROCESSING --probe--> (metadata written) --proxy--> --thumbnail--> READY
                                    \\_____________ any failure ___________/--> FAILED

Rules:
- A missing probe result is tolerated (metadata defaults to 0)
- Any transcode failure moves the clip to FAILED with a diagnostic
- READY is written in a single update together with both artifact URLs
- Failures never escape process(); they become clip state plus a log entry
- A clip deleted while in flight is left deleted and its artifacts removed
- Status writes are checked against the stored status by the store; a
  clip moved out of PROCESSING meanwhile keeps its stored state
- No lock is held across subprocess calls
"""

import logging
from typing import Callable, Dict, Any, Optional

from ..clips.errors import ClipNotFoundError, InvalidStateTransitionError
from ..clips.models import Clip, ProcessingStatus
from ..execution.base import Transcoder
from ..execution.errors import TranscodeError, TranscodeToolMissingError
from ..execution.failure_types import TranscodeFailureType
from ..execution.paths import ArtifactLayout
from ..metadata.models import ClipMetadata
from ..persistence.base import ClipStore

logger = logging.getLogger(__name__)

# Default thumbnail position
THUMBNAIL_SEEK_SECONDS = 1.0

Prober = Callable[[str], Optional[ClipMetadata]]


def thumbnail_seek(duration: float) -> float:
    """Seek position for the thumbnail frame: 1s, or mid-clip for shorter clips."""
    if 0 < duration < THUMBNAIL_SEEK_SECONDS:
        return duration / 2
    return THUMBNAIL_SEEK_SECONDS


class ClipProcessor:
    """
    Drives one clip from PROCESSING to READY or FAILED.

    Holds no per-clip state; one instance serves every worker thread.
    """

    def __init__(
        self,
        store: ClipStore,
        prober: Prober,
        transcoder: Transcoder,
        layout: ArtifactLayout,
    ):
        self.store = store
        self.prober = prober
        self.transcoder = transcoder
        self.layout = layout

    def process(self, clip_id: str) -> Optional[ProcessingStatus]:
        """
        Run the pipeline for a clip.

        Returns:
            Final status, or None if the clip no longer exists
        """
        clip = self.store.get_clip(clip_id)
        if clip is None:
            logger.info(f"[PIPELINE] Clip {clip_id} no longer exists, skipping")
            return None

        if clip.processing_status == ProcessingStatus.PENDING:
            clip = self._update(clip_id, {"processing_status": ProcessingStatus.PROCESSING})
            if clip is None:
                return None
        elif clip.processing_status != ProcessingStatus.PROCESSING:
            logger.warning(
                f"[PIPELINE] Clip {clip_id} is {clip.processing_status.value}, "
                f"not processing; skipping"
            )
            return clip.processing_status

        logger.info(f"[PIPELINE] Processing clip {clip_id} ({clip.original_filename})")

        try:
            clip = self._apply_probe(clip)
            if clip is None:
                return None
            return self._transcode(clip)
        except TranscodeError as e:
            self._log_transcode_error(clip, e)
            return self._fail(clip_id, e.diagnostic, e.failure_type)
        except Exception as e:
            logger.exception(f"[PIPELINE] Unexpected error processing clip {clip_id}: {e}")
            return self._fail(clip_id, f"Unexpected error: {e}", TranscodeFailureType.UNKNOWN)

    def _apply_probe(self, clip: Clip) -> Optional[Clip]:
        metadata = self.prober(clip.original_path)
        if metadata is None:
            logger.warning(
                f"[PIPELINE] No technical metadata for clip {clip.id}; continuing with defaults"
            )
            metadata = ClipMetadata()

        return self._update(clip.id, {
            "duration": metadata.duration,
            "width": metadata.width,
            "height": metadata.height,
            "metadata_date": metadata.creation_time,
        })

    def _transcode(self, clip: Clip) -> Optional[ProcessingStatus]:
        proxy_path = self.layout.proxy_path(clip.id)
        thumbnail_path = self.layout.thumbnail_path(clip.id)

        self.transcoder.make_proxy(clip.original_path, str(proxy_path))
        self.transcoder.make_thumbnail(
            clip.original_path,
            str(thumbnail_path),
            seek_seconds=thumbnail_seek(clip.known_duration),
        )

        updated = self._update(clip.id, {
            "processing_status": ProcessingStatus.READY,
            "proxy_url": self.layout.proxy_url(clip.id),
            "thumbnail_url": self.layout.thumbnail_url(clip.id),
            "failure_reason": None,
            "failure_type": None,
        })
        if updated is None:
            return None

        logger.info(f"[PIPELINE] Clip {clip.id} ready")
        return ProcessingStatus.READY

    def _fail(
        self,
        clip_id: str,
        reason: str,
        failure_type: TranscodeFailureType,
    ) -> Optional[ProcessingStatus]:
        self.layout.discard(clip_id)

        updated = self._update(clip_id, {
            "processing_status": ProcessingStatus.FAILED,
            "proxy_url": None,
            "thumbnail_url": None,
            "failure_reason": reason,
            "failure_type": failure_type.value,
        })
        if updated is None:
            return None

        logger.info(f"[PIPELINE] Clip {clip_id} failed ({failure_type.value})")
        return ProcessingStatus.FAILED

    def _update(self, clip_id: str, changes: Dict[str, Any]) -> Optional[Clip]:
        """
        Partial update; returns None if the clip was deleted meanwhile.

        A deleted clip keeps no artifacts: anything written so far is removed.
        """
        try:
            return self.store.update_clip(clip_id, changes)
        except ClipNotFoundError:
            removed = self.layout.discard(clip_id)
            logger.info(
                f"[PIPELINE] Clip {clip_id} was deleted during processing; "
                f"discarded {removed} artifact(s)"
            )
            return None
        except InvalidStateTransitionError as e:
            current = self.store.get_clip(clip_id)
            removed = 0
            if current is None or current.processing_status != ProcessingStatus.READY:
                removed = self.layout.discard(clip_id)
            logger.warning(
                f"[PIPELINE] Clip {clip_id} left processing during the run ({e}); "
                f"write skipped, discarded {removed} artifact(s)"
            )
            return None

    def _log_transcode_error(self, clip: Clip, error: TranscodeError) -> None:
        if isinstance(error, TranscodeToolMissingError):
            logger.error(f"[TOOL_MISSING] {error} (clip {clip.id})")
            return

        logger.warning(f"[PIPELINE] Transcode failed for clip {clip.id}: {error}")
        stderr_tail = getattr(error, "stderr_tail", "")
        if stderr_tail:
            logger.warning(f"[PIPELINE] ffmpeg stderr (tail):\n{stderr_tail}")
