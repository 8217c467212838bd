"""
Transcoding for uploaded clips.

Each clip gets two derived artifacts:
- a proxy: small H.264/AAC MP4 for browser scrubbing
- a thumbnail: one JPEG frame near the one-second mark

Failures are raised as TranscodeError subclasses and converted to clip
state by the pipeline. Nothing here touches clip records.
"""

from .base import Transcoder, TranscodeResult
from .errors import (
    TranscodeError,
    TranscodeToolMissingError,
    TranscodeFailedError,
    STDERR_TAIL_LINES,
)
from .failure_types import TranscodeFailureType, classify_failure
from .ffmpeg import FFmpegTranscoder, ProxyProfile, find_ffmpeg
from .paths import ArtifactLayout

__all__ = [
    "Transcoder",
    "TranscodeResult",
    "TranscodeError",
    "TranscodeToolMissingError",
    "TranscodeFailedError",
    "STDERR_TAIL_LINES",
    "TranscodeFailureType",
    "classify_failure",
    "FFmpegTranscoder",
    "ProxyProfile",
    "find_ffmpeg",
    "ArtifactLayout",
]
