"""
FFmpeg transcoder.

Real proxy and thumbnail generation via subprocess.

Design rules:
- One subprocess per operation, blocking, bounded by a timeout
- Capture stderr; keep the last lines for operator logs
- Launch failure (tool missing) is distinct from non-zero exit (bad input)
- Non-zero exit, timeout or missing output = FAILED, partial output removed
- No retries, no progress parsing
"""

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .base import Transcoder, TranscodeResult
from .errors import TranscodeFailedError, TranscodeToolMissingError, tail_lines
from .failure_types import TranscodeFailureType, classify_failure

logger = logging.getLogger(__name__)

DEFAULT_TRANSCODE_TIMEOUT = 1800.0


@dataclass(frozen=True)
class ProxyProfile:
    """
    Proxy and thumbnail encode settings.

    Optimized for encode speed over quality: proxies exist for scrubbing
    and marking in a browser, not for delivery.
    """

    max_height: int = 360
    frame_rate: int = 24
    video_codec: str = "libx264"
    preset: str = "ultrafast"
    crf: int = 32
    max_bitrate: str = "1M"
    buffer_size: str = "2M"
    audio_codec: str = "aac"
    audio_bitrate: str = "64k"
    audio_channels: int = 1
    thumbnail_width: int = 320


DEFAULT_PROXY_PROFILE = ProxyProfile()


def find_ffmpeg(configured: Optional[str] = None) -> Optional[str]:
    """Find ffmpeg binary path."""
    if configured:
        return configured if os.path.isfile(configured) else shutil.which(configured)

    ffmpeg_path = shutil.which("ffmpeg")
    if ffmpeg_path:
        return ffmpeg_path

    # Common install locations
    common_paths = [
        "/usr/local/bin/ffmpeg",
        "/usr/bin/ffmpeg",
        "/opt/homebrew/bin/ffmpeg",
    ]
    for path in common_paths:
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path

    return None


def format_seek(seconds: float) -> str:
    """Seconds as an ffmpeg HH:MM:SS.mmm position."""
    seconds = max(seconds, 0.0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{int(hours):02d}:{int(minutes):02d}:{secs:06.3f}"


class FFmpegTranscoder(Transcoder):
    """
    ffmpeg-backed Transcoder.

    Stateless apart from the cached binary path; safe to share between
    worker threads.
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        timeout: float = DEFAULT_TRANSCODE_TIMEOUT,
        profile: ProxyProfile = DEFAULT_PROXY_PROFILE,
    ):
        self._configured_path = ffmpeg_path
        self._ffmpeg_path: Optional[str] = None
        self.timeout = timeout
        self.profile = profile

    @property
    def name(self) -> str:
        return "FFmpeg"

    @property
    def available(self) -> bool:
        """Check if ffmpeg is installed and accessible."""
        return self._find_ffmpeg() is not None

    def _find_ffmpeg(self) -> Optional[str]:
        if self._ffmpeg_path:
            return self._ffmpeg_path
        self._ffmpeg_path = find_ffmpeg(self._configured_path)
        return self._ffmpeg_path

    def version(self) -> Optional[str]:
        """First line of `ffmpeg -version`, or None if unavailable."""
        binary = self._find_ffmpeg()
        if not binary:
            return None
        try:
            result = subprocess.run(
                [binary, "-version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"[FFMPEG] Version check failed: {e}")
            return None
        if result.returncode != 0 or not result.stdout:
            return None
        return result.stdout.splitlines()[0].strip()

    # Command construction

    def build_proxy_command(self, binary: str, input_path: str, output_path: str) -> List[str]:
        """
        Proxy: height capped, width follows aspect ratio with even
        dimensions, 24fps, capped bitrate, mono low-bitrate AAC, MP4.
        """
        p = self.profile
        return [
            binary,
            "-y",
            "-i", input_path,
            "-vf", f"scale=-2:'min({p.max_height},ih)'",
            "-c:v", p.video_codec,
            "-preset", p.preset,
            "-crf", str(p.crf),
            "-maxrate", p.max_bitrate,
            "-bufsize", p.buffer_size,
            "-r", str(p.frame_rate),
            "-pix_fmt", "yuv420p",
            "-c:a", p.audio_codec,
            "-b:a", p.audio_bitrate,
            "-ac", str(p.audio_channels),
            "-movflags", "+faststart",
            output_path,
        ]

    def build_thumbnail_command(
        self,
        binary: str,
        input_path: str,
        output_path: str,
        seek_seconds: float,
    ) -> List[str]:
        """Thumbnail: one frame at seek_seconds, fixed width, even height."""
        return [
            binary,
            "-y",
            "-i", input_path,
            "-ss", format_seek(seek_seconds),
            "-vframes", "1",
            "-vf", f"scale={self.profile.thumbnail_width}:-2",
            output_path,
        ]

    # Operations

    def make_proxy(self, input_path: str, output_path: str) -> TranscodeResult:
        binary = self._require_ffmpeg()
        cmd = self.build_proxy_command(binary, input_path, output_path)
        return self._run("proxy", cmd, input_path, output_path)

    def make_thumbnail(
        self,
        input_path: str,
        output_path: str,
        seek_seconds: float = 1.0,
    ) -> TranscodeResult:
        binary = self._require_ffmpeg()
        cmd = self.build_thumbnail_command(binary, input_path, output_path, seek_seconds)
        return self._run("thumbnail", cmd, input_path, output_path)

    def _require_ffmpeg(self) -> str:
        binary = self._find_ffmpeg()
        if not binary:
            raise TranscodeToolMissingError("ffmpeg", "not configured and not on PATH")
        return binary

    def _run(
        self,
        operation: str,
        cmd: List[str],
        input_path: str,
        output_path: str,
    ) -> TranscodeResult:
        """
        Run one ffmpeg invocation and verify its output.

        Raises:
            TranscodeToolMissingError: Process could not be spawned
            TranscodeFailedError: Non-zero exit, timeout, or no output
        """
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"[FFMPEG] {operation} start: {input_path} -> {output_path}")
        started = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            _remove_partial(output)
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise TranscodeFailedError(
                operation,
                input_path,
                exit_code=None,
                stderr_tail=tail_lines(stderr),
                failure_type=TranscodeFailureType.TIMEOUT,
                reason=f"timed out after {self.timeout}s",
            )
        except OSError as e:
            # Launch failure: binary vanished, not executable, bad path
            _remove_partial(output)
            self._ffmpeg_path = None
            raise TranscodeToolMissingError("ffmpeg", str(e))

        elapsed = time.monotonic() - started

        if result.returncode != 0:
            _remove_partial(output)
            raise TranscodeFailedError(
                operation,
                input_path,
                exit_code=result.returncode,
                stderr_tail=tail_lines(result.stderr),
                failure_type=classify_failure(result.returncode, result.stderr),
            )

        if not output.is_file() or output.stat().st_size == 0:
            _remove_partial(output)
            raise TranscodeFailedError(
                operation,
                input_path,
                exit_code=result.returncode,
                stderr_tail=tail_lines(result.stderr),
                failure_type=TranscodeFailureType.OUTPUT_WRITE_FAILED,
                reason="output file not created",
            )

        logger.info(f"[FFMPEG] {operation} done in {elapsed:.1f}s: {output_path}")
        return TranscodeResult(
            output_path=str(output),
            command=cmd,
            duration_seconds=elapsed,
        )


def _remove_partial(output: Path) -> None:
    """Clean up partial output."""
    try:
        output.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[FFMPEG] Could not remove partial output {output}: {e}")
