"""
Metadata extraction using ffprobe.

This module uses ffprobe (part of ffmpeg) to read technical metadata from
uploaded clips. Extraction is read-only and non-destructive.

extract_metadata() raises structured errors.
probe() is the pipeline boundary: any failure becomes None, because missing
metadata only degrades ordering quality and never fails a clip.
No retries at this layer.
"""

import json
import logging
import math
import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import FFProbeNotFoundError, MetadataError, MetadataExtractionError
from .models import ClipMetadata

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 30.0


def find_ffprobe(configured: Optional[str] = None) -> Optional[str]:
    """
    Find ffprobe binary path.

    Order: explicit setting, PATH, common install locations, next to ffmpeg.
    """
    if configured:
        return configured if os.path.isfile(configured) else shutil.which(configured)

    ffprobe_path = shutil.which("ffprobe")
    if ffprobe_path:
        return ffprobe_path

    common_paths = [
        "/usr/local/bin/ffprobe",
        "/usr/bin/ffprobe",
        "/opt/homebrew/bin/ffprobe",
    ]
    for path in common_paths:
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path

    ffmpeg_path = shutil.which("ffmpeg")
    if ffmpeg_path:
        sibling = ffmpeg_path.replace("ffmpeg", "ffprobe")
        if os.path.isfile(sibling):
            return sibling

    return None


def check_ffprobe_available(configured: Optional[str] = None) -> bool:
    """True if an ffprobe binary can be located."""
    return find_ffprobe(configured) is not None


def extract_metadata(
    filepath: str,
    ffprobe_path: Optional[str] = None,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> ClipMetadata:
    """
    Extract technical metadata from a media file using ffprobe.

    Args:
        filepath: Path to the media file
        ffprobe_path: Explicit ffprobe binary (auto-detected if None)
        timeout: Subprocess timeout in seconds

    Returns:
        ClipMetadata with duration, dimensions and creation time

    Raises:
        FFProbeNotFoundError: If ffprobe is missing or cannot be launched
        MetadataExtractionError: If ffprobe fails or its output is unusable
    """
    binary = find_ffprobe(ffprobe_path)
    if binary is None:
        raise FFProbeNotFoundError()

    probe_data = _run_ffprobe(binary, filepath, timeout)
    return parse_probe_data(probe_data)


def probe(
    filepath: str,
    ffprobe_path: Optional[str] = None,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> Optional[ClipMetadata]:
    """
    Probe a file, tolerating every failure.

    Returns:
        ClipMetadata, or None if no technical metadata is available
    """
    try:
        return extract_metadata(filepath, ffprobe_path=ffprobe_path, timeout=timeout)
    except FFProbeNotFoundError as e:
        logger.warning(f"[PROBE] ProbeUnavailable for {filepath}: {e}")
        return None
    except MetadataError as e:
        logger.warning(f"[PROBE] No metadata for {filepath}: {e}")
        return None


def _run_ffprobe(binary: str, filepath: str, timeout: float) -> Dict[str, Any]:
    """
    Run ffprobe and return parsed JSON output.

    Raises:
        FFProbeNotFoundError: Launch failure
        MetadataExtractionError: Non-zero exit, timeout or invalid JSON
    """
    cmd = [
        binary,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        filepath,
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise MetadataExtractionError(filepath, f"ffprobe timed out after {timeout}s")
    except OSError as e:
        raise FFProbeNotFoundError(str(e))

    if result.returncode != 0:
        raise MetadataExtractionError(
            filepath, f"ffprobe failed with exit code {result.returncode}"
        )

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MetadataExtractionError(filepath, f"Failed to parse ffprobe output: {e}")

    if not isinstance(data, dict):
        raise MetadataExtractionError(filepath, "ffprobe output is not a JSON object")

    return data


def parse_probe_data(probe_data: Dict[str, Any]) -> ClipMetadata:
    """Build ClipMetadata from parsed ffprobe JSON."""
    format_info = probe_data.get("format") or {}
    video_stream = _get_video_stream(probe_data)

    width = 0
    height = 0
    if video_stream:
        width = _parse_int(video_stream.get("width"))
        height = _parse_int(video_stream.get("height"))

    return ClipMetadata(
        duration=_parse_duration(format_info.get("duration")),
        width=width,
        height=height,
        creation_time=_extract_creation_time(format_info),
    )


def _get_video_stream(probe_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Find the first video stream in ffprobe output."""
    for stream in probe_data.get("streams") or []:
        if stream.get("codec_type") == "video":
            return stream
    return None


def _parse_duration(value: Any) -> float:
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(duration) or duration < 0:
        return 0.0
    return duration


def _parse_int(value: Any) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return 0
    return max(parsed, 0)


def _extract_creation_time(format_info: Dict[str, Any]) -> Optional[datetime]:
    """Container creation_time tag as an aware UTC datetime."""
    tags = format_info.get("tags") or {}
    raw = None
    for key, value in tags.items():
        if key.lower() == "creation_time":
            raw = value
            break

    if not raw:
        return None

    return parse_iso_timestamp(str(raw))


def parse_iso_timestamp(raw: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp such as "2023-05-14T18:30:12.000000Z".

    Naive values are taken as UTC. Returns None if unparsable.
    """
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def describe_file(filepath: str) -> Dict[str, Any]:
    """Size and name of a file on disk, for CLI/diagnostic output."""
    path = Path(filepath)
    return {
        "filename": path.name,
        "full_path": str(path.absolute()),
        "file_size": path.stat().st_size if path.is_file() else 0,
    }
