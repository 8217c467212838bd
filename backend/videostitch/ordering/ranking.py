"""
Chronological ranking of clips.

Clips arrive from many devices and many uploaders, so upload order says
little about when footage was shot. Each clip's best capture time is
chosen by precedence:

1. metadata_date  - container creation_time from ffprobe
2. filename_date  - timestamp embedded in the device filename
3. upload_date    - always present, guaranteed fallback

All sorting is pure recomputation over the clips passed in (no caching)
and uses Python's stable sort: equal keys keep their prior relative order,
so re-sorting unchanged data with the same mode is idempotent.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Union

from ..clips.models import Clip


class SortMode(str, Enum):
    """Selectable clip orderings."""

    SMART = "smart"  # best available capture time
    UPLOAD = "upload"  # upload time
    FILENAME = "filename"  # original filename
    MANUAL = "manual"  # user-assigned order index


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC so all keys compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def best_timestamp(clip: Clip) -> datetime:
    """
    Best available capture time for a clip.

    Returns:
        metadata_date, else filename_date, else upload_date (UTC-aware)
    """
    if clip.metadata_date is not None:
        return _as_utc(clip.metadata_date)
    if clip.filename_date is not None:
        return _as_utc(clip.filename_date)
    return _as_utc(clip.upload_date)


_SORT_KEYS: Dict[SortMode, Callable[[Clip], object]] = {
    SortMode.SMART: best_timestamp,
    SortMode.UPLOAD: lambda clip: _as_utc(clip.upload_date),
    SortMode.FILENAME: lambda clip: clip.original_filename,
    SortMode.MANUAL: lambda clip: clip.order_index,
}


def parse_sort_mode(mode: Union[SortMode, str]) -> SortMode:
    """
    Coerce a mode name to SortMode.

    Raises:
        ValueError: Unknown mode
    """
    if isinstance(mode, SortMode):
        return mode
    try:
        return SortMode(str(mode).lower())
    except ValueError:
        valid = ", ".join(m.value for m in SortMode)
        raise ValueError(f"Unknown sort mode '{mode}'. Expected one of: {valid}")


def sort_clips(clips: Iterable[Clip], mode: Union[SortMode, str] = SortMode.SMART) -> List[Clip]:
    """
    Return clips ordered by the given mode, ascending.

    Args:
        clips: Clips in their current order
        mode: SortMode or its string value

    Returns:
        New list; the input is not modified
    """
    key = _SORT_KEYS[parse_sort_mode(mode)]
    return sorted(clips, key=key)
