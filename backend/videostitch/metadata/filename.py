"""
Filename heuristics.

Phones, action cameras and messaging apps name their recordings after
fixed conventions. Two pure functions read those conventions:

- classify_source: which device family produced the file
- extract_filename_timestamp: the capture time embedded in the name

Both walk an explicit ordered table. The ORDER IS PART OF THE CONTRACT:
the first matching entry wins, so reordering the tables changes results.
Neither function raises.
"""

import re
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional, Pattern, Tuple

from .models import SourceCategory


# (pattern, category) - anchored at the start of the name, case-insensitive
SOURCE_PATTERNS: Tuple[Tuple[Pattern[str], SourceCategory], ...] = (
    (re.compile(r"^VID_\d{8}_\d{6}", re.IGNORECASE), SourceCategory.ANDROID),
    (re.compile(r"^IMG_\d{4}", re.IGNORECASE), SourceCategory.IPHONE),
    (re.compile(r"^G[HOX]\d{6}", re.IGNORECASE), SourceCategory.GOPRO),
    (re.compile(r"^DJI_", re.IGNORECASE), SourceCategory.DJI),
    (re.compile(r"^VID-\d{8}-WA", re.IGNORECASE), SourceCategory.WHATSAPP),
)


def _all_groups(match: "re.Match[str]") -> Tuple[str, ...]:
    """year, month, day, hour, minute, second."""
    return match.groups()


def _date_only(match: "re.Match[str]") -> Tuple[str, ...]:
    """year, month, day; time defaults to midnight."""
    return match.groups()[:3] + ("00", "00", "00")


Extractor = Callable[["re.Match[str]"], Tuple[str, ...]]

# (pattern, extractor) - searched anywhere in the name
TIMESTAMP_PATTERNS: Tuple[Tuple[Pattern[str], Extractor], ...] = (
    # Android camera: VID_20230514_183012.mp4
    (re.compile(r"VID_(\d{4})(\d{2})(\d{2})_(\d{2})(\d{2})(\d{2})", re.IGNORECASE), _all_groups),
    # DJI drones: DJI_20230514183012_0001.MP4
    (re.compile(r"DJI_(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})", re.IGNORECASE), _all_groups),
    # Generic separated: 2023-05-14_18-30-12, 2023_05_14 18_30_12
    (re.compile(r"(\d{4})[-_](\d{2})[-_](\d{2})[-_\s](\d{2})[-_](\d{2})[-_](\d{2})"), _all_groups),
    # Generic compact: 20230514_183012
    (re.compile(r"(\d{4})(\d{2})(\d{2})_(\d{2})(\d{2})(\d{2})"), _all_groups),
    # WhatsApp: VID-20230514-WA0003.mp4 (date only)
    (re.compile(r"VID-(\d{4})(\d{2})(\d{2})-WA", re.IGNORECASE), _date_only),
)


def classify_source(filename: str) -> SourceCategory:
    """
    Classify the device family that produced a file from its name.

    Args:
        filename: Original upload filename (no directory component)

    Returns:
        The first matching SourceCategory, or SourceCategory.OTHER
    """
    for pattern, category in SOURCE_PATTERNS:
        if pattern.match(filename):
            return category
    return SourceCategory.OTHER


def extract_filename_timestamp(
    filename: str,
    tz: tzinfo = timezone.utc,
) -> Optional[datetime]:
    """
    Extract the capture timestamp embedded in a filename.

    A pattern only wins if it matches AND produces a real calendar
    date/time; otherwise the next pattern is tried.

    Args:
        filename: Original upload filename
        tz: Zone the filename's wall-clock time is interpreted in

    Returns:
        Timezone-aware datetime, or None if no pattern yields a valid date
    """
    for pattern, extractor in TIMESTAMP_PATTERNS:
        match = pattern.search(filename)
        if not match:
            continue

        year, month, day, hour, minute, second = (int(part) for part in extractor(match))
        try:
            return datetime(year, month, day, hour, minute, second, tzinfo=tz)
        except ValueError:
            # e.g. month 13 or Feb 30
            continue

    return None
