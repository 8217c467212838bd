"""
Metadata extraction for uploaded clips.

Two sources of temporal and technical information:
- ffprobe (container duration, dimensions, creation_time tag)
- the filename (device family, embedded capture time)

Usage:
    from videostitch.metadata import probe, classify_source

    metadata = probe("/path/to/VID_20230514_183012.mp4")
    source = classify_source("VID_20230514_183012.mp4")
"""

from .errors import (
    MetadataError,
    MetadataExtractionError,
    FFProbeNotFoundError,
)
from .models import (
    ClipMetadata,
    SourceCategory,
)
from .extractors import (
    extract_metadata,
    probe,
    find_ffprobe,
    check_ffprobe_available,
    parse_iso_timestamp,
)
from .filename import (
    classify_source,
    extract_filename_timestamp,
)

__all__ = [
    # Errors
    "MetadataError",
    "MetadataExtractionError",
    "FFProbeNotFoundError",
    # Models
    "ClipMetadata",
    "SourceCategory",
    # Extraction
    "extract_metadata",
    "probe",
    "find_ffprobe",
    "check_ffprobe_available",
    "parse_iso_timestamp",
    # Filename heuristics
    "classify_source",
    "extract_filename_timestamp",
]
