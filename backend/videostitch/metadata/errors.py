"""
Metadata-specific error types.

All errors inherit from MetadataError for easy catching.
The pipeline never lets these escape: a probe failure only degrades
metadata quality (see extractors.probe).
"""


class MetadataError(Exception):
    """Base exception for all metadata-related failures."""
    pass


class MetadataExtractionError(MetadataError):
    """Raised when ffprobe ran but its output could not be used."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Failed to extract metadata from {filepath}: {reason}")


class FFProbeNotFoundError(MetadataError):
    """Raised when ffprobe is not available or cannot be launched."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        message = "ffprobe not found. Please install ffmpeg to enable metadata extraction."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
