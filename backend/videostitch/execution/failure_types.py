"""
Transcode failure taxonomy.

Classifies WHY a single ffmpeg invocation failed.
This is OBSERVATIONAL ONLY: it does not affect the pass/fail outcome,
retries, or clip state. It is recorded on the clip next to the
free-text diagnostic so operators can group failures.
"""

from enum import Enum
from typing import Optional


class TranscodeFailureType(str, Enum):
    """
    Per-invocation failure classification.

    TOOL_MISSING is operational (every clip fails until fixed).
    All other types describe a problem with one specific input.
    """

    TOOL_MISSING = "TOOL_MISSING"
    """ffmpeg binary not found or not executable"""

    TIMEOUT = "TIMEOUT"
    """Invocation exceeded its timeout"""

    INVALID_INPUT = "INVALID_INPUT"
    """Source is missing, truncated or not a media file"""

    UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA"
    """Source format or codec cannot be decoded"""

    OUTPUT_WRITE_FAILED = "OUTPUT_WRITE_FAILED"
    """Output could not be written (permissions, disk full, missing output)"""

    ENCODE_FAILED = "ENCODE_FAILED"
    """Non-zero exit with no more specific signature"""

    UNKNOWN = "UNKNOWN"
    """Failure occurred but type could not be determined"""


# Checked in order; first hit wins
_STDERR_SIGNATURES = (
    ("no such file or directory", TranscodeFailureType.INVALID_INPUT),
    ("invalid data found when processing input", TranscodeFailureType.INVALID_INPUT),
    ("moov atom not found", TranscodeFailureType.INVALID_INPUT),
    ("end of file", TranscodeFailureType.INVALID_INPUT),
    ("decoder not found", TranscodeFailureType.UNSUPPORTED_MEDIA),
    ("unknown decoder", TranscodeFailureType.UNSUPPORTED_MEDIA),
    ("could not find codec parameters", TranscodeFailureType.UNSUPPORTED_MEDIA),
    ("does not contain any stream", TranscodeFailureType.UNSUPPORTED_MEDIA),
    ("output file #0 does not contain any stream", TranscodeFailureType.UNSUPPORTED_MEDIA),
    ("permission denied", TranscodeFailureType.OUTPUT_WRITE_FAILED),
    ("no space left on device", TranscodeFailureType.OUTPUT_WRITE_FAILED),
    ("read-only file system", TranscodeFailureType.OUTPUT_WRITE_FAILED),
)


def classify_failure(exit_code: Optional[int], stderr: str) -> TranscodeFailureType:
    """
    Classify a failed ffmpeg run from its exit status and stderr.

    Args:
        exit_code: Process exit code (None if the process never exited normally)
        stderr: Captured diagnostic output

    Returns:
        The most specific matching failure type
    """
    text = (stderr or "").lower()
    for signature, failure_type in _STDERR_SIGNATURES:
        if signature in text:
            return failure_type

    if exit_code is None:
        return TranscodeFailureType.UNKNOWN
    if exit_code != 0:
        return TranscodeFailureType.ENCODE_FAILED
    return TranscodeFailureType.UNKNOWN
