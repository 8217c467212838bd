"""
Execution-specific errors.

All errors are non-fatal to the application. Inside a clip pipeline they
become a FAILED clip plus a log entry; they never escape the worker.

Two kinds are kept distinct because they mean different things to an operator:
- TranscodeToolMissingError: ffmpeg is missing or misconfigured.
  Every clip will fail until the deployment is fixed.
- TranscodeFailedError: this specific input could not be converted.
"""

from typing import List, Optional

from .failure_types import TranscodeFailureType

# Lines of ffmpeg stderr retained for operator-visible logging
STDERR_TAIL_LINES = 10


def tail_lines(text: str, count: int = STDERR_TAIL_LINES) -> str:
    """Last `count` non-empty lines of a diagnostic stream."""
    lines: List[str] = [line for line in (text or "").splitlines() if line.strip()]
    return "\n".join(lines[-count:])


class TranscodeError(Exception):
    """
    Base exception for transcoder failures.

    failure_type is observational (see failure_types.py).
    """

    failure_type: TranscodeFailureType = TranscodeFailureType.UNKNOWN

    @property
    def diagnostic(self) -> str:
        """Text recorded on the clip for operators."""
        return str(self)


class TranscodeToolMissingError(TranscodeError):
    """
    ffmpeg could not be found or launched.

    Raised when:
    - No ffmpeg binary is configured or on PATH
    - The process failed to spawn (OSError)
    """

    failure_type = TranscodeFailureType.TOOL_MISSING

    def __init__(self, tool: str = "ffmpeg", detail: Optional[str] = None):
        self.tool = tool
        self.detail = detail
        message = f"{tool} not found or not executable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TranscodeFailedError(TranscodeError):
    """
    ffmpeg ran but could not convert this input.

    Raised when:
    - ffmpeg exits non-zero
    - The timeout is exceeded
    - ffmpeg exits zero but the output file is missing or empty
    """

    def __init__(
        self,
        operation: str,
        input_path: str,
        exit_code: Optional[int],
        stderr_tail: str = "",
        failure_type: TranscodeFailureType = TranscodeFailureType.UNKNOWN,
        reason: Optional[str] = None,
    ):
        self.operation = operation
        self.input_path = input_path
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
        self.failure_type = failure_type
        self.reason = reason or (
            f"exit code {exit_code}" if exit_code is not None else "no exit code"
        )
        super().__init__(f"{operation} failed for {input_path}: {self.reason}")

    @property
    def diagnostic(self) -> str:
        if self.stderr_tail:
            return f"{self}\n{self.stderr_tail}"
        return str(self)
