"""
Observability: logging setup and the in-process log buffer.
"""

from .log_buffer import (
    MAX_LOG_ENTRIES,
    LogEntry,
    LogBuffer,
    configure_logging,
)

__all__ = [
    "MAX_LOG_ENTRIES",
    "LogEntry",
    "LogBuffer",
    "configure_logging",
]
