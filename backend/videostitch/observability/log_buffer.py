"""
Bounded in-process log buffer.

Keeps the most recent log records for the debug endpoint:
- Ring buffer (last 100 entries); the oldest entry is evicted first
- Entries returned newest first
- No persistent storage (debug only)
"""

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

# Maximum log entries to keep in memory
MAX_LOG_ENTRIES = 100

ROOT_LOGGER_NAME = "videostitch"

_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LogEntry(BaseModel):
    """One captured log record."""

    model_config = ConfigDict(extra="forbid")

    timestamp: datetime
    type: str  # info | warning | error
    logger: str
    message: str


def _entry_type(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    return "info"


class LogBuffer(logging.Handler):
    """
    Logging handler that retains the last N records.

    Usage:
        buffer = LogBuffer()
        logging.getLogger("videostitch").addHandler(buffer)
        buffer.entries()  # newest first
    """

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES, level: int = logging.NOTSET):
        super().__init__(level)
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                type=_entry_type(record.levelno),
                logger=record.name,
                message=record.getMessage(),
            )
        except Exception:
            self.handleError(record)
            return

        with self._entries_lock:
            self._entries.append(entry)

    def entries(self, limit: Optional[int] = None) -> List[LogEntry]:
        """Buffered entries, newest first."""
        with self._entries_lock:
            newest_first = list(reversed(self._entries))
        if limit is not None:
            return newest_first[:limit]
        return newest_first

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)


def configure_logging(level: str = "INFO", buffer: Optional[LogBuffer] = None) -> logging.Logger:
    """
    Install a console handler and the log buffer on the package logger.

    Calling again replaces nothing and adds nothing twice; only the level
    is updated.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level.upper())

    if not any(getattr(h, "_videostitch_console", False) for h in package_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        console._videostitch_console = True
        package_logger.addHandler(console)

    if buffer is not None and buffer not in package_logger.handlers:
        package_logger.addHandler(buffer)

    return package_logger
