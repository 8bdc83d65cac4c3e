"""Logging setup plus the in-memory buffer of recent problems shown by /api/stats."""

import logging
import threading
from collections import deque
from datetime import datetime

from motion_dashboard.constants import DISPLAY_DATETIME_FORMAT, ERROR_BUFFER_MAX_SIZE

logger = logging.getLogger('motion-dashboard')

MAX_MESSAGE_CHARS = 500


class ErrorBuffer:
    """Last N warning/error entries, newest returned first."""

    def __init__(self, max_size: int = ERROR_BUFFER_MAX_SIZE):
        self._entries: deque[dict] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def append(self, timestamp: str, level: str, message: str) -> None:
        entry = {"ts": timestamp, "level": level, "message": (message or "")[:MAX_MESSAGE_CHARS]}
        with self._lock:
            self._entries.append(entry)

    def get_all(self) -> list[dict]:
        with self._lock:
            return [dict(e) for e in reversed(self._entries)]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ErrorBufferHandler(logging.Handler):
    """Copies WARNING and above into an ErrorBuffer."""

    def __init__(self, buffer: ErrorBuffer):
        super().__init__(level=logging.WARNING)
        self._buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            ts = datetime.fromtimestamp(record.created).strftime(DISPLAY_DATETIME_FORMAT)
            self._buffer.append(ts, record.levelname, record.getMessage())
        except Exception:
            self.handleError(record)


error_buffer = ErrorBuffer()


def setup_logging(log_level: str):
    """Apply LOG_LEVEL to the root and app loggers and attach the error buffer once."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.getLogger().setLevel(level)
    logger.setLevel(level)

    if not any(isinstance(h, ErrorBufferHandler) for h in logger.handlers):
        logger.addHandler(ErrorBufferHandler(error_buffer))

    # werkzeug logs every request, including each SSE connect and dashboard poll
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger.info(f"Log level set to {logging.getLevelName(level)}")
