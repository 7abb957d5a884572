"""User-visible notices (success/failure toasts) raised by client operations."""

from collections import deque
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


class Reporter:
    """Logs every notice and keeps the most recent ones for display."""

    def __init__(self, maxlen: int = 50):
        self.notices: deque[dict] = deque(maxlen=maxlen)

    def _notify(self, level: str, message: str, **context) -> dict:
        notice = {
            "level": level,
            "message": message,
            "context": context,
            "at": datetime.now(UTC),
        }
        self.notices.append(notice)
        log = logger.warning if level == "error" else logger.info
        log(message, notice_level=level, **context)
        return notice

    def success(self, message: str, **context) -> dict:
        return self._notify("success", message, **context)

    def info(self, message: str, **context) -> dict:
        return self._notify("info", message, **context)

    def error(self, message: str, **context) -> dict:
        return self._notify("error", message, **context)

    def messages(self, level: str | None = None) -> list[str]:
        return [n["message"] for n in self.notices if level is None or n["level"] == level]

    def clear(self) -> None:
        self.notices.clear()
