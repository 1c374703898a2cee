"""User-visible notifications (toasts).

Toasts are queued per session and handed to the front end, which renders
them. Every toast is also logged. When `showNotifications` is off toasts are
only logged.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)

TITLE = "Semantix"


@dataclass
class Toast:
    level: str
    message: str
    title: str = TITLE

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message, "title": self.title}


class Notifier:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._pending: List[Toast] = []

    def _push(self, level: str, message: str) -> None:
        log = logger.error if level == "error" else logger.info
        log(f"[NOTIFY] {level}: {message}")
        if self.enabled:
            self._pending.append(Toast(level=level, message=message))

    def info(self, message: str) -> None:
        self._push("info", message)

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    def drain(self) -> List[Toast]:
        """Return and clear the pending toasts."""
        pending, self._pending = self._pending, []
        return pending
