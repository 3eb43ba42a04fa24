"""Ephemeral user feedback that never touches control flow."""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from itertools import count
from typing import Callable, Deque, List, Optional

from .config import GeneralConfig

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.WARNING,
}


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    severity: str
    created_at: float
    expires_at: float


class NotificationChannel:
    """Queued, auto-dismissing notifications tagged with a severity.

    :py:meth:`notify` returns immediately and never raises. Items stay
    visible for ``lifetime`` seconds measured on ``clock``; any number may be
    visible at once. Subscribers are called synchronously for each new item;
    one that fails is logged and skipped. Expired items are dropped on every
    call, and at most ``max_items`` are kept.

    Parameters
    ----------
    lifetime : float
        Seconds an item stays visible.
    clock : callable, optional
        Returns the current time in seconds. Defaults to
        :func:`time.monotonic`; tests pass a fake.
    max_items : int
        Upper bound on queued items; the oldest go first.
    """

    SEVERITIES = GeneralConfig.SEVERITIES

    def __init__(
        self,
        lifetime: float = 3.0,
        clock: Optional[Callable[[], float]] = None,
        max_items: int = 50,
    ) -> None:
        self.lifetime = lifetime
        self.clock = clock or time.monotonic
        self._items: Deque[Notification] = deque(maxlen=max_items)
        self._subscribers: List[Callable[[Notification], None]] = []
        self._ids = count(1)
        self._lock = threading.Lock()

    def notify(self, message: str, severity: str = "info") -> Notification:
        if severity not in self.SEVERITIES:
            logger.debug("Unknown severity %r; using 'info'", severity)
            severity = "info"
        now = self.clock()
        item = Notification(
            id=next(self._ids),
            message=str(message),
            severity=severity,
            created_at=now,
            expires_at=now + self.lifetime,
        )
        with self._lock:
            self._prune(now)
            self._items.append(item)
            subscribers = list(self._subscribers)

        logger.log(_LOG_LEVELS[severity], "[%s] %s", severity, item.message)
        for callback in subscribers:
            try:
                callback(item)
            except Exception:
                logger.exception("Notification subscriber %r failed", callback)
        return item

    def success(self, message: str) -> Notification:
        return self.notify(message, "success")

    def error(self, message: str) -> Notification:
        return self.notify(message, "error")

    def warning(self, message: str) -> Notification:
        return self.notify(message, "warning")

    def info(self, message: str) -> Notification:
        return self.notify(message, "info")

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def visible(self) -> List[Notification]:
        """Return the items still within their lifetime, oldest first."""
        now = self.clock()
        with self._lock:
            self._prune(now)
            return [item for item in self._items if item.expires_at > now]

    def history(self) -> List[Notification]:
        """Every queued item not yet pruned, expired or not."""
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def _prune(self, now: float) -> None:
        while self._items and self._items[0].expires_at <= now:
            self._items.popleft()
