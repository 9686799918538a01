# modweaver/core/logging/filters.py
from __future__ import annotations
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from .context import getLogContext

__all__ = ["RecurringSuppressFilter"]

MAX_KEY_LEN = 512

_Key = tuple[str, int, str, str]



@dataclass
class _Window:
    seen: deque[float] = field(default_factory=deque)
    dropped: int = 0



class RecurringSuppressFilter(logging.Filter):
    """
    Lets at most `maxPerWindow` identical lines through per `windowSeconds`.

    Lines are identical when logger, level, message and the `modId` of the
    current log context match, so one noisy mod does not mute the same
    warning for the others. When a muted line gets through again a single
    "Suppressed N repeated logs" summary is logged first.
    """
    def __init__(
            self,
            *,
            windowSeconds: int = 60,
            maxPerWindow: int = 5,
            summaryLevel: int = logging.INFO,
            clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.windowSeconds = max(1, int(windowSeconds))
        self.maxPerWindow = max(1, int(maxPerWindow))
        self.summaryLevel = int(summaryLevel)
        self._clock = clock
        self._windows: dict[_Key, _Window] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _keyOf(record: logging.LogRecord) -> _Key:
        message = " ".join(record.getMessage().split())[:MAX_KEY_LEN]
        modId = str((getLogContext() or {}).get("modId") or "")
        return (record.name, record.levelno, modId, message)

    def _summarize(self, key: _Key, dropped: int) -> None:
        loggerName, _levelno, _modId, message = key
        logging.getLogger(loggerName).log(
            self.summaryLevel,
            "Suppressed %d repeated logs: %s",
            dropped,
            message,
            extra={"_noRecurringSuppress": True},
        )

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "_noRecurringSuppress", False):
            return True

        now = self._clock()
        key = self._keyOf(record)
        with self._lock:
            window = self._windows.setdefault(key, _Window())
            while window.seen and window.seen[0] < now - self.windowSeconds:
                window.seen.popleft()
            window.seen.append(now)

            if len(window.seen) > self.maxPerWindow:
                window.dropped += 1
                return False

            dropped, window.dropped = window.dropped, 0
        if dropped:
            self._summarize(key, dropped)
        return True
