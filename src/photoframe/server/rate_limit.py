"""Fixed-window request counter for the upload API."""

from __future__ import annotations

import threading
import time
from typing import Callable


class FixedWindowRateLimiter:
    """Allows *max_requests* per *window_seconds* for each key.

    A key's window opens on its first request and the counter resets
    once the window has passed.

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> bool:
        """Count one request for *key*; ``False`` means over the limit."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            started, count = self._windows.get(key, (now, 0))
            if count >= self._max:
                return False
            self._windows[key] = (started, count + 1)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until *key*'s window resets (0 if it has none)."""
        with self._lock:
            entry = self._windows.get(key)
        if entry is None:
            return 0
        return max(0, int(entry[0] + self._window - self._clock()) + 1)

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self._window]
        for key in expired:
            del self._windows[key]
