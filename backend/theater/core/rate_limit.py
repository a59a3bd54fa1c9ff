"""
Per-key fixed-window rate limiting.

Counters live in process memory and reset on restart; limits are a
best-effort guard, not an accounting record.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

from theater.core.exceptions import RateLimitExceededError
from theater.core.metrics import rate_limit_rejections


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(self, window_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int) -> None:
        """Count one request for key; raise once the window's limit is used up."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return
            if window.count >= limit:
                rate_limit_rejections.inc()
                raise RateLimitExceededError(
                    "Rate limit exceeded",
                    {"limit": limit, "retry_after": round(window.reset_at - now, 1)},
                )
            window.count += 1

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
