"""
Per-client request limiter for the API.

Fixed windows: each client may send ``max_requests`` requests per window;
the counter starts over when the window ends. State lives in memory, so it
is per process and resets on restart.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from tourbook.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


@dataclass
class Window:
    started: float
    count: int


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int, int]:
        """
        Count one request for ``key``.

        Returns (allowed, remaining, retry_after_seconds); retry_after is 0
        when the request is allowed.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.started >= self.window_seconds:
                window = Window(started=now, count=0)
                self._windows[key] = window

            if window.count >= self.max_requests:
                retry_after = max(1, math.ceil(window.started + self.window_seconds - now))
                return False, 0, retry_after

            window.count += 1
            self._prune(now)
            return True, self.max_requests - window.count, 0

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter: Optional[RateLimiter] = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> Optional[RateLimiter]:
    """Process-wide limiter, or None when limiting is switched off."""
    global _limiter
    with _limiter_lock:
        if _limiter is None and RATE_LIMIT_MAX_REQUESTS > 0:
            _limiter = RateLimiter(RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS)
        return _limiter


def set_rate_limiter(limiter: Optional[RateLimiter]) -> None:
    """Replace the process-wide limiter (tests install a small one)."""
    global _limiter
    with _limiter_lock:
        _limiter = limiter
