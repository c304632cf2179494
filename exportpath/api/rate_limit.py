"""In-memory sliding-window limiter for the public analysis endpoints."""

from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Optional


class SlidingWindowRateLimiter:
    """Allow ``limit`` requests per client within any ``window_seconds`` span.

    State is process-local and resets on restart.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = Lock()

    def check(self, key: str) -> Optional[float]:
        """Record a hit for ``key``; return seconds to wait when over the limit."""
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self._window:
                hits.popleft()
            if len(hits) >= self._limit:
                return self._window - (now - hits[0]) if hits else self._window
            hits.append(now)
            self._prune(now)
            return None

    def _prune(self, now: float) -> None:
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or now - hits[-1] >= self._window
        ]
        for key in stale:
            del self._hits[key]


__all__ = ["SlidingWindowRateLimiter"]
