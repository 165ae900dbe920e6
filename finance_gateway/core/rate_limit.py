"""In-process sliding window rate limiter."""

import time
from collections import deque
from typing import Callable, Deque, Dict


class SlidingWindowRateLimiter:
    """
    Allows at most `limit` hits per key within a rolling window.

    One instance is created per application and shared by requests,
    so limits are per process. Keys whose hits have all expired are
    dropped at most once per window.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def hit(self, key: str) -> bool:
        """
        Register a hit for `key`.

        Returns:
            True if the hit is allowed, False if the key is over its limit
        """
        now = self._clock()
        if now - self._last_sweep >= self._window:
            self._sweep(now)

        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= self._window:
            hits.popleft()

        if len(hits) >= self._limit:
            return False

        hits.append(now)
        return True

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = self._clock()

    def _sweep(self, now: float) -> None:
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or now - hits[-1] >= self._window
        ]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now
