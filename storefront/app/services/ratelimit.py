from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable


class RateLimiter:
    """In-memory sliding window rate limiter keyed by client or actor."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}

    def tracked_keys(self) -> int:
        return len(self._buckets)

    def _prune(self, key: str, window_seconds: float) -> deque[float]:
        now = self._clock()
        bucket = self._buckets.get(key)
        if bucket is None:
            return deque()
        while bucket and now - bucket[0] > window_seconds:
            bucket.popleft()
        if not bucket:
            del self._buckets[key]
        return bucket

    def allow(self, key: str, limit: int, window_seconds: float) -> bool:
        bucket = self._prune(key, window_seconds)
        if len(bucket) >= limit:
            return False
        bucket.append(self._clock())
        self._buckets[key] = bucket
        return True

    def retry_after(self, key: str, window_seconds: float) -> int:
        """Whole seconds until the oldest hit in ``key`` leaves the window."""

        bucket = self._prune(key, window_seconds)
        if not bucket:
            return 0
        return max(1, math.ceil(window_seconds - (self._clock() - bucket[0])))

    def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


__all__ = ["RateLimiter"]
