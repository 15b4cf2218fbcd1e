# llm_proxy/admission/bucket.py
"""
Token bucket used to enforce the requests-per-minute limit.

The bucket holds at most ``capacity`` tokens and refills continuously at
``capacity / period_seconds`` tokens per second. Each admitted request
takes one token; when the bucket is empty the request is refused rather
than queued.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from ..constants import RATE_LIMIT_WINDOW_SECONDS


class TokenBucket:
    """
    Coroutine-safe token bucket.

    Parameters
    ----------
    capacity:
        Maximum burst size, and the number of tokens refilled per period.
    period_seconds:
        Time taken to refill an empty bucket.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        capacity: int,
        period_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = float(capacity)
        self._rate = capacity / period_seconds
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self, now: float) -> None:
        """Must be called while holding self._lock."""
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated = now

    async def try_acquire(self) -> bool:
        """Take one token if available. Returns False when the bucket is empty."""
        async with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    async def available(self) -> float:
        async with self._lock:
            self._refill(self._clock())
            return self._tokens
