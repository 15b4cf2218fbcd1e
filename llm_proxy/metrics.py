# llm_proxy/metrics.py
"""
Cumulative usage counters shared by every request going through a proxy.

One MetricsRegistry lives per LLMProxy. All mutation happens under a
single asyncio.Lock; readers get an immutable MetricsSnapshot, never a
reference to the live counters.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .models import MetricsSnapshot


@dataclass
class _Totals:
    requests: int = 0
    cache_hits: int = 0
    latency: float = 0.0
    tokens: int = 0
    cost: float = 0.0
    failures: int = 0


class MetricsRegistry:
    """Coroutine-safe cumulative counters for requests, latency, tokens and cost."""

    def __init__(self) -> None:
        self._totals = _Totals()
        self._lock = asyncio.Lock()

    async def record_outcome(
        self,
        latency: float,
        tokens: int,
        cost: float,
        cache_hit: bool,
    ) -> None:
        """Record one completed request."""
        async with self._lock:
            self._totals.requests += 1
            if cache_hit:
                self._totals.cache_hits += 1
            self._totals.latency += latency
            self._totals.tokens += tokens
            self._totals.cost += cost

    async def record_failure(self) -> None:
        """Record a request that ended in an error."""
        async with self._lock:
            self._totals.failures += 1

    async def total_cost(self) -> float:
        async with self._lock:
            return self._totals.cost

    async def snapshot(self) -> MetricsSnapshot:
        """Return an immutable copy of the current totals."""
        async with self._lock:
            t = self._totals
            return MetricsSnapshot(
                total_requests=t.requests,
                cache_hits=t.cache_hits,
                total_latency=t.latency,
                total_tokens=t.tokens,
                total_cost=t.cost,
                total_failures=t.failures,
            )

    async def reset(self) -> None:
        """Zero every counter. This is the only way cumulative cost decreases."""
        async with self._lock:
            self._totals = _Totals()
