# llm_proxy/admission/guard.py
"""
Pre-flight admission control.

Two checks run, in order, before any work is done for a request:

  1. Cost ceiling — the cumulative cost recorded in the shared
     MetricsRegistry must be strictly below ``cost_limit``. Because the
     registry is shared, this reflects spend from every request that has
     completed so far, not an estimate for the incoming one.
  2. Rate limit — one token is taken from a requests-per-minute bucket.

Nothing resets the cost total automatically; once the ceiling is reached
every request is refused until MetricsRegistry.reset() is called.
"""

from __future__ import annotations

import logging

from .bucket import TokenBucket
from ..exceptions import CostLimitExceeded, RateLimitExceeded
from ..metrics import MetricsRegistry

logger = logging.getLogger(__name__)


class RateCostGuard:
    """
    Parameters
    ----------
    metrics:
        The proxy's shared metrics registry.
    cost_limit:
        Cost ceiling in USD. None disables the check.
    rate_limit:
        Requests per minute. None disables the check.
    bucket:
        Optional pre-built bucket (tests inject one with a fake clock).
    """

    def __init__(
        self,
        metrics: MetricsRegistry,
        cost_limit: float | None = None,
        rate_limit: int | None = None,
        bucket: TokenBucket | None = None,
    ) -> None:
        self._metrics = metrics
        self._cost_limit = cost_limit
        self._rate_limit = rate_limit
        if bucket is None and rate_limit:
            bucket = TokenBucket(capacity=rate_limit)
        self._bucket = bucket

    async def check_admission(self) -> None:
        """Raise an AdmissionDenied subclass if the request must be refused."""
        if self._cost_limit is not None:
            current = await self._metrics.total_cost()
            if current >= self._cost_limit:
                logger.warning(
                    "Admission denied: cost %.4f has reached limit %.2f",
                    current,
                    self._cost_limit,
                )
                raise CostLimitExceeded(limit=self._cost_limit, current_cost=current)

        if self._bucket is not None and not await self._bucket.try_acquire():
            logger.warning("Admission denied: rate limit of %s requests/minute", self._rate_limit)
            raise RateLimitExceeded(limit=self._rate_limit or 0)
