# tests/test_admission.py
"""
Tests for RateCostGuard and TokenBucket.

Verifies:
  - Cost ceiling is checked against the shared cumulative cost.
  - Denials carry the configured limit.
  - Token bucket burst, refill and cap behaviour.
"""

from __future__ import annotations

import pytest

from llm_proxy.admission import RateCostGuard, TokenBucket
from llm_proxy.exceptions import AdmissionDenied, CostLimitExceeded, RateLimitExceeded
from llm_proxy.metrics import MetricsRegistry


@pytest.mark.asyncio
class TestCostCeiling:
    async def test_admits_below_limit(self):
        metrics = MetricsRegistry()
        await metrics.record_outcome(latency=0.1, tokens=1, cost=0.99, cache_hit=False)
        guard = RateCostGuard(metrics, cost_limit=1.0)
        await guard.check_admission()  # Should not raise

    async def test_denies_at_limit(self):
        metrics = MetricsRegistry()
        await metrics.record_outcome(latency=0.1, tokens=1, cost=1.0, cache_hit=False)
        guard = RateCostGuard(metrics, cost_limit=1.0)
        with pytest.raises(CostLimitExceeded) as exc_info:
            await guard.check_admission()
        assert isinstance(exc_info.value, AdmissionDenied)
        assert exc_info.value.limit == 1.0
        assert exc_info.value.current_cost == pytest.approx(1.0)
        assert exc_info.value.retryable is False

    async def test_zero_limit_denies_everything(self):
        guard = RateCostGuard(MetricsRegistry(), cost_limit=0.0)
        with pytest.raises(CostLimitExceeded):
            await guard.check_admission()

    async def test_no_limit_never_denies(self):
        metrics = MetricsRegistry()
        await metrics.record_outcome(latency=0.1, tokens=1, cost=1e9, cache_hit=False)
        await RateCostGuard(metrics).check_admission()

    async def test_reset_reopens_admission(self):
        metrics = MetricsRegistry()
        await metrics.record_outcome(latency=0.1, tokens=1, cost=5.0, cache_hit=False)
        guard = RateCostGuard(metrics, cost_limit=1.0)
        with pytest.raises(CostLimitExceeded):
            await guard.check_admission()
        await metrics.reset()
        await guard.check_admission()


@pytest.mark.asyncio
class TestRateLimit:
    async def test_denies_when_bucket_empty(self, clock):
        bucket = TokenBucket(capacity=2, clock=clock)
        guard = RateCostGuard(MetricsRegistry(), rate_limit=2, bucket=bucket)
        await guard.check_admission()
        await guard.check_admission()
        with pytest.raises(RateLimitExceeded) as exc_info:
            await guard.check_admission()
        assert exc_info.value.limit == 2

    async def test_cost_checked_before_rate(self, clock):
        metrics = MetricsRegistry()
        await metrics.record_outcome(latency=0.1, tokens=1, cost=2.0, cache_hit=False)
        bucket = TokenBucket(capacity=1, clock=clock)
        guard = RateCostGuard(metrics, cost_limit=1.0, rate_limit=1, bucket=bucket)
        with pytest.raises(CostLimitExceeded):
            await guard.check_admission()
        # Denied on cost, so no token was spent.
        assert await bucket.available() == pytest.approx(1.0)


@pytest.mark.asyncio
class TestTokenBucket:
    async def test_burst_up_to_capacity(self, clock):
        bucket = TokenBucket(capacity=3, clock=clock)
        results = [await bucket.try_acquire() for _ in range(4)]
        assert results == [True, True, True, False]

    async def test_refills_over_time(self, clock):
        bucket = TokenBucket(capacity=60, period_seconds=60, clock=clock)
        for _ in range(60):
            assert await bucket.try_acquire()
        assert not await bucket.try_acquire()
        clock.advance(1.0)  # one token per second
        assert await bucket.try_acquire()
        assert not await bucket.try_acquire()

    async def test_refill_is_capped(self, clock):
        bucket = TokenBucket(capacity=2, clock=clock)
        clock.advance(3600)
        assert await bucket.available() == pytest.approx(2.0)


class TestTokenBucketValidation:
    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            TokenBucket(capacity=0)
