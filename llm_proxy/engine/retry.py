# llm_proxy/engine/retry.py
"""
Bounded retry loop with exponential backoff.

The executor calls an attempt function up to ``max_retries`` times. After
each failed attempt ``n`` (0-based) it waits ``backoff_base * 2**n``
seconds; there is no jitter and no cap. A wait follows every failure,
including the last one, before RetriesExhausted is raised.

The wait is the only point the executor can be interrupted:
  - Task cancellation raises asyncio.CancelledError out of the sleep.
  - A deadline (``time.monotonic()`` seconds) that falls inside the wait
    ends it early with DeadlineExceeded.
An attempt that is already running is never interrupted by the executor.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from ..constants import DEFAULT_BACKOFF_BASE_SECONDS, DEFAULT_MAX_RETRIES
from ..exceptions import DeadlineExceeded, LLMProxyError, RetriesExhausted
from ..models import ProxyRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay(base: float, attempt: int) -> float:
    """Delay after the failed attempt with 0-based index *attempt*."""
    return base * (2**attempt)


def is_retryable(exc: Exception) -> bool:
    """Proxy errors declare retryability; any other exception is transient."""
    if isinstance(exc, LLMProxyError):
        return exc.retryable
    return True


class RetryExecutor:
    """
    Parameters
    ----------
    max_retries:
        Maximum number of attempts.
    backoff_base:
        Base delay in seconds.
    sleep:
        Awaitable sleep function. Defaults to asyncio.sleep; tests inject a
        recorder.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = DEFAULT_BACKOFF_BASE_SECONDS,
        sleep: SleepFn | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._sleep = sleep or asyncio.sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def attempt_with_retries(
        self,
        request: ProxyRequest,
        attempt_fn: Callable[[ProxyRequest], Awaitable[T]],
        *,
        deadline: float | None = None,
    ) -> T:
        """
        Run *attempt_fn(request)* until it succeeds or the budget is spent.

        Raises
        ------
        RetriesExhausted
            All attempts failed; ``last_error`` holds the final failure.
        DeadlineExceeded
            *deadline* passed while waiting between attempts.
        asyncio.CancelledError
            The task was cancelled while waiting between attempts.
        LLMProxyError
            A non-retryable error from *attempt_fn*, re-raised as is.
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                return await attempt_fn(request)
            except Exception as exc:
                if not is_retryable(exc):
                    raise
                last_error = exc

            delay = backoff_delay(self._backoff_base, attempt)
            logger.warning(
                "Request %s attempt %d/%d failed (%s: %s); retrying in %.2fs",
                request.request_id,
                attempt + 1,
                self._max_retries,
                type(last_error).__name__,
                last_error,
                delay,
            )
            await self._wait(delay, deadline)

        raise RetriesExhausted(
            attempts=self._max_retries, last_error=last_error  # type: ignore[arg-type]
        ) from last_error

    async def _wait(self, delay: float, deadline: float | None) -> None:
        if deadline is None:
            await self._sleep(delay)
            return
        remaining = deadline - time.monotonic()
        if remaining < delay:
            await self._sleep(max(0.0, remaining))
            raise DeadlineExceeded(deadline)
        await self._sleep(delay)
