# llm_proxy/exceptions.py
"""
Custom exceptions for llm-proxy.

All public exceptions inherit from LLMProxyError so callers can catch
the whole family with a single except clause if preferred.

Every error class declares ``retryable``. The retry executor re-raises
non-retryable errors immediately instead of spending its attempt budget
on them. Task cancellation is not modelled here: ``asyncio.CancelledError``
propagates untouched.
"""

from __future__ import annotations


class LLMProxyError(Exception):
    """Base exception for all proxy errors."""

    retryable: bool = False


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------


class AdmissionDenied(LLMProxyError):
    """
    Raised before any provider work when a request is refused admission.

    Attributes
    ----------
    limit:
        The configured ceiling that was hit.
    """

    def __init__(self, message: str, limit: float) -> None:
        self.limit = limit
        super().__init__(message)


class CostLimitExceeded(AdmissionDenied):
    """Cumulative cost has reached the configured cost ceiling."""

    def __init__(self, limit: float, current_cost: float) -> None:
        self.current_cost = current_cost
        super().__init__(f"cost limit exceeded: {limit:.2f}", limit=limit)


class RateLimitExceeded(AdmissionDenied):
    """The requests-per-minute budget is exhausted."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"rate limit exceeded: {limit} requests/minute", limit=limit)


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


class ProviderNotFound(LLMProxyError):
    """The request names a provider id that is not registered."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"provider not found: '{provider}'")


class NoFallbackConfigured(LLMProxyError):
    """
    The primary attempt failed (or the provider was unavailable) and no
    fallback chain exists for the requested model.
    """

    retryable = True

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"no fallbacks configured for model '{model}'")


class AllFallbacksFailed(LLMProxyError):
    """
    Raised when every model in the fallback chain has been skipped or failed.

    Attributes
    ----------
    model:
        The originally requested model.
    attempts:
        Number of generation calls that were actually made.
    errors:
        Exceptions raised by each attempt, in order (primary first).
    """

    retryable = True

    def __init__(self, model: str, attempts: int, errors: list[Exception]) -> None:
        self.model = model
        self.attempts = attempts
        self.errors = errors
        super().__init__(f"all fallbacks failed for model '{model}'")

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        details = "; ".join(f"[{i+1}] {type(e).__name__}: {e}" for i, e in enumerate(self.errors))
        return f"{base} | Errors: {details}"


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class RetriesExhausted(LLMProxyError):
    """
    Raised after the configured attempt budget is spent.

    Attributes
    ----------
    attempts:
        Number of attempts made.
    last_error:
        The failure raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: Exception) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"max retries exceeded after {attempts} attempt(s): {last_error}")


class DeadlineExceeded(LLMProxyError, TimeoutError):
    """
    The caller's deadline passed before the next retry or fallback attempt.

    Never retried. An attempt already in flight when the deadline passes is
    allowed to finish; only the work after it is abandoned.
    """

    def __init__(self, deadline: float, stage: str = "while waiting to retry") -> None:
        self.deadline = deadline
        self.stage = stage
        super().__init__(f"deadline exceeded {stage}")
