from .retry import RetryExecutor, backoff_delay, is_retryable

__all__ = [
    "RetryExecutor",
    "backoff_delay",
    "is_retryable",
]
