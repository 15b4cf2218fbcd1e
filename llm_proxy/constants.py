# llm_proxy/constants.py
"""
Default constants for the LLM proxy.
All tunable values are centralised here so they can be overridden via ProxyConfig
without touching internal logic.
"""

# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------
DEFAULT_MAX_RETRIES: int = 3
"""Maximum number of attempts made by the retry executor."""

DEFAULT_BACKOFF_BASE_SECONDS: float = 1.0
"""Base delay; the wait after attempt ``n`` is ``base * 2**n``."""

# ---------------------------------------------------------------------------
# Admission control
# ---------------------------------------------------------------------------
RATE_LIMIT_WINDOW_SECONDS: float = 60.0
"""The requests-per-minute bucket refills its full capacity over this period."""

# ---------------------------------------------------------------------------
# Batch processing
# ---------------------------------------------------------------------------
DEFAULT_BATCH_CONCURRENCY: int = 5
"""Maximum requests in flight at once during LLMProxy.process_batch()."""

# ---------------------------------------------------------------------------
# Request defaults
# ---------------------------------------------------------------------------
DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_MAX_TOKENS: int = 1024

# ---------------------------------------------------------------------------
# Default model strings (used when adapter creates its own client)
# ---------------------------------------------------------------------------
DEFAULT_OPENAI_MODEL: str = "gpt-4o"
DEFAULT_ANTHROPIC_MODEL: str = "claude-sonnet-4-5"

# ---------------------------------------------------------------------------
# Pricing, USD per 1k tokens as (input, output)
# ---------------------------------------------------------------------------
DEFAULT_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o": (0.0025, 0.01),
    "gpt-4o-mini": (0.00015, 0.0006),
    "gpt-4": (0.03, 0.06),
    "gpt-3.5-turbo": (0.0005, 0.0015),
    "claude-sonnet-4-5": (0.003, 0.015),
    "claude-3-5-sonnet-20240620": (0.003, 0.015),
    "claude-3-5-haiku-latest": (0.0008, 0.004),
}
"""Models missing from the table are priced at zero."""

# ---------------------------------------------------------------------------
# Redis key prefixes
# ---------------------------------------------------------------------------
REDIS_PREFIX: str = "llm_proxy"
REDIS_CACHE_KEY_TMPL: str = REDIS_PREFIX + ":cache:{key}"

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
ENV_PREFIX: str = "LLM_PROXY_"
