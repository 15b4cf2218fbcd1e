# llm_proxy/models.py
"""
Pydantic v2 data models used throughout llm-proxy.

These are part of the public API surface — changes here require a major
version bump once the library reaches 1.0.
"""

from __future__ import annotations

import time
import uuid

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from .constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE


class ModelPricing(BaseModel):
    """Per-model token prices in USD per 1k tokens."""

    input_per_1k: float = Field(default=0.0, ge=0.0)
    output_per_1k: float = Field(default=0.0, ge=0.0)

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens * self.input_per_1k + output_tokens * self.output_per_1k) / 1000


class ProviderConfig(BaseModel):
    """
    Configuration for a single built-in provider adapter.

    Used when constructing a ProxyConfig via from_dict / from_yaml / from_env.
    Developers bringing their own client (register()) don't need to
    instantiate this directly.
    """

    name: str = Field(..., description="Provider id, e.g. 'openai', 'anthropic'.")
    api_key: str = Field(..., description="Provider API key.")
    pricing: dict[str, ModelPricing] = Field(
        default_factory=dict,
        description="Per-model prices; merged over the built-in table.",
    )
    enabled: bool = Field(default=True, description="Toggle without removing from config.")


class ProxyRequest(BaseModel):
    """
    A generation request submitted by the developer's application.

    A request without ``cache_key`` is never cached.
    """

    prompt: str = Field(..., description="Prompt text sent to the provider.")
    model: str = Field(..., description="Model name, e.g. 'gpt-4o'.")
    provider: str = Field(..., description="Registered provider id, e.g. 'openai'.")
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    cache_key: str | None = Field(default=None)
    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str | None = Field(default=None)


class ProxyResponse(BaseModel):
    """
    The result returned to the developer. Immutable once constructed.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="The completion text.")
    tokens_used: int = Field(..., ge=0)
    cost: float = Field(..., ge=0.0, description="Computed cost in USD.")
    cache_hit: bool = Field(default=False)
    latency: float = Field(default=0.0, ge=0.0, description="Latency in seconds.")
    model: str = Field(..., description="Model that actually served the request.")
    metadata: dict[str, JsonValue] = Field(default_factory=dict)


class StreamChunk(BaseModel):
    """
    One piece of a streamed completion, as produced by BaseProvider.stream().

    Text chunks carry ``text``; adapters that learn token usage at the end of
    the stream emit a final chunk with empty text and the usage filled in.
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    model: str = Field(..., description="Model producing the stream.")
    tokens_used: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)


class MetricsSnapshot(BaseModel):
    """Immutable copy of the proxy's cumulative counters."""

    model_config = ConfigDict(frozen=True)

    total_requests: int = 0
    cache_hits: int = 0
    total_latency: float = 0.0
    total_tokens: int = 0
    total_cost: float = 0.0
    total_failures: int = 0

    @property
    def average_latency(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.total_latency / self.total_requests

    @property
    def cache_hit_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.cache_hits / self.total_requests


class RequestEvent(BaseModel):
    """
    Fired after every successful request via the optional on_request callback.
    Developers can forward this to Datadog, Sentry, Slack, or any internal system.
    """

    request_id: str
    user_id: str | None
    provider: str
    requested_model: str
    model: str
    tokens_used: int
    cost: float
    latency: float
    cache_hit: bool
    timestamp: float = Field(default_factory=time.time)
