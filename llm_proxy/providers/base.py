# llm_proxy/providers/base.py
"""
BaseProvider — abstract contract every provider adapter must implement.

An adapter wraps a pre-configured provider SDK client and exposes a
uniform interface to the proxy. The proxy never calls provider SDKs
directly; it always goes through an adapter.

This design means:
  - Provider-specific error handling is contained inside each adapter.
  - The router doesn't need to know about 429 vs ConnectionError vs
    provider-specific status codes.
  - Adding a new provider requires only implementing this interface and
    registering it under a provider id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from ..constants import DEFAULT_PRICING
from ..models import ModelPricing, ProxyRequest, ProxyResponse, StreamChunk


class BaseProvider(ABC):
    """
    Abstract base class for all LLM provider adapters.

    Attributes
    ----------
    name:
        Provider id, e.g. "openai", "anthropic".
    enabled:
        Whether this provider currently accepts requests.
    pricing:
        Per-model prices used to compute ProxyResponse.cost.
    """

    def __init__(
        self,
        name: str,
        enabled: bool = True,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        self.name = name
        self.enabled = enabled
        self.pricing: dict[str, ModelPricing] = {
            model: ModelPricing(input_per_1k=inp, output_per_1k=out)
            for model, (inp, out) in DEFAULT_PRICING.items()
        }
        self.pricing.update(pricing or {})

    @abstractmethod
    async def generate(self, request: ProxyRequest) -> ProxyResponse:
        """
        Run a single completion for *request*.

        ``request.model`` selects the model; fallback resolution calls this
        again with a substituted model name.

        Returns
        -------
        ProxyResponse
            With ``cache_hit=False`` and token usage and cost filled in.

        Raises
        ------
        Any exception from the underlying SDK. The router treats every
        exception from this method as a failed attempt.
        """

    async def stream(self, request: ProxyRequest) -> AsyncIterator[StreamChunk]:
        """
        Stream a completion for *request* as StreamChunk objects.

        Adapters without native streaming inherit this version, which emits
        the whole generate() result as a single chunk. Exceptions raised
        before the first chunk let the router fall back to the next model;
        once a chunk has been yielded the stream is committed.
        """
        response = await self.generate(request)
        yield StreamChunk(
            text=response.text,
            model=response.model,
            tokens_used=response.tokens_used,
            cost=response.cost,
        )

    def is_available(self) -> bool:
        """Return False to have the router skip this provider without calling it."""
        return self.enabled

    def compute_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        pricing = self.pricing.get(model)
        if pricing is None:
            return 0.0
        return pricing.cost(input_tokens, output_tokens)

    async def close(self) -> None:
        """Release any resources held by this adapter (HTTP clients, etc.)."""

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(name={self.name!r}, enabled={self.enabled})"
