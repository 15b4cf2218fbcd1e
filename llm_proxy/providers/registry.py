# llm_proxy/providers/registry.py
"""
ProviderRegistry — coroutine-safe container for registered providers and
per-model fallback chains.

The registry is the single source of truth for which providers exist and
which substitute models may be tried when a model fails. The router
queries it on every request; registration is rare.

Thread-safety is achieved via asyncio.Lock so concurrent coroutines
don't race when registering or querying providers.
"""

from __future__ import annotations

import asyncio
from typing import Any

from .anthropic import AnthropicProvider
from .base import BaseProvider
from .openai import OpenAIProvider
from ..models import ModelPricing, ProviderConfig


# Map provider name → adapter class
_ADAPTER_MAP: dict[str, type[OpenAIProvider] | type[AnthropicProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


class ProviderRegistry:
    """Holds all registered provider adapters and fallback chains."""

    def __init__(self) -> None:
        self._providers: dict[str, BaseProvider] = {}
        self._fallbacks: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_provider(self, name: str, provider: BaseProvider) -> None:
        """Register *provider* under *name*, replacing any previous entry."""
        async with self._lock:
            self._providers[name] = provider

    async def register_from_config(
        self,
        config: ProviderConfig,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Create and register a built-in adapter from a ProviderConfig."""
        if not config.enabled:
            return

        adapter_cls = _ADAPTER_MAP.get(config.name)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown provider '{config.name}'. "
                f"Supported built-in providers: {list(_ADAPTER_MAP)}. "
                "For custom providers, use register_provider() directly."
            )

        adapter = adapter_cls(
            name=config.name,
            api_key=config.api_key,
            enabled=config.enabled,
            pricing=config.pricing,
            headers=headers,
        )
        await self.register_provider(config.name, adapter)

    async def register_byoc(
        self,
        name: str,
        client: Any,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        """
        Register a BYOC (Bring Your Own Client) provider.

        The adapter class is inferred from *name*. If *name* is not a known
        built-in, raises ValueError — the developer should use
        register_provider() with a custom BaseProvider subclass instead.
        """
        adapter_cls = _ADAPTER_MAP.get(name)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown provider '{name}' for BYOC registration. "
                "Implement a BaseProvider subclass and use register_provider()."
            )
        adapter = adapter_cls(name=name, pricing=pricing, client=client)
        await self.register_provider(name, adapter)

    async def set_fallbacks(self, model: str, chain: list[str]) -> None:
        """Set the ordered substitute models tried when *model* fails."""
        async with self._lock:
            self._fallbacks[model] = list(chain)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    async def get(self, name: str) -> BaseProvider | None:
        """Return provider by name, or None if not found."""
        async with self._lock:
            return self._providers.get(name)

    async def get_fallbacks(self, model: str) -> list[str] | None:
        """Return a copy of the chain for *model*, or None if none is configured."""
        async with self._lock:
            chain = self._fallbacks.get(model)
            return list(chain) if chain is not None else None

    async def names(self) -> list[str]:
        """Return names of all registered providers."""
        async with self._lock:
            return list(self._providers.keys())

    async def close_all(self) -> None:
        """Call close() on every provider (releases HTTP connections, etc.)."""
        async with self._lock:
            for provider in self._providers.values():
                await provider.close()
