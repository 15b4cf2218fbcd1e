# llm_proxy/router.py
"""
ModelRouter — resolves a request to a provider call with model fallback.

Routing for a single request:
  1. Look up the provider named by ``request.provider``. Unknown ids fail
     with ProviderNotFound; nothing else is tried.
  2. If the provider is available, call it with the requested model and
     return on success.
  3. Otherwise look up the fallback chain for ``request.model``.
  4. Walk the chain in order, calling the same provider with each
     substitute model, skipping it while it reports unavailable. The first
     success wins.
  5. If nothing succeeds, raise AllFallbacksFailed with every error seen.

Fallback is a single level over a fixed list: a substitute model's own
fallback chain is never consulted, and providers are never crossed.

When a deadline is given, it is checked before every fallback candidate;
once it has passed the router raises DeadlineExceeded instead of starting
another call. A call already in flight is never interrupted.

Streaming follows the same order, but a candidate only counts as a success
once it has produced its first chunk. After that the stream is committed
and later errors propagate to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from .exceptions import (
    AllFallbacksFailed,
    DeadlineExceeded,
    NoFallbackConfigured,
    ProviderNotFound,
)
from .models import ProxyRequest, ProxyResponse, StreamChunk
from .providers.base import BaseProvider
from .providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

CallFn = Callable[[BaseProvider, ProxyRequest], Awaitable[T]]


class _OpenedStream:
    """A provider stream whose first chunk has already been received."""

    def __init__(self, first: StreamChunk | None, rest: AsyncIterator[StreamChunk]) -> None:
        self.first = first
        self.rest = rest


async def _generate(provider: BaseProvider, request: ProxyRequest) -> ProxyResponse:
    return await provider.generate(request)


async def _open_stream(provider: BaseProvider, request: ProxyRequest) -> _OpenedStream:
    stream = provider.stream(request).__aiter__()
    try:
        first = await stream.__anext__()
    except StopAsyncIteration:
        return _OpenedStream(None, stream)
    return _OpenedStream(first, stream)


class ModelRouter:
    """
    Parameters
    ----------
    registry:
        Registry holding providers and fallback chains.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    async def route_request(
        self,
        request: ProxyRequest,
        *,
        deadline: float | None = None,
    ) -> ProxyResponse:
        """Generate a completion, falling back through the model's chain."""
        return await self._resolve(request, _generate, deadline)

    async def stream_request(
        self,
        request: ProxyRequest,
        *,
        deadline: float | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion, falling back only until the first chunk arrives."""
        opened = await self._resolve(request, _open_stream, deadline)
        if opened.first is not None:
            yield opened.first
        async for chunk in opened.rest:
            yield chunk

    async def _resolve(
        self,
        request: ProxyRequest,
        call: CallFn[T],
        deadline: float | None,
    ) -> T:
        provider = await self._registry.get(request.provider)
        if provider is None:
            raise ProviderNotFound(request.provider)

        errors: list[Exception] = []
        attempts = 0

        if provider.is_available():
            attempts += 1
            try:
                return await call(provider, request)
            except Exception as exc:
                logger.warning(
                    "Provider %r failed for model %r: %s",
                    request.provider,
                    request.model,
                    exc,
                )
                errors.append(exc)
        else:
            logger.debug("Provider %r unavailable for model %r", request.provider, request.model)

        chain = await self._registry.get_fallbacks(request.model)
        if chain is None:
            cause = errors[-1] if errors else None
            raise NoFallbackConfigured(request.model) from cause

        for candidate in chain:
            if deadline is not None and time.monotonic() >= deadline:
                cause = errors[-1] if errors else None
                raise DeadlineExceeded(deadline, stage="before fallback") from cause

            fallback_request = request.model_copy(update={"model": candidate})

            # Re-read on every step so a provider replaced mid-request is honoured.
            provider = await self._registry.get(request.provider)
            if provider is None or not provider.is_available():
                logger.debug("Skipping fallback model %r: provider unavailable", candidate)
                continue

            attempts += 1
            try:
                result = await call(provider, fallback_request)
            except Exception as exc:
                logger.warning("Fallback model %r failed: %s", candidate, exc)
                errors.append(exc)
                continue

            logger.info(
                "Request %s served by fallback model %r instead of %r",
                request.request_id,
                candidate,
                request.model,
            )
            return result

        raise AllFallbacksFailed(request.model, attempts=attempts, errors=errors)
