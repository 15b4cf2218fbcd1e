# llm_proxy/pipeline.py
"""
LLMProxy — the primary class the developer interacts with.

Orchestrates the full request pipeline:
  1. Admission control (cost ceiling, then requests-per-minute).
  2. Apply the prompt filter hook, if configured.
  3. Cache lookup when caching is enabled and the request has a cache key.
  4. On a miss, call the router through the retry executor, so each
     retry attempt gets the full primary-then-fallback resolution.
  5. Record the outcome in the shared metrics.
  6. Store the response in the cache.
  7. Fire the on_request callback and return a copy of the response.

stream() runs the same admission and filter steps but bypasses the cache
and the retry executor; fallback applies until the first chunk arrives.
process_batch() runs many requests with bounded concurrency.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from typing import Any, AsyncIterator, Iterable

from .admission.guard import RateCostGuard
from .cache.base import AbstractCache
from .cache.memory import InMemoryCache
from .config import ProxyConfig
from .constants import DEFAULT_BATCH_CONCURRENCY
from .engine.retry import RetryExecutor, SleepFn
from .filters import apply_filter
from .metrics import MetricsRegistry
from .models import MetricsSnapshot, ModelPricing, ProxyRequest, ProxyResponse, RequestEvent
from .providers.base import BaseProvider
from .providers.registry import ProviderRegistry
from .router import ModelRouter

logger = logging.getLogger(__name__)


class LLMProxy:
    """
    Resilient, cost-guarded LLM request proxy.

    Parameters
    ----------
    config:
        Full proxy configuration. Use one of the factory class methods
        (from_dict, from_yaml, from_env) for convenient construction.
    cache:
        Optional cache backend. Defaults to Redis when ``redis_url`` is
        configured, otherwise an in-process cache.
    sleep:
        Optional sleep function for the retry executor (tests).
    """

    def __init__(
        self,
        config: ProxyConfig,
        cache: AbstractCache | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._config = config
        self._registry = ProviderRegistry()
        self._router = ModelRouter(self._registry)
        self._metrics = MetricsRegistry()
        self._guard = RateCostGuard(
            self._metrics,
            cost_limit=config.cost_limit,
            rate_limit=config.rate_limit,
        )
        self._retry = RetryExecutor(
            max_retries=config.retry.max_retries,
            backoff_base=config.retry.backoff_base,
            sleep=sleep,
        )
        self._cache: AbstractCache = cache if cache is not None else self._build_cache(config)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @staticmethod
    def _build_cache(config: ProxyConfig) -> AbstractCache:
        if config.redis_url:
            from .cache.redis import RedisCache

            return RedisCache(config.redis_url)
        return InMemoryCache(max_entries=config.cache_max_entries)

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "LLMProxy":
        """Construct from a plain Python dictionary."""
        return cls(ProxyConfig.from_dict(data, **kwargs))

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "LLMProxy":
        """Construct from a YAML config file."""
        return cls(ProxyConfig.from_yaml(path, **kwargs))

    @classmethod
    def from_env(cls, **kwargs: Any) -> "LLMProxy":
        """Construct from environment variables."""
        return cls(ProxyConfig.from_env(**kwargs))

    # ------------------------------------------------------------------
    # Lazy async initialisation
    # ------------------------------------------------------------------

    async def _ensure_initialized(self) -> None:
        """Register providers and fallback chains from config on first use."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            for provider_cfg in self._config.providers:
                await self._registry.register_from_config(
                    provider_cfg, headers=self._config.custom_headers
                )
            for model, chain in self._config.fallbacks.items():
                await self._registry.set_fallbacks(model, chain)
            self._initialized = True

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_provider(self, name: str, provider: BaseProvider) -> None:
        """Register a custom BaseProvider implementation under *name*."""
        await self._ensure_initialized()
        await self._registry.register_provider(name, provider)

    async def register(
        self,
        name: str,
        client: Any,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        """
        Register a pre-configured SDK client (BYOC).

        Parameters
        ----------
        name:
            Provider id. Must be one of: openai, anthropic. For anything
            else, subclass BaseProvider and use register_provider().
        client:
            A pre-configured async SDK client instance.
        pricing:
            Optional per-model prices merged over the built-in table.
        """
        await self._ensure_initialized()
        await self._registry.register_byoc(name, client, pricing=pricing)

    async def set_fallbacks(self, model: str, chain: list[str]) -> None:
        await self._ensure_initialized()
        await self._registry.set_fallbacks(model, chain)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def process_request(
        self,
        request: ProxyRequest,
        *,
        timeout: float | None = None,
    ) -> ProxyResponse:
        """
        Run *request* through admission, cache, retry and fallback.

        Parameters
        ----------
        request:
            The request. It is not modified; filtering works on a copy.
        timeout:
            Optional deadline in seconds from now. It cuts short a wait
            between retries and stops further fallback models from being
            tried, but never interrupts an attempt in flight.

        Returns
        -------
        ProxyResponse
            A copy owned by the caller.

        Raises
        ------
        AdmissionDenied
            Cost ceiling or rate limit reached; no provider was contacted.
        ProviderNotFound, RetriesExhausted, DeadlineExceeded
            Routing or retry failures, see llm_proxy.exceptions.
        """
        try:
            return await self._process(request, timeout)
        except (Exception, asyncio.CancelledError):
            await self._metrics.record_failure()
            raise

    async def _process(self, request: ProxyRequest, timeout: float | None) -> ProxyResponse:
        start = time.monotonic()
        deadline = start + timeout if timeout is not None else None

        await self._guard.check_admission()
        await self._ensure_initialized()

        request = self._filtered(request)

        use_cache = self._config.cache_enabled and bool(request.cache_key)

        if use_cache:
            entry = await self._cache.get(request.cache_key)  # type: ignore[arg-type]
            if entry is not None:
                logger.debug("Cache hit for key %r", request.cache_key)
                await self._metrics.record_outcome(0.0, entry.tokens_used, entry.cost, cache_hit=True)
                response = entry.payload.model_copy(
                    update={
                        "cache_hit": True,
                        "latency": time.monotonic() - start,
                    },
                    deep=True,
                )
                await self._fire_event(request, response)
                return response
            logger.debug("Cache miss for key %r", request.cache_key)

        response = await self._retry.attempt_with_retries(
            request,
            functools.partial(self._router.route_request, deadline=deadline),
            deadline=deadline,
        )
        latency = time.monotonic() - start
        response = response.model_copy(update={"cache_hit": False, "latency": latency}, deep=True)

        await self._metrics.record_outcome(latency, response.tokens_used, response.cost, cache_hit=False)

        if use_cache:
            await self._cache.put(
                request.cache_key,  # type: ignore[arg-type]
                response,
                self._config.cache_ttl_seconds,  # type: ignore[arg-type]
            )

        await self._fire_event(request, response)
        return response

    async def stream(
        self,
        request: ProxyRequest,
        *,
        timeout: float | None = None,
    ) -> AsyncIterator[str]:
        """
        Stream the completion for *request* as text chunks.

        Admission and the prompt filter run as for process_request(). The
        cache and the retry executor are not used: fallback moves on to the
        next model only while no chunk has been received, and once text has
        started flowing a failure propagates to the caller. Metrics are
        recorded when the stream ends, with the usage reported by the
        provider.

        Usage::

            async for text in proxy.stream(request):
                print(text, end="")
        """
        start = time.monotonic()
        deadline = start + timeout if timeout is not None else None
        parts: list[str] = []
        tokens = 0
        cost = 0.0
        served_model = request.model

        try:
            await self._guard.check_admission()
            await self._ensure_initialized()
            request = self._filtered(request)
            async for chunk in self._router.stream_request(request, deadline=deadline):
                served_model = chunk.model
                tokens += chunk.tokens_used
                cost += chunk.cost
                if chunk.text:
                    parts.append(chunk.text)
                    yield chunk.text
        except (Exception, asyncio.CancelledError):
            await self._metrics.record_failure()
            raise

        latency = time.monotonic() - start
        await self._metrics.record_outcome(latency, tokens, cost, cache_hit=False)
        response = ProxyResponse(
            text="".join(parts),
            tokens_used=tokens,
            cost=cost,
            latency=latency,
            model=served_model,
        )
        await self._fire_event(request, response)

    async def process_batch(
        self,
        requests: Iterable[ProxyRequest],
        *,
        concurrency: int = DEFAULT_BATCH_CONCURRENCY,
        timeout: float | None = None,
    ) -> list[ProxyResponse | BaseException]:
        """
        Process many requests with at most *concurrency* in flight.

        Results are returned in input order. A failed request yields its
        exception in place of a response, so one failure never discards the
        others. *timeout* applies to each request separately.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        semaphore = asyncio.Semaphore(concurrency)

        async def _run(request: ProxyRequest) -> ProxyResponse:
            async with semaphore:
                return await self.process_request(request, timeout=timeout)

        results = await asyncio.gather(*(_run(r) for r in requests), return_exceptions=True)
        failed = sum(1 for r in results if isinstance(r, BaseException))
        if failed:
            logger.warning("Batch finished with %d of %d request(s) failed", failed, len(results))
        return list(results)

    def _filtered(self, request: ProxyRequest) -> ProxyRequest:
        if self._config.filter_function is None:
            return request
        return request.model_copy(
            update={"prompt": apply_filter(self._config.filter_function, request.prompt)}
        )

    async def _fire_event(self, request: ProxyRequest, response: ProxyResponse) -> None:
        if not self._config.on_request:
            return
        event = RequestEvent(
            request_id=request.request_id,
            user_id=request.user_id,
            provider=request.provider,
            requested_model=request.model,
            model=response.model,
            tokens_used=response.tokens_used,
            cost=response.cost,
            latency=response.latency,
            cache_hit=response.cache_hit,
        )
        try:
            result = self._config.on_request(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            # Callback errors must not affect the response.
            logger.exception("on_request callback failed for request %s", request.request_id)

    async def metrics(self) -> MetricsSnapshot:
        """Return an immutable snapshot of the cumulative counters."""
        return await self._metrics.snapshot()

    async def reset_metrics(self) -> None:
        """Zero all counters, re-opening admission after the cost ceiling was hit."""
        await self._metrics.reset()

    async def close(self) -> None:
        """Release all resources (HTTP clients, Redis connections, etc.)."""
        await self._registry.close_all()
        await self._cache.close()

    async def __aenter__(self) -> "LLMProxy":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
