# llm_proxy/providers/openai.py
"""
OpenAI provider adapter.

Wraps an AsyncOpenAI client. The proxy registers this adapter when the
developer either:
  a) Provides api_key in ProviderConfig (adapter creates its own client), or
  b) Calls proxy.register("openai", client=openai_client) — BYOC mode
     (adapter uses the supplied client directly).
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator

import httpx

from .base import BaseProvider
from ..models import ModelPricing, ProxyRequest, ProxyResponse, StreamChunk


class OpenAIProvider(BaseProvider):
    """Adapter wrapping openai.AsyncOpenAI."""

    def __init__(
        self,
        name: str = "openai",
        api_key: str | None = None,
        enabled: bool = True,
        pricing: dict[str, ModelPricing] | None = None,
        headers: dict[str, str] | None = None,
        client: Any = None,  # pre-configured AsyncOpenAI — BYOC
    ) -> None:
        super().__init__(name=name, enabled=enabled, pricing=pricing)
        self._owns_client = client is None

        if client is not None:
            self._client = client
        else:
            try:
                import openai  # type: ignore[import]
            except ImportError as exc:
                raise ImportError(
                    "openai package is required for OpenAIProvider. "
                    "Install it with: pip install openai"
                ) from exc
            self._client = openai.AsyncOpenAI(
                api_key=api_key,
                default_headers=headers or None,
                # Retries are the proxy's job.
                max_retries=0,
                http_client=httpx.AsyncClient(
                    limits=httpx.Limits(max_connections=100, max_keepalive_connections=20)
                ),
            )

    @staticmethod
    def _call_kwargs(request: ProxyRequest) -> dict[str, Any]:
        call_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.user_id:
            call_kwargs["user"] = request.user_id
        return call_kwargs

    async def generate(self, request: ProxyRequest) -> ProxyResponse:
        t0 = time.monotonic()
        response = await self._client.chat.completions.create(**self._call_kwargs(request))
        latency = time.monotonic() - t0

        content = response.choices[0].message.content or ""
        input_tokens = response.usage.prompt_tokens
        output_tokens = response.usage.completion_tokens
        return ProxyResponse(
            text=content,
            tokens_used=input_tokens + output_tokens,
            cost=self.compute_cost(request.model, input_tokens, output_tokens),
            latency=latency,
            model=request.model,
            metadata={
                "provider": self.name,
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
            },
        )

    async def stream(self, request: ProxyRequest) -> AsyncIterator[StreamChunk]:
        stream = await self._client.chat.completions.create(
            **self._call_kwargs(request),
            stream=True,
            stream_options={"include_usage": True},
        )
        usage = None
        async for chunk in stream:
            # The usage chunk arrives last, with an empty choices list.
            if getattr(chunk, "usage", None) is not None:
                usage = chunk.usage
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield StreamChunk(text=delta, model=request.model)

        if usage is not None:
            yield StreamChunk(
                model=request.model,
                tokens_used=usage.prompt_tokens + usage.completion_tokens,
                cost=self.compute_cost(request.model, usage.prompt_tokens, usage.completion_tokens),
            )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()
