# llm_proxy/providers/anthropic.py
"""
Anthropic provider adapter.

Wraps an AsyncAnthropic client. Supports BYOC (pass an existing client)
or creates its own client from api_key.
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator

import httpx

from .base import BaseProvider
from ..models import ModelPricing, ProxyRequest, ProxyResponse, StreamChunk


class AnthropicProvider(BaseProvider):
    """Adapter wrapping anthropic.AsyncAnthropic."""

    def __init__(
        self,
        name: str = "anthropic",
        api_key: str | None = None,
        enabled: bool = True,
        pricing: dict[str, ModelPricing] | None = None,
        headers: dict[str, str] | None = None,
        client: Any = None,  # BYOC
    ) -> None:
        super().__init__(name=name, enabled=enabled, pricing=pricing)
        self._owns_client = client is None

        if client is not None:
            self._client = client
        else:
            try:
                import anthropic  # type: ignore[import]
            except ImportError as exc:
                raise ImportError(
                    "anthropic package is required for AnthropicProvider. "
                    "Install it with: pip install anthropic"
                ) from exc
            self._client = anthropic.AsyncAnthropic(
                api_key=api_key,
                default_headers=headers or None,
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
            call_kwargs["metadata"] = {"user_id": request.user_id}
        return call_kwargs

    async def generate(self, request: ProxyRequest) -> ProxyResponse:
        t0 = time.monotonic()
        response = await self._client.messages.create(**self._call_kwargs(request))
        latency = time.monotonic() - t0

        content = response.content[0].text if response.content else ""
        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
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
        async with self._client.messages.stream(**self._call_kwargs(request)) as stream:
            async for text in stream.text_stream:
                if text:
                    yield StreamChunk(text=text, model=request.model)
            final = await stream.get_final_message()

        input_tokens = final.usage.input_tokens
        output_tokens = final.usage.output_tokens
        yield StreamChunk(
            model=request.model,
            tokens_used=input_tokens + output_tokens,
            cost=self.compute_cost(request.model, input_tokens, output_tokens),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()
