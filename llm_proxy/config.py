# llm_proxy/config.py
"""
ProxyConfig and related sub-configs.

Supports construction from:
  - Python dict   → ProxyConfig.from_dict(data)
  - YAML file     → ProxyConfig.from_yaml("proxy.yaml")
  - Environment   → ProxyConfig.from_env()

Callables (filter_function, on_request) can't come from YAML or the
environment; pass them as keyword arguments to any factory.
"""

from __future__ import annotations

import os
import re
from typing import Any, Callable

from pydantic import BaseModel, Field, model_validator

from .constants import (
    DEFAULT_BACKOFF_BASE_SECONDS,
    DEFAULT_MAX_RETRIES,
    ENV_PREFIX,
)
from .models import ProviderConfig


class RetryConfig(BaseModel):
    """Retry bound and backoff base for the retry executor."""

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=1,
        description="Maximum number of attempts per request.",
    )
    backoff_base: float = Field(
        default=DEFAULT_BACKOFF_BASE_SECONDS,
        ge=0.0,
        description="Seconds; the wait after attempt n is backoff_base * 2**n.",
    )


class ProxyConfig(BaseModel):
    """
    Top-level configuration for the LLM proxy.

    Instantiate directly or use one of the factory class methods:
      ProxyConfig.from_dict(data)
      ProxyConfig.from_yaml(path)
      ProxyConfig.from_env()
    """

    model_config = {"arbitrary_types_allowed": True}

    cache_enabled: bool = Field(default=False, description="Enable cache lookup and write.")
    cache_ttl_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Lifetime of cached responses. Required when cache_enabled is set.",
    )
    cache_max_entries: int | None = Field(
        default=None,
        gt=0,
        description="Optional LRU bound for the in-memory cache. None means unbounded.",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)
    rate_limit: int | None = Field(
        default=None,
        gt=0,
        description="Requests per minute. None disables the rate check.",
    )
    cost_limit: float | None = Field(
        default=None,
        ge=0.0,
        description="Cumulative cost ceiling in USD. None disables the cost check.",
    )
    custom_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers handed to built-in provider SDK clients.",
    )
    filter_function: Callable[[str], str] | None = Field(
        default=None,
        description="Prompt filter (e.g. PII redaction) applied to the prompt before the cache lookup.",
        exclude=True,
    )
    providers: list[ProviderConfig] = Field(default_factory=list)
    fallbacks: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Model name → ordered substitute models on the same provider.",
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL. If set, cached responses are shared through Redis.",
    )
    on_request: Callable[..., Any] | None = Field(
        default=None,
        description=(
            "Optional callback fired after every successful request. Receives a "
            "RequestEvent; may be a plain function or a coroutine function."
        ),
        exclude=True,
    )

    @model_validator(mode="after")
    def _require_ttl_when_caching(self) -> "ProxyConfig":
        if self.cache_enabled and self.cache_ttl_seconds is None:
            raise ValueError("cache_ttl_seconds is required when cache_enabled is true")
        return self

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "ProxyConfig":
        """Build config from a plain Python dictionary."""
        merged = {**data, **kwargs}
        return cls.model_validate(merged)

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "ProxyConfig":
        """
        Build config from a YAML file.

        Environment variable interpolation is supported:
          api_key: "${OPENAI_API_KEY}"
        """
        try:
            import yaml  # type: ignore[import]
        except ImportError as exc:
            raise ImportError(
                "PyYAML is required for from_yaml(). Install it with: pip install pyyaml"
            ) from exc

        with open(path) as f:
            raw = f.read()

        # Interpolate ${ENV_VAR} placeholders
        def _replace(match: re.Match) -> str:  # type: ignore[type-arg]
            var = match.group(1)
            value = os.environ.get(var)
            if value is None:
                raise EnvironmentError(
                    f"Environment variable '{var}' referenced in '{path}' is not set."
                )
            return value

        raw = re.sub(r"\$\{([^}]+)\}", _replace, raw)
        data = yaml.safe_load(raw) or {}
        return cls.from_dict(data, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "ProxyConfig":
        """
        Build a config from environment variables.

        Reads the following variables to auto-configure known providers:
          OPENAI_API_KEY    → registers an OpenAI provider
          ANTHROPIC_API_KEY → registers an Anthropic provider

        Optional overrides:
          LLM_PROXY_CACHE_ENABLED     → cache_enabled ("1", "true", "yes")
          LLM_PROXY_CACHE_TTL_SECONDS → cache_ttl_seconds
          LLM_PROXY_MAX_RETRIES       → retry.max_retries
          LLM_PROXY_BACKOFF_BASE      → retry.backoff_base
          LLM_PROXY_RATE_LIMIT        → rate_limit
          LLM_PROXY_COST_LIMIT        → cost_limit
          LLM_PROXY_REDIS_URL         → redis_url
        """
        providers: list[dict[str, Any]] = []

        _known = [
            ("OPENAI_API_KEY", "openai"),
            ("ANTHROPIC_API_KEY", "anthropic"),
        ]

        for env_var, name in _known:
            api_key = os.environ.get(env_var)
            if api_key:
                providers.append({"name": name, "api_key": api_key})

        data: dict[str, Any] = {"providers": providers}

        def _env(name: str) -> str | None:
            return os.environ.get(ENV_PREFIX + name) or None

        cache_enabled = _env("CACHE_ENABLED")
        if cache_enabled:
            data["cache_enabled"] = cache_enabled.strip().lower() in {"1", "true", "yes", "on"}

        ttl = _env("CACHE_TTL_SECONDS")
        if ttl:
            data["cache_ttl_seconds"] = float(ttl)

        retry: dict[str, Any] = {}
        max_retries = _env("MAX_RETRIES")
        if max_retries:
            retry["max_retries"] = int(max_retries)
        backoff = _env("BACKOFF_BASE")
        if backoff:
            retry["backoff_base"] = float(backoff)
        if retry:
            data["retry"] = retry

        rate_limit = _env("RATE_LIMIT")
        if rate_limit:
            data["rate_limit"] = int(rate_limit)

        cost_limit = _env("COST_LIMIT")
        if cost_limit:
            data["cost_limit"] = float(cost_limit)

        redis_url = _env("REDIS_URL")
        if redis_url:
            data["redis_url"] = redis_url

        data.update(kwargs)
        return cls.from_dict(data)
