# llm_proxy/__init__.py
"""
llm-proxy — Cost-guarded, caching, retrying LLM request proxy with model fallback.

Public API surface:
  LLMProxy             — main class; register providers, call process_request()
  ProxyConfig          — top-level configuration model
  RetryConfig          — retry bound and backoff base
  ProxyRequest         — request model passed to process_request()
  ProxyResponse        — response model returned by process_request()
  MetricsSnapshot      — immutable copy of the cumulative counters
  ProviderConfig       — per-provider config used in ProxyConfig
  ModelPricing         — per-model token prices
  RequestEvent         — event fired by the on_request callback
  BaseProvider         — subclass to add a provider
  PromptFilter         — prompt filter hook contract
  AdmissionDenied      — raised when the cost ceiling or rate limit is hit
  ProviderNotFound     — raised for an unregistered provider id
  NoFallbackConfigured — raised when a model fails and has no fallback chain
  AllFallbacksFailed   — raised when every fallback model fails
  RetriesExhausted     — raised after the retry budget is spent
  DeadlineExceeded     — raised when the deadline passes before further work
  StreamChunk          — piece of a streamed completion from BaseProvider.stream()
"""

from .pipeline import LLMProxy
from .config import ProxyConfig, RetryConfig
from .filters import PromptFilter
from .models import (
    MetricsSnapshot,
    ModelPricing,
    ProviderConfig,
    ProxyRequest,
    ProxyResponse,
    RequestEvent,
    StreamChunk,
)
from .providers.base import BaseProvider
from .exceptions import (
    AdmissionDenied,
    AllFallbacksFailed,
    CostLimitExceeded,
    DeadlineExceeded,
    LLMProxyError,
    NoFallbackConfigured,
    ProviderNotFound,
    RateLimitExceeded,
    RetriesExhausted,
)

__all__ = [
    "LLMProxy",
    "ProxyConfig",
    "RetryConfig",
    "PromptFilter",
    "MetricsSnapshot",
    "ModelPricing",
    "ProviderConfig",
    "ProxyRequest",
    "ProxyResponse",
    "RequestEvent",
    "StreamChunk",
    "BaseProvider",
    "LLMProxyError",
    "AdmissionDenied",
    "CostLimitExceeded",
    "RateLimitExceeded",
    "ProviderNotFound",
    "NoFallbackConfigured",
    "AllFallbacksFailed",
    "RetriesExhausted",
    "DeadlineExceeded",
]

__version__ = "0.1.0"
