from .base import BaseProvider
from .registry import ProviderRegistry
from .openai import OpenAIProvider
from .anthropic import AnthropicProvider

__all__ = [
    "BaseProvider",
    "ProviderRegistry",
    "OpenAIProvider",
    "AnthropicProvider",
]
