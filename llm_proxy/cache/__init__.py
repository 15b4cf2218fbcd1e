from .base import AbstractCache, CacheEntry
from .memory import InMemoryCache

__all__ = ["AbstractCache", "CacheEntry", "InMemoryCache"]
