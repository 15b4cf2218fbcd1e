# llm_proxy/cache/base.py
"""
Abstract interface that every response cache backend must implement.

The cache is responsible for:
  - Storing responses under a caller-supplied cache key with an expiry time
  - Treating entries past their expiry as absent on lookup

Expired entries are not purged proactively; their storage is reclaimed by
the next write to the same key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from ..models import ProxyResponse


class CacheEntry(BaseModel):
    """A cached response together with its expiry timestamp (epoch seconds)."""

    model_config = ConfigDict(frozen=True)

    payload: ProxyResponse
    expires_at: float
    tokens_used: int
    cost: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class AbstractCache(ABC):
    """Interface contract for all cache backend implementations."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """
        Return the live entry for *key*, or None.

        None is returned when *key* is empty, no entry exists, or the
        stored entry has expired.
        """

    @abstractmethod
    async def put(self, key: str, response: ProxyResponse, ttl_seconds: float) -> None:
        """
        Store *response* under *key*, overwriting any existing entry.

        Parameters
        ----------
        key:
            Cache key. Empty keys are ignored.
        response:
            Response to cache. Backends store a copy.
        ttl_seconds:
            The entry expires this many seconds from now.
        """

    async def close(self) -> None:
        """Release any resources held by this backend (e.g. Redis connections)."""
