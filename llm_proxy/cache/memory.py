# llm_proxy/cache/memory.py
"""
In-process, in-memory response cache.

All state is lost when the process exits — appropriate for single-instance
deployments and development/testing.

Architecture note
-----------------
Entries live in an OrderedDict keyed by cache key. No lock is taken: every
read and write is a single dict operation with no await in between, so it
is atomic with respect to other coroutines on the event loop and keys never
interfere with each other. Concurrent writers to the same key are
last-writer-wins.

When ``max_entries`` is set the dict doubles as an LRU list: hits move the
key to the end and writes evict from the front once the bound is exceeded.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable

from .base import AbstractCache, CacheEntry
from ..models import ProxyResponse

logger = logging.getLogger(__name__)


class InMemoryCache(AbstractCache):
    """
    In-process response cache (default, zero deps).

    Parameters
    ----------
    max_entries:
        Optional capacity bound. None means unbounded.
    clock:
        Returns the current time in epoch seconds. Tests inject a fake
        clock to simulate expiry.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> CacheEntry | None:
        if not key:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            # Left in place; the next put() for this key reclaims it.
            logger.debug("Cache entry for key %r has expired", key)
            return None
        if self._max_entries is not None:
            self._entries.move_to_end(key)
        return entry.model_copy(update={"payload": entry.payload.model_copy(deep=True)})

    async def put(self, key: str, response: ProxyResponse, ttl_seconds: float) -> None:
        if not key:
            return
        entry = CacheEntry(
            payload=response.model_copy(deep=True),
            expires_at=self._clock() + ttl_seconds,
            tokens_used=response.tokens_used,
            cost=response.cost,
        )
        self._entries[key] = entry
        self._entries.move_to_end(key)
        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache key %r (capacity %d)", evicted, self._max_entries)
