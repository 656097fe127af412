"""
In-memory LRU cache for transformed place collections.

This module wraps cachetools' LRUCache with a per-instance asyncio lock so
many in-flight requests can read and write it concurrently. Entries never
expire by time; they only leave when capacity forces an eviction.
"""

from __future__ import annotations

import asyncio

from cachetools import LRUCache

from .models import OutputCollection

DEFAULT_CAPACITY = 1000


class ResponseCache:
    """
    Async-safe bounded LRU cache keyed by request path and query.

    Both get and put count as an access and refresh recency. Stored
    collections are immutable tuples of frozen models, so they are handed
    out without copying.
    """

    def __init__(self, *, max_entries: int = DEFAULT_CAPACITY) -> None:
        if max_entries < 1:
            raise ValueError(f"cache capacity must be positive, got {max_entries}")
        self._cache: LRUCache[str, OutputCollection] = LRUCache(maxsize=max_entries)
        # Created lazily so we never interact with asyncio primitives
        # before an event loop exists.
        self._lock: asyncio.Lock | None = None

    @property
    def max_entries(self) -> int:
        return int(self._cache.maxsize)

    async def get(self, key: str) -> tuple[OutputCollection | None, bool]:
        """
        Retrieve a cached collection.

        Args:
            key: Request path plus query string.

        Returns:
            (collection, True) on a hit, (None, False) on a miss.
        """
        lock = self._ensure_lock()
        async with lock:
            try:
                payload = self._cache[key]
            except KeyError:
                return None, False
        return payload, True

    async def put(self, key: str, payload: OutputCollection) -> None:
        """
        Store a collection, overwriting any previous value for the key.

        Args:
            key: Request path plus query string.
            payload: Transformed collection ready to serialize.
        """
        lock = self._ensure_lock()
        async with lock:
            self._cache[key] = payload

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        # Membership checks do not touch recency.
        return key in self._cache

    def _ensure_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock


__all__ = ["ResponseCache", "DEFAULT_CAPACITY"]
