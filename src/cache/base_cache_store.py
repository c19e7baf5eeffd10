# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Stores persist entries only; expiry, coalescing and consistency checks live
in ContentAddressedCache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lingocore.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint digest."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store (or replace) a cache entry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove cache entry. Missing keys are ignored."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry across every task kind."""

    @abstractmethod
    async def list_entries(self) -> list[CacheEntry]:
        """List all persisted entries (used to warm the in-memory index)."""

    def close(self) -> None:
        """Release backend resources. No-op unless the backend holds any."""
