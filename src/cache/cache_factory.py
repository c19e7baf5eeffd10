# src/cache/cache_factory.py — v3
"""Factory for cache store and cache instantiation."""

from __future__ import annotations

from lingocore.cache.base_cache_store import BaseCacheStore
from lingocore.cache.coalescing_cache import ContentAddressedCache
from lingocore.cache.models import TTLPolicy
from lingocore.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from lingocore.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore()

    if backend == "json":
        from lingocore.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=settings.cache_root)  # type: ignore[union-attr]

    if backend == "sqlite":
        from lingocore.cache.sqlite_store import SqliteCacheStore
        db_path = settings.cache_root.expanduser() / "lingocore_cache.db"  # type: ignore[union-attr]
        return SqliteCacheStore(db_path=db_path)

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_cache(settings: Settings | None = None) -> ContentAddressedCache:
    """Build a ContentAddressedCache over the configured backend and TTLs."""
    store = create_cache_store(settings)
    policy = TTLPolicy(ttls=settings.cache_ttls()) if settings is not None else TTLPolicy()
    return ContentAddressedCache(store=store, ttl_policy=policy)
