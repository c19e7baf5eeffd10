# src/cache/coalescing_cache.py — v1
"""Content-addressed result cache with request coalescing.

An in-memory index (warmed once from the persistent store) is the
authoritative read path. Each successful computation is written to the
store first and indexed only once the write succeeds; a failed write is
logged and the result is returned uncached.

Concurrency model:
  - at most one computation per fingerprint is in flight; later callers
    join it through ``asyncio.shield`` and are released in arrival order;
  - cancelling a joined caller never cancels the shared computation;
  - failures reach every caller joined at that moment and are not cached;
  - the bookkeeping lock guards only in-memory state and is never held
    across a provider call or store I/O;
  - ``clear()`` swaps the index and bumps the generation in one step, so
    results of computations started before a clear are never inserted.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from lingocore.cache.base_cache_store import BaseCacheStore
from lingocore.cache.fingerprint import Fingerprint
from lingocore.cache.memory_store import MemoryCacheStore
from lingocore.cache.models import CacheEntry, CacheStats, TTLPolicy
from lingocore.core.errors import CacheInconsistent, CacheWriteFailed
from lingocore.core.models import ProcessingResult, utcnow

logger = logging.getLogger(__name__)

ComputeFn = Callable[[], Awaitable[ProcessingResult]]


class ContentAddressedCache:
    """Maps request fingerprints to previously computed results."""

    def __init__(
        self,
        store: BaseCacheStore | None = None,
        ttl_policy: TTLPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store if store is not None else MemoryCacheStore()
        self._ttl_policy = ttl_policy if ttl_policy is not None else TTLPolicy()
        self._clock = clock or utcnow
        self._index: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task[ProcessingResult]] = {}
        self._generation = 0
        self._lock = asyncio.Lock()
        self._load_task: asyncio.Task[None] | None = None
        self.stats = CacheStats()

    # --- Public API ---

    async def get_or_compute(
        self, fingerprint: Fingerprint | str, compute_fn: ComputeFn,
    ) -> ProcessingResult:
        """Return the cached result for ``fingerprint`` or compute it once.

        A cache hit is returned with ``from_cache=True`` and no diagnostics.
        Callers joining an in-flight computation receive its result as is.

        Raises:
            Whatever ``compute_fn`` raises, delivered to every joined caller.
        """
        key = str(fingerprint)
        await self._ensure_loaded()

        async with self._lock:
            entry, purge = self._lookup(key)
            if entry is not None:
                self.stats.hits += 1
                return entry.result.model_copy(
                    update={"from_cache": True, "failures": []}
                )

            task = self._inflight.get(key)
            if task is None:
                self.stats.misses += 1
                task = asyncio.create_task(
                    self._compute(key, compute_fn, self._generation, purge),
                    name=f"cache-compute-{key[:12]}",
                )
                task.add_done_callback(_retrieve_exception)
                self._inflight[key] = task
            else:
                self.stats.coalesced += 1
                logger.debug("Joining in-flight computation for %s", key[:12])

        return await asyncio.shield(task)

    async def peek(self, fingerprint: Fingerprint | str) -> ProcessingResult | None:
        """Side-effect-free lookup: no computation, no eviction, no stats."""
        await self._ensure_loaded()
        entry = self._index.get(str(fingerprint))
        if entry is None or entry.is_expired(self._clock()) or _defect(str(fingerprint), entry):
            return None
        return entry.result.model_copy(update={"from_cache": True, "failures": []})

    async def invalidate(self, fingerprint: Fingerprint | str) -> None:
        """Drop one entry from the index and the store."""
        key = str(fingerprint)
        await self._ensure_loaded()
        async with self._lock:
            self._index.pop(key, None)
        await self._store.delete(key)

    async def clear(self) -> None:
        """Remove every entry across every task kind.

        Atomic with respect to subsequent ``get_or_compute`` calls.
        """
        async with self._lock:
            self._index = {}
            self._inflight = {}
            self._generation += 1
            self.stats.clears += 1
        await self._store.clear()
        logger.info("Cache cleared (generation %d)", self._generation)

    def close(self) -> None:
        self._store.close()

    def __len__(self) -> int:
        return len(self._index)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    # --- Internal helpers ---

    async def _ensure_loaded(self) -> None:
        if self._load_task is None:
            self._load_task = asyncio.create_task(self._load(self._generation))
        await asyncio.shield(self._load_task)

    async def _load(self, generation: int) -> None:
        entries = await self._store.list_entries()
        async with self._lock:
            if generation != self._generation:
                return
            for entry in entries:
                self._index.setdefault(entry.fingerprint, entry)
        logger.debug("Cache index warmed with %d entries", len(entries))

    def _lookup(self, key: str) -> tuple[CacheEntry | None, bool]:
        """Index lookup. Returns (entry, purge_persisted_copy)."""
        entry = self._index.get(key)
        if entry is None:
            return None, False

        reason = _defect(key, entry)
        if reason:
            error = CacheInconsistent(key, reason)
            logger.error("%s, evicting", error)
            self.stats.inconsistent += 1
            del self._index[key]
            return None, True

        if entry.is_expired(self._clock()):
            self.stats.expired += 1
            del self._index[key]
            return None, True

        return entry, False

    async def _compute(
        self, key: str, compute_fn: ComputeFn, generation: int, purge: bool,
    ) -> ProcessingResult:
        task = asyncio.current_task()
        try:
            if purge:
                await self._store.delete(key)
            self.stats.computations += 1
            result = await compute_fn()
            entry = CacheEntry(
                fingerprint=key,
                task_kind=result.output.task_kind,
                result=result.model_copy(update={"from_cache": False}),
                computed_at=self._clock(),
                provider_used=result.provider_used,
                ttl_s=self._ttl_policy.ttl_for(result.output.task_kind),
            )
            reason = _defect(key, entry)
            if reason:
                raise CacheInconsistent(key, reason)

            if generation == self._generation:
                await self._persist(key, entry, generation)
            else:
                logger.debug("Discarding result for %s computed before a clear", key[:12])
            return result
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    async def _persist(self, key: str, entry: CacheEntry, generation: int) -> None:
        # The index only holds entries the store accepted.
        try:
            await self._store.put(key, entry)
        except (CacheWriteFailed, OSError) as e:
            self.stats.write_failures += 1
            logger.error("Cache write for %s failed, result not cached: %s", key[:12], e)
            return
        if generation == self._generation:
            self._index[key] = entry
        else:
            # A clear ran while the write was pending.
            await self._store.delete(key)


def _defect(key: str, entry: CacheEntry) -> str:
    """Describe why an entry cannot be served under ``key`` ('' if it can)."""
    if entry.fingerprint != key:
        return f"entry fingerprint {entry.fingerprint[:12]} does not match key"
    if entry.result.fingerprint != key:
        return "result fingerprint does not match key"
    if entry.result.output.task_kind != entry.task_kind:
        return "result task kind does not match entry"
    return ""


def _retrieve_exception(task: asyncio.Task) -> None:
    # Failures with no remaining waiters must not surface as "never retrieved".
    if not task.cancelled():
        task.exception()
