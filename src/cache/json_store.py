# src/cache/json_store.py — v2
"""JSON file-based cache store (CACHE_BACKEND=json).

Stores cache entries as individual JSON files under CACHE_ROOT, one file
per fingerprint digest.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from lingocore.cache.base_cache_store import BaseCacheStore
from lingocore.cache.models import CacheEntry
from lingocore.core.errors import CacheInconsistent, CacheWriteFailed

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key.

        Raises:
            CacheInconsistent: If the file exists but cannot be parsed.
        """
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            raise CacheInconsistent(key, f"unreadable entry file: {e}") from e

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry (write to temp file, then rename).

        Raises:
            CacheWriteFailed: If the file cannot be written.
        """
        path = self._entry_path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise CacheWriteFailed(key, str(e)) from e

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        path = self._entry_path(key)
        if path.exists():
            path.unlink()

    async def clear(self) -> None:
        """Remove every entry file."""
        for path in self._root.glob("*.json"):
            path.unlink(missing_ok=True)

    async def list_entries(self) -> list[CacheEntry]:
        """List all readable cached entries; unreadable files are skipped."""
        entries: list[CacheEntry] = []
        if not self._root.is_dir():
            return entries

        for path in sorted(self._root.glob("*.json")):
            try:
                entries.append(
                    CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
                )
            except (ValidationError, ValueError) as e:
                logger.warning("Skipping unreadable cache file %s: %s", path.name, e)

        return entries

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
