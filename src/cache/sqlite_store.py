# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite, the default).

Uses stdlib sqlite3, no external dependency.
Better performance than JSON for large numbers of entries.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from lingocore.cache.base_cache_store import BaseCacheStore
from lingocore.cache.models import CacheEntry
from lingocore.core.errors import CacheInconsistent, CacheWriteFailed

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    task_kind TEXT NOT NULL,
    data TEXT NOT NULL,
    computed_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_task_kind ON cache_entries(task_kind);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key.

        Raises:
            CacheInconsistent: If the stored row cannot be deserialized.
        """
        cursor = self._conn.execute(
            "SELECT data FROM cache_entries WHERE key = ?", (key,)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        try:
            return CacheEntry.model_validate_json(row[0])
        except (ValidationError, ValueError) as e:
            raise CacheInconsistent(key, f"undecodable row: {e}") from e

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry (upsert).

        Raises:
            CacheWriteFailed: If the row cannot be written.
        """
        try:
            self._conn.execute(
                """INSERT OR REPLACE INTO cache_entries
                   (key, task_kind, data, computed_at)
                   VALUES (?, ?, ?, ?)""",
                (
                    key,
                    entry.task_kind.value,
                    entry.model_dump_json(),
                    entry.computed_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheWriteFailed(key, str(e)) from e

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
        self._conn.commit()

    async def clear(self) -> None:
        """Remove all entries in a single transaction."""
        self._conn.execute("DELETE FROM cache_entries")
        self._conn.commit()

    async def list_entries(self) -> list[CacheEntry]:
        """List all decodable entries."""
        cursor = self._conn.execute("SELECT key, data FROM cache_entries")
        entries: list[CacheEntry] = []
        for key, data in cursor.fetchall():
            try:
                entries.append(CacheEntry.model_validate_json(data))
            except (ValidationError, ValueError) as e:
                logger.warning("Skipping undecodable cache row %s: %s", key, e)
        return entries

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
