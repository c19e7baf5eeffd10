# src/store/memory_store.py — v1
"""In-memory result store (tests, ephemeral sessions)."""

from __future__ import annotations

import asyncio

from lingocore.store.base_result_store import BaseResultStore, check_conflict
from lingocore.store.models import CURRENT_SCHEMA_VERSION, MigrationReport, StoreRecord


class MemoryResultStore(BaseResultStore):
    """Dict-backed result store. Always at the current schema version."""

    def __init__(self) -> None:
        self._records: dict[str, StoreRecord] = {}
        self._lock = asyncio.Lock()
        self.writes = 0

    async def load(self) -> list[StoreRecord]:
        return list(self._records.values())

    async def get(self, record_id: str) -> StoreRecord | None:
        return self._records.get(record_id)

    async def save(self, record: StoreRecord) -> None:
        async with self._lock:
            check_conflict(self._records.get(record.id), record)
            self._records[record.id] = record
            self.writes += 1

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            if self._records.pop(record_id, None) is None:
                return False
            self.writes += 1
            return True

    async def migrate(self) -> MigrationReport:
        return MigrationReport(from_version=CURRENT_SCHEMA_VERSION)

    def __len__(self) -> int:
        return len(self._records)
