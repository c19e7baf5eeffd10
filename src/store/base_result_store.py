# src/store/base_result_store.py — v1
"""Abstract result store interface.

Identifiers are unique across every record kind: saving a record under an
id that belongs to a different kind is a conflict, never an overwrite.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lingocore.core.errors import StoreConflict
from lingocore.store.models import MigrationReport, StoreRecord


class BaseResultStore(ABC):
    """Unified interface for result store backends."""

    writes: int = 0

    @abstractmethod
    async def load(self) -> list[StoreRecord]:
        """Return all records in insertion order, migrating first if needed."""

    @abstractmethod
    async def get(self, record_id: str) -> StoreRecord | None:
        """Retrieve a record by id."""

    @abstractmethod
    async def save(self, record: StoreRecord) -> None:
        """Insert or replace a record.

        Raises:
            StoreConflict: If ``record.id`` belongs to a record of another kind.
        """

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Remove a record. Returns False if the id was unknown."""

    @abstractmethod
    async def migrate(self) -> MigrationReport:
        """Bring persisted data to the current schema."""

    async def list_records(self, kind: str | None = None) -> list[StoreRecord]:
        records = await self.load()
        if kind is None:
            return records
        return [r for r in records if r.kind == kind]


def check_conflict(existing: StoreRecord | None, record: StoreRecord) -> None:
    if existing is not None and existing.kind != record.kind:
        raise StoreConflict(record.id, existing.kind, record.kind)
