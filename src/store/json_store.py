# src/store/json_store.py — v1
"""JSON-file result store with versioned schema.

The whole store is one JSON document (``SchemaEnvelope``). It is migrated
to the current schema on first access; a failed migration leaves the file
untouched and makes every later call raise the same StoreMigrationFailed.

Writes replace the file atomically (temp file + ``os.replace``), run in a
worker thread, and are serialized by an asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from lingocore.core.errors import StoreMigrationFailed
from lingocore.store.base_result_store import BaseResultStore, check_conflict
from lingocore.store.migrations import migrate_data
from lingocore.store.models import (
    CURRENT_SCHEMA_VERSION,
    MigrationReport,
    SchemaEnvelope,
    StoreRecord,
)

logger = logging.getLogger(__name__)


class JsonResultStore(BaseResultStore):
    """Persist learning records to a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._records: dict[str, StoreRecord] | None = None
        self._failure: StoreMigrationFailed | None = None
        self._lock = asyncio.Lock()
        self.writes = 0

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> list[StoreRecord]:
        async with self._lock:
            records = await self._ensure_loaded()
            return list(records.values())

    async def get(self, record_id: str) -> StoreRecord | None:
        async with self._lock:
            records = await self._ensure_loaded()
            return records.get(record_id)

    async def save(self, record: StoreRecord) -> None:
        async with self._lock:
            records = await self._ensure_loaded()
            check_conflict(records.get(record.id), record)
            updated = dict(records)
            updated[record.id] = record
            await self._persist(updated)
            self._records = updated

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            records = await self._ensure_loaded()
            if record_id not in records:
                return False
            updated = {k: v for k, v in records.items() if k != record_id}
            await self._persist(updated)
            self._records = updated
            return True

    async def migrate(self) -> MigrationReport:
        """Migrate the file to the current schema.

        Re-running on current data performs zero writes.

        Raises:
            StoreMigrationFailed: If the data cannot be migrated.
        """
        async with self._lock:
            return await self._migrate()

    # --- Internal helpers ---

    async def _ensure_loaded(self) -> dict[str, StoreRecord]:
        if self._records is None:
            await self._migrate()
        assert self._records is not None
        return self._records

    async def _migrate(self) -> MigrationReport:
        if self._failure is not None:
            raise self._failure

        try:
            raw = await asyncio.to_thread(self._read)
            if raw is None:
                self._records = self._records if self._records is not None else {}
                return MigrationReport(from_version=CURRENT_SCHEMA_VERSION)
            envelope, report = migrate_data(raw)
        except StoreMigrationFailed as e:
            logger.error("Store %s cannot be migrated: %s", self._path, e)
            self._failure = e
            raise

        records = {record.id: record for record in envelope.records}
        if report.changed:
            await self._persist(records)
            report = report.model_copy(update={"writes": 1})
            logger.info(
                "Store migrated from schema %d to %d (%d records)",
                report.from_version, report.to_version, report.records_migrated,
            )
        self._records = records
        return report

    def _read(self) -> object | None:
        if not self._path.exists():
            return None
        text = self._path.read_text(encoding="utf-8")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreMigrationFailed(f"Store file {self._path} is not valid JSON: {e}") from e

    async def _persist(self, records: dict[str, StoreRecord]) -> None:
        envelope = SchemaEnvelope(
            schema_version=CURRENT_SCHEMA_VERSION, records=list(records.values())
        )
        await asyncio.to_thread(self._write_atomic, envelope.to_json())
        self.writes += 1

    def _write_atomic(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".store-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
