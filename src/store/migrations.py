# src/store/migrations.py — v1
"""Ordered, idempotent schema migrations for persisted learning data.

Envelope history:
  1  legacy extension layout: ``schema_version: "1.0.0"`` plus ``articles``,
     ``vocabulary`` and ``sentences`` maps keyed by id, camelCase fields
  2  flat ``records`` list, each record tagged with ``kind`` and ``version``
  3  current

Record history:
  1  camelCase fields
  2  snake_case fields
  3  vocabulary cards carry ``definition``; every record has ``updated_at``

Records of different versions may coexist inside one envelope; each is
brought forward independently. Data already at the current version passes
through unchanged.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Callable

from pydantic import ValidationError

from lingocore.core.errors import StoreMigrationFailed
from lingocore.core.models import utcnow
from lingocore.store.models import (
    CURRENT_RECORD_VERSION,
    CURRENT_SCHEMA_VERSION,
    MigrationReport,
    SchemaEnvelope,
)

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Legacy map name → record kind.
_LEGACY_COLLECTIONS = {
    "articles": "article",
    "vocabulary": "vocabulary",
    "sentences": "sentence",
}

RawEnvelope = dict[str, Any]
RawRecord = dict[str, Any]


def detect_schema_version(data: Any) -> int:
    """Envelope version of raw persisted data.

    Raises:
        StoreMigrationFailed: If the data is not a recognizable envelope.
    """
    if not isinstance(data, dict):
        raise StoreMigrationFailed(f"Persisted data is a {type(data).__name__}, not an object")
    version = data.get("schemaVersion")
    if version is not None:
        if not isinstance(version, int) or isinstance(version, bool) or version < 1:
            raise StoreMigrationFailed(f"Invalid schemaVersion: {version!r}")
        return version
    if "schema_version" in data or any(key in data for key in _LEGACY_COLLECTIONS):
        return 1
    raise StoreMigrationFailed("Persisted data has no schema version")


# === ENVELOPE STEPS ===


def _envelope_1_to_2(data: RawEnvelope) -> RawEnvelope:
    records: list[RawRecord] = []
    for collection, kind in _LEGACY_COLLECTIONS.items():
        items = data.get(collection) or {}
        if isinstance(items, list):
            items = _legacy_list_to_map(collection, items)
        if not isinstance(items, dict):
            raise StoreMigrationFailed(f"Legacy '{collection}' is not a map", from_version=1)
        for record_id, item in items.items():
            if not isinstance(item, dict):
                raise StoreMigrationFailed(
                    f"Legacy {kind} {record_id!r} is not an object", from_version=1
                )
            record = dict(item)
            record.setdefault("id", record_id)
            record["kind"] = kind
            record["version"] = 1
            records.append(record)
    return {"schemaVersion": 2, "records": records}


def _legacy_list_to_map(collection: str, items: list[Any]) -> dict[str, Any]:
    """Key a legacy list by id. Every item must be an object with a unique id."""
    keyed: dict[str, Any] = {}
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise StoreMigrationFailed(
                f"Legacy '{collection}' item {position} is not an object", from_version=1
            )
        record_id = item.get("id")
        if not isinstance(record_id, str) or not record_id:
            raise StoreMigrationFailed(
                f"Legacy '{collection}' item {position} has no id", from_version=1
            )
        if record_id in keyed:
            raise StoreMigrationFailed(
                f"Legacy '{collection}' lists id {record_id!r} more than once", from_version=1
            )
        keyed[record_id] = item
    return keyed


def _envelope_2_to_3(data: RawEnvelope) -> RawEnvelope:
    records = data.get("records")
    if not isinstance(records, list):
        raise StoreMigrationFailed("'records' is not a list", from_version=2)
    return {"schemaVersion": 3, "records": records}


_ENVELOPE_STEPS: dict[int, Callable[[RawEnvelope], RawEnvelope]] = {
    1: _envelope_1_to_2,
    2: _envelope_2_to_3,
}


# === RECORD STEPS ===


def camel_to_snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _record_1_to_2(record: RawRecord) -> RawRecord:
    migrated: RawRecord = {}
    for key, value in record.items():
        snake = camel_to_snake(key)
        # An explicit snake_case field wins over its camelCase twin.
        if snake != key and snake in record:
            continue
        migrated[snake] = value
    if migrated.get("kind") == "article" and "created_at" not in migrated:
        if "processed_at" in migrated:
            migrated["created_at"] = migrated["processed_at"]
    migrated["version"] = 2
    return migrated


def _record_2_to_3(record: RawRecord) -> RawRecord:
    migrated = dict(record)
    if migrated.get("kind") == "vocabulary" and not migrated.get("definition"):
        migrated["definition"] = migrated.get("translation", "")
    migrated.setdefault("created_at", utcnow().isoformat())
    if not migrated.get("updated_at"):
        migrated["updated_at"] = migrated["created_at"]
    migrated["version"] = 3
    return migrated


_RECORD_STEPS: dict[int, Callable[[RawRecord], RawRecord]] = {
    1: _record_1_to_2,
    2: _record_2_to_3,
}


def migrate_record(record: RawRecord) -> tuple[RawRecord, bool]:
    """Bring one raw record to CURRENT_RECORD_VERSION.

    Returns:
        (migrated record, whether anything changed)
    """
    version = record.get("version", 1)
    if not isinstance(version, int) or version < 1:
        raise StoreMigrationFailed(f"Record {record.get('id')!r} has invalid version {version!r}")
    if version > CURRENT_RECORD_VERSION:
        raise StoreMigrationFailed(
            f"Record {record.get('id')!r} has version {version}, newer than "
            f"supported {CURRENT_RECORD_VERSION}"
        )
    if version == CURRENT_RECORD_VERSION:
        return record, False

    current = record
    while version < CURRENT_RECORD_VERSION:
        current = _RECORD_STEPS[version](current)
        version += 1
    return current, True


def migrate_data(data: Any) -> tuple[SchemaEnvelope, MigrationReport]:
    """Migrate raw persisted data to the current schema and validate it.

    The input is never mutated.

    Raises:
        StoreMigrationFailed: On a version newer than supported, a failing
            step, or records that do not validate afterwards.
    """
    from_version = detect_schema_version(data)
    if from_version > CURRENT_SCHEMA_VERSION:
        raise StoreMigrationFailed(
            f"Persisted schema version {from_version} is newer than supported "
            f"{CURRENT_SCHEMA_VERSION}; refusing to downgrade",
            from_version=from_version,
        )

    envelope: RawEnvelope = copy.deepcopy(data)
    version = from_version
    records_migrated = 0
    try:
        while version < CURRENT_SCHEMA_VERSION:
            envelope = _ENVELOPE_STEPS[version](envelope)
            version += 1
            logger.info("Migrated store envelope to version %d", version)

        raw_records = envelope.get("records", [])
        if not isinstance(raw_records, list):
            raise StoreMigrationFailed("'records' is not a list", from_version=from_version)

        migrated_records: list[RawRecord] = []
        for raw in raw_records:
            if not isinstance(raw, dict):
                raise StoreMigrationFailed("Record is not an object", from_version=from_version)
            record, changed = migrate_record(raw)
            records_migrated += int(changed)
            migrated_records.append(record)

        validated = SchemaEnvelope.model_validate(
            {"schemaVersion": CURRENT_SCHEMA_VERSION, "records": migrated_records}
        )
    except StoreMigrationFailed as e:
        e.from_version = e.from_version if e.from_version is not None else from_version
        raise
    except ValidationError as e:
        raise StoreMigrationFailed(
            f"Migrated data does not match schema {CURRENT_SCHEMA_VERSION}: {e}",
            from_version=from_version,
        ) from e
    except (KeyError, TypeError, ValueError) as e:
        raise StoreMigrationFailed(
            f"Migration from version {from_version} failed: {e}",
            from_version=from_version,
        ) from e

    _check_unique_ids(validated, from_version)
    report = MigrationReport(from_version=from_version, records_migrated=records_migrated)
    return validated, report


def _check_unique_ids(envelope: SchemaEnvelope, from_version: int) -> None:
    seen: set[str] = set()
    for record in envelope.records:
        if record.id in seen:
            raise StoreMigrationFailed(
                f"Identifier {record.id!r} appears more than once", from_version=from_version
            )
        seen.add(record.id)
