# src/cache/models.py — v2
"""Cache domain models: CacheEntry, TTLPolicy, CacheStats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict

from lingocore.core.models import ProcessingResult, TaskKind


class CacheEntry(BaseModel):
    """Single cache entry linking a fingerprint digest to a computed result.

    Never mutated after insertion; invalidation replaces it wholesale.
    """

    model_config = ConfigDict(frozen=True)

    fingerprint: str
    task_kind: TaskKind
    result: ProcessingResult
    computed_at: datetime
    provider_used: str
    ttl_s: int | None = None

    def is_expired(self, now: datetime) -> bool:
        """TTL=0 is expired on the very next lookup; None never expires."""
        if self.ttl_s is None:
            return False
        return now - self.computed_at >= timedelta(seconds=self.ttl_s)


@dataclass(frozen=True)
class TTLPolicy:
    """Per-task-kind time-to-live, in seconds."""

    ttls: dict[TaskKind, int | None] = field(default_factory=dict)
    default_ttl_s: int | None = 24 * 3600

    def ttl_for(self, task_kind: TaskKind) -> int | None:
        return self.ttls.get(task_kind, self.default_ttl_s)


@dataclass
class CacheStats:
    """Counters for cache behaviour (for diagnostics and tests)."""

    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    expired: int = 0
    inconsistent: int = 0
    computations: int = 0
    clears: int = 0
    write_failures: int = 0
