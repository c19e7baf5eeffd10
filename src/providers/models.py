# src/providers/models.py — v1
"""Provider configuration types: ProviderDescriptor, Locality."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from lingocore.core.models import TaskKind

Locality = Literal["on_device", "remote"]

ALL_TASKS: frozenset[TaskKind] = frozenset(TaskKind)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of a provider.

    Only availability changes at runtime, and that is tracked by the
    coordinator's ProviderHealth, not here.
    """

    name: str
    priority: int = 0
    capabilities: frozenset[TaskKind] = field(default_factory=lambda: ALL_TASKS)
    locality: Locality = "remote"
    timeout_s: float = 30.0
    max_retries: int = 0

    def supports(self, task_kind: TaskKind | str) -> bool:
        return TaskKind(task_kind) in self.capabilities
