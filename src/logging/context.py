# src/logging/context.py — v2
"""Contextual logging support: attach correlation_id, task_kind, provider to log records.

Context variables follow asyncio tasks, so concurrent requests never see
each other's context.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)
_task_kind: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "task_kind", default=None
)
_provider: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "provider", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    correlation_id: str | None = None
    task_kind: str | None = None
    provider: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        correlation_id=_correlation_id.get(),
        task_kind=_task_kind.get(),
        provider=_provider.get(),
    )


def set_request_context(task_kind: str, correlation_id: str | None = None) -> None:
    """Set request-level context (called once per processed request)."""
    _task_kind.set(task_kind)
    if correlation_id is not None:
        _correlation_id.set(correlation_id)


def set_provider_context(provider: str | None) -> None:
    """Set the provider currently being tried."""
    _provider.set(provider)


def clear_context() -> None:
    """Reset all context variables."""
    _correlation_id.set(None)
    _task_kind.set(None)
    _provider.set(None)
