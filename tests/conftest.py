# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides scriptable fake providers, frozen clocks, settings and stores.
No network: every provider is a fake or has its SDK client patched.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from lingocore.cache.coalescing_cache import ContentAddressedCache
from lingocore.config.settings import Settings
from lingocore.core.models import (
    ProcessingRequest,
    ProcessingResult,
    ProviderOutput,
    TaskKind,
    VocabularyEntry,
)
from lingocore.logging.context import clear_context
from lingocore.providers.base_provider import BaseProvider
from lingocore.providers.models import ALL_TASKS, ProviderDescriptor
from lingocore.store.memory_store import MemoryResultStore


# === FAKES ===


def default_output(request: ProcessingRequest, provider: str) -> ProviderOutput:
    """Deterministic, task-appropriate output."""
    kind = request.task_kind
    if kind is TaskKind.DETECT_LANGUAGE:
        return ProviderOutput(task_kind=kind, language="en")
    if kind is TaskKind.ANALYZE_VOCABULARY:
        return ProviderOutput(
            task_kind=kind,
            vocabulary=[
                VocabularyEntry(word="ephemeral", definition="lasting a short time"),
                VocabularyEntry(word="ubiquitous", definition="found everywhere"),
            ],
        )
    return ProviderOutput(task_kind=kind, text=f"{provider}:{kind.value}:{request.content}")


class FakeProvider(BaseProvider):
    """Provider whose behaviour is scripted per call.

    ``outcomes`` is consumed one item per invocation: an exception instance is
    raised, a ProviderOutput is returned. Once exhausted, ``default_output``
    is returned. ``gate`` (an asyncio.Event) holds every call until set.
    """

    def __init__(
        self,
        name: str = "fake",
        priority: int = 0,
        capabilities: frozenset[TaskKind] = ALL_TASKS,
        locality: str = "on_device",
        timeout_s: float = 1.0,
        max_retries: int = 0,
        outcomes: list[Any] | None = None,
        delay_s: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                name=name,
                priority=priority,
                capabilities=capabilities,
                locality=locality,  # type: ignore[arg-type]
                timeout_s=timeout_s,
                max_retries=max_retries,
            )
        )
        self._outcomes = list(outcomes or [])
        self.delay_s = delay_s
        self.gate = gate
        self.available = True
        self.calls: list[ProcessingRequest] = []

    def is_available(self) -> bool:
        return self.available

    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        self.calls.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self._outcomes:
            outcome = self._outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return default_output(request, self.name)


class FrozenClock:
    """Callable datetime clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class MonotonicClock:
    """Callable float clock for ProviderHealth and RateLimiter."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_result(key: str, text: str = "out", provider: str = "fake") -> ProcessingResult:
    """ProcessingResult for a summarize task keyed by ``key``."""
    return ProcessingResult(
        fingerprint=key,
        output=ProviderOutput(task_kind=TaskKind.SUMMARIZE, text=text),
        provider_used=provider,
    )


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep settings variables of the host shell (API keys etc.) out of tests."""
    for field_name in Settings.model_fields:
        monkeypatch.delenv(field_name.upper(), raising=False)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def fake_provider() -> type[FakeProvider]:
    """The FakeProvider class, for building scripted chains."""
    return FakeProvider


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def monotonic_clock() -> MonotonicClock:
    return MonotonicClock()


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def memory_result_store() -> MemoryResultStore:
    return MemoryResultStore()


@pytest.fixture
def cache(frozen_clock: FrozenClock) -> ContentAddressedCache:
    return ContentAddressedCache(clock=frozen_clock)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env, with storage under tmp_path."""
    return Settings(
        _env_file=None,
        cache_backend="memory",
        cache_root=tmp_path / "cache",
        store_path=tmp_path / "store.json",
    )


@pytest.fixture
def tmp_store_path(tmp_path: Path) -> Path:
    return tmp_path / "store.json"
