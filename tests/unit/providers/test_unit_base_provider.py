# tests/unit/providers/test_unit_base_provider.py — v1
"""Tests for providers/base_provider.py — timeout and error normalization."""

from __future__ import annotations

import asyncio

import pytest

from lingocore.core.errors import (
    ProviderInvalidResponse,
    ProviderQuotaExceeded,
    ProviderTimeout,
    ProviderUnavailable,
)
from lingocore.core.models import ProcessingRequest, ProviderOutput, TaskKind
from lingocore.providers.base_provider import BaseProvider
from tests.conftest import FakeProvider


def _req(kind: TaskKind = TaskKind.SUMMARIZE) -> ProcessingRequest:
    return ProcessingRequest(task_kind=kind, content="hello")


class TestBaseProvider:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseProvider()  # type: ignore[abstract]

    def test_descriptor_passthrough(self):
        p = FakeProvider("lingua", priority=100, capabilities=frozenset({TaskKind.DETECT_LANGUAGE}))
        assert p.name == "lingua"
        assert p.supports(TaskKind.DETECT_LANGUAGE)
        assert p.supports("detect-language")
        assert not p.supports(TaskKind.SUMMARIZE)


class TestInvoke:
    @pytest.mark.asyncio
    async def test_success(self):
        out = await FakeProvider("p").invoke(_req())
        assert out.text == "p:summarize:hello"

    @pytest.mark.asyncio
    async def test_unsupported_task(self):
        p = FakeProvider("p", capabilities=frozenset({TaskKind.DETECT_LANGUAGE}))
        with pytest.raises(ProviderUnavailable):
            await p.invoke(_req())
        assert p.calls == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        p = FakeProvider("slow", timeout_s=0.01, gate=asyncio.Event())
        with pytest.raises(ProviderTimeout) as exc_info:
            await p.invoke(_req())
        assert exc_info.value.provider == "slow"

    @pytest.mark.asyncio
    async def test_explicit_timeout_overrides_descriptor(self):
        p = FakeProvider("slow", timeout_s=60.0, gate=asyncio.Event())
        with pytest.raises(ProviderTimeout):
            await p.invoke(_req(), timeout_s=0.01)

    @pytest.mark.asyncio
    async def test_provider_error_gets_provider_name(self):
        p = FakeProvider("p", outcomes=[ProviderQuotaExceeded("slow down")])
        with pytest.raises(ProviderQuotaExceeded) as exc_info:
            await p.invoke(_req())
        assert exc_info.value.provider == "p"

    @pytest.mark.asyncio
    async def test_foreign_exception_is_normalized(self):
        p = FakeProvider("p", outcomes=[ConnectionError("connection refused")])
        with pytest.raises(ProviderUnavailable) as exc_info:
            await p.invoke(_req())
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_mismatched_payload(self):
        wrong = ProviderOutput(task_kind=TaskKind.TRANSLATE, text="hola")
        p = FakeProvider("p", outcomes=[wrong])
        with pytest.raises(ProviderInvalidResponse):
            await p.invoke(_req(TaskKind.SUMMARIZE))
