# tests/integration/test_int_end_to_end.py — v1
"""End-to-end: messaging → coordinator → cache → store, with on-disk backends.

Providers are scripted fakes; cache (SQLite) and store (JSON file) are real.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from lingocore.api.facade import LearningProcessor
from lingocore.config.settings import Settings
from lingocore.core.errors import ProviderQuotaExceeded, ProviderTimeout
from lingocore.core.models import TaskKind
from lingocore.messaging.channel import InMemoryChannel
from lingocore.messaging.models import RequestEnvelope
from lingocore.store.json_store import JsonResultStore
from tests.unit.store.legacy_data import legacy_document


@pytest.fixture
def disk_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        cache_backend="sqlite",
        cache_root=tmp_path / "cache",
        store_path=tmp_path / "store.json",
    )


def _build(settings: Settings, providers) -> LearningProcessor:
    with patch("lingocore.api.facade.build_provider_chain", return_value=providers):
        return LearningProcessor.from_settings(settings)


def _envelope(cid: str, kind: str, content: str, **params) -> RequestEnvelope:
    return RequestEnvelope.model_validate({
        "correlationId": cid,
        "taskKind": kind,
        "payload": {"content": content, "parameters": params},
    })


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_messages_fallback_and_persist(self, disk_settings, fake_provider):
        ollama = fake_provider("ollama", priority=90, capabilities=frozenset({TaskKind.TRANSLATE}),
                               outcomes=[ProviderTimeout("slow")])
        google = fake_provider("google", priority=50, locality="remote")
        processor = _build(disk_settings, [google, ollama])
        channel = InMemoryChannel()
        dispatcher = processor.dispatcher(channel)

        await channel.submit(_envelope("m-1", "translate", "Good morning", target_language="es"))
        await channel.submit(_envelope("m-1", "translate", "Good morning", target_language="es"))
        await channel.submit(_envelope("m-2", "analyze-vocabulary", "An ephemeral thing."))
        await channel.close()
        await asyncio.wait_for(dispatcher.serve(), timeout=5)
        processor.close()

        by_id = {r.correlation_id: r for r in channel.sent}
        assert sorted(by_id) == ["m-1", "m-2"]
        translated = by_id["m-1"]
        assert translated.status == "success"
        assert translated.result.provider_used == "google"
        assert [f.provider for f in translated.result.failures] == ["ollama"]

        store = JsonResultStore(disk_settings.store_path)
        kinds = [r.kind for r in await store.load()]
        assert sorted(kinds) == ["sentence", "vocabulary", "vocabulary"]

    @pytest.mark.asyncio
    async def test_cache_survives_restart(self, disk_settings, fake_provider):
        first = fake_provider("ollama")
        processor = _build(disk_settings, [first])
        await processor.summarize("A text worth summarizing.")
        processor.close()

        second = fake_provider("ollama")
        restarted = _build(disk_settings, [second])
        result = await restarted.process(TaskKind.SUMMARIZE, "A text  worth summarizing. ",
                                         max_length=300, format="paragraph")
        restarted.close()

        assert result.from_cache is True
        assert second.calls == []
        assert len(await JsonResultStore(disk_settings.store_path).load()) == 1

    @pytest.mark.asyncio
    async def test_legacy_store_upgraded_in_place(self, disk_settings, fake_provider):
        disk_settings.store_path.write_text(json.dumps(legacy_document()), encoding="utf-8")
        processor = _build(disk_settings, [fake_provider("ollama")])
        await processor.translate("Buenas noches", "en", source_language="es")
        processor.close()

        on_disk = json.loads(disk_settings.store_path.read_text(encoding="utf-8"))
        assert on_disk["schemaVersion"] == 3
        ids = [r["id"] for r in on_disk["records"]]
        assert ids[:3] == ["art-1", "voc-1", "sen-1"]
        assert len(ids) == 4

    @pytest.mark.asyncio
    async def test_quota_then_recovery_across_requests(self, disk_settings, fake_provider):
        google = fake_provider("google", priority=50, outcomes=[ProviderQuotaExceeded("429")])
        openai = fake_provider("openai", priority=40)
        processor = _build(disk_settings, [google, openai])

        first = await processor.process("rewrite", "Plain words here.", difficulty=2)
        second = await processor.process("rewrite", "Other words here.", difficulty=2)
        processor.close()

        assert first.provider_used == "openai"
        assert second.provider_used == "openai"
        assert second.failures == []
        assert len(google.calls) == 1
        status = processor.coordinator.service_status()
        assert {p["name"]: p["state"] for p in status["providers"]}["google"] == "cooling_down"
