# tests/unit/providers/test_unit_provider_factory.py — v1
"""Tests for providers/provider_factory.py."""

from __future__ import annotations

import logging

import pytest

from lingocore.config.settings import Settings
from lingocore.providers.adapters.google_adapter import GoogleProvider
from lingocore.providers.adapters.lingua_adapter import LinguaProvider
from lingocore.providers.adapters.ollama_adapter import OllamaProvider
from lingocore.providers.adapters.openai_adapter import OpenAIProvider
from lingocore.providers.provider_factory import (
    UnsupportedProviderError,
    _PROVIDER_REGISTRY,
    build_provider_chain,
    create_provider,
    register_provider,
    registered_providers,
)


class TestCreateProvider:
    def test_defaults_without_settings(self):
        p = create_provider("lingua")
        assert isinstance(p, LinguaProvider)
        assert p.descriptor.priority == 100

    def test_ollama_from_settings(self):
        s = Settings(_env_file=None, ollama_model="mistral", provider_priority_ollama=5,
                     provider_timeout_on_device_s=2.5)
        p = create_provider("ollama", s)
        assert isinstance(p, OllamaProvider)
        assert p.model == "mistral"
        assert p.descriptor.priority == 5
        assert p.descriptor.timeout_s == 2.5

    def test_remote_from_settings(self):
        s = Settings(_env_file=None, openai_api_key="sk-x", provider_max_retries=2)
        p = create_provider("openai", s)
        assert isinstance(p, OpenAIProvider)
        assert p.has_credential
        assert p.descriptor.max_retries == 2
        assert p.descriptor.timeout_s == 30.0

    def test_explicit_kwargs_win(self):
        s = Settings(_env_file=None)
        p = create_provider("google", s, priority=999)
        assert isinstance(p, GoogleProvider)
        assert p.descriptor.priority == 999

    def test_unknown(self):
        with pytest.raises(UnsupportedProviderError, match="Available"):
            create_provider("watson")


class TestBuildProviderChain:
    def test_declared_order(self):
        s = Settings(_env_file=None, provider_chain="google,lingua", google_api_key="k")
        assert [p.name for p in build_provider_chain(s)] == ["google", "lingua"]

    def test_warns_on_missing_key(self, caplog, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        s = Settings(_env_file=None, provider_chain="lingua,anthropic")
        with caplog.at_level(logging.WARNING, logger="lingocore"):
            chain = build_provider_chain(s)
        assert len(chain) == 2
        assert any("anthropic" in r.getMessage() for r in caplog.records)


class TestRegistry:
    def test_register_custom(self, monkeypatch):
        monkeypatch.setitem(
            _PROVIDER_REGISTRY, "lingua2",
            "lingocore.providers.adapters.lingua_adapter.LinguaProvider",
        )
        assert "lingua2" in registered_providers()
        assert create_provider("lingua2").name == "lingua2"
        assert create_provider("lingua2", name="detector-b").name == "detector-b"

    def test_register_provider(self, monkeypatch):
        monkeypatch.setattr(
            "lingocore.providers.provider_factory._PROVIDER_REGISTRY", dict(_PROVIDER_REGISTRY),
        )
        register_provider("local", "lingocore.providers.adapters.ollama_adapter.OllamaProvider")
        provider = create_provider("local")
        assert isinstance(provider, OllamaProvider)
        assert provider.name == "local"
