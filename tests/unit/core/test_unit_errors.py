# tests/unit/core/test_unit_errors.py — v1
"""Tests for core/errors.py — error taxonomy and UI actions."""

from __future__ import annotations

from lingocore.core.errors import (
    PROVIDER_ERROR_TYPES,
    AllProvidersFailed,
    CacheInconsistent,
    InvalidRequest,
    ProviderInvalidResponse,
    ProviderQuotaExceeded,
    ProviderTimeout,
    ProviderUnauthorized,
    ProviderUnavailable,
    StoreConflict,
)
from lingocore.core.models import ProviderFailure


def _failure(provider: str, error_type: str) -> ProviderFailure:
    return ProviderFailure(provider=provider, error_type=error_type, message="x")


class TestProviderErrors:
    def test_transient_errors_ask_for_retry(self):
        for cls in (ProviderTimeout, ProviderUnavailable, ProviderQuotaExceeded):
            err = cls("boom", provider="p")
            assert err.retryable is True
            assert err.user_action == "retry"

    def test_unauthorized_asks_for_configuration(self):
        err = ProviderUnauthorized("no key")
        assert err.retryable is False
        assert err.user_action == "configure"

    def test_invalid_response_has_no_action(self):
        err = ProviderInvalidResponse("garbage")
        assert err.retryable is False
        assert err.user_action == "none"

    def test_provider_kept(self):
        assert ProviderTimeout("slow", provider="google").provider == "google"

    def test_registry_covers_every_provider_error(self):
        assert set(PROVIDER_ERROR_TYPES) == {
            "unavailable", "timeout", "quota_exceeded", "unauthorized", "invalid_response",
        }


class TestAllProvidersFailed:
    def test_message_lists_failures_in_order(self):
        err = AllProvidersFailed("summarize", [
            _failure("lingua", "unavailable"),
            _failure("google", "timeout"),
        ])
        assert "lingua: unavailable; google: timeout" in str(err)
        assert [f.provider for f in err.failures] == ["lingua", "google"]

    def test_empty_chain_means_configure(self):
        err = AllProvidersFailed("translate", [])
        assert "No provider available for translate" in str(err)
        assert err.user_action == "configure"
        assert err.retryable is False

    def test_all_unauthorized_means_configure(self):
        err = AllProvidersFailed("rewrite", [_failure("openai", "unauthorized")])
        assert err.user_action == "configure"

    def test_any_transient_means_retry(self):
        err = AllProvidersFailed("rewrite", [
            _failure("openai", "unauthorized"),
            _failure("google", "quota_exceeded"),
        ])
        assert err.retryable is True
        assert err.user_action == "retry"

    def test_only_invalid_responses_means_none(self):
        err = AllProvidersFailed("detect-language", [_failure("ollama", "invalid_response")])
        assert err.user_action == "none"


class TestOtherErrors:
    def test_store_conflict(self):
        err = StoreConflict("1-0", "article", "vocabulary")
        assert err.record_id == "1-0"
        assert "article" in str(err) and "vocabulary" in str(err)

    def test_cache_inconsistent(self):
        err = CacheInconsistent("abc", "bad digest")
        assert err.key == "abc"
        assert "bad digest" in str(err)

    def test_invalid_request_type(self):
        assert InvalidRequest("x").error_type == "invalid_request"
