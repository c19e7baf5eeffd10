# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: provider
chain, credentials, timeouts, cache and store locations, logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lingocore.core.models import TaskKind

KNOWN_PROVIDERS = ("lingua", "ollama", "google", "openai", "anthropic")
ON_DEVICE_PROVIDERS = frozenset({"lingua", "ollama"})

# Higher runs first; equal priorities keep PROVIDER_CHAIN order.
_DEFAULT_PRIORITIES: dict[str, int] = {
    "lingua": 100,
    "ollama": 90,
    "google": 50,
    "openai": 40,
    "anthropic": 30,
}


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === PROVIDERS ===
    provider_chain: str = "lingua,ollama,google"

    # Priority overrides (empty = built-in default)
    provider_priority_lingua: int | None = None
    provider_priority_ollama: int | None = None
    provider_priority_google: int | None = None
    provider_priority_openai: int | None = None
    provider_priority_anthropic: int | None = None

    # Credentials
    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # Models
    google_model: str = "gemini-2.0-flash"
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-sonnet-4-20250514"
    ollama_model: str = "llama3"

    # Timeouts / retry / quota
    provider_timeout_on_device_s: float = 5.0
    provider_timeout_remote_s: float = 30.0
    provider_max_retries: int = 0
    quota_cooldown_s: float = 60.0
    remote_rate_limit_requests: int = 60
    remote_rate_limit_window_s: float = 60.0

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "json", "sqlite"] = "sqlite"
    cache_root: Path = Path("~/.lingocore/cache")
    cache_ttl_detect_language_s: int | None = 7 * 24 * 3600
    cache_ttl_summarize_s: int | None = 24 * 3600
    cache_ttl_translate_s: int | None = 7 * 24 * 3600
    cache_ttl_rewrite_s: int | None = 3600
    cache_ttl_analyze_vocabulary_s: int | None = 24 * 3600

    # === Store ===
    store_path: Path = Path("~/.lingocore/store.json")

    # === Identity ===
    identity_rollover_threshold: int = 999_999
    identity_discriminator: str = ""

    # === Messaging ===
    message_replay_window: int = 1024

    # === Batch processing ===
    batch_size: int = 20
    batch_max_concurrency: int = 3

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "cache_ttl_detect_language_s",
        "cache_ttl_summarize_s",
        "cache_ttl_translate_s",
        "cache_ttl_rewrite_s",
        "cache_ttl_analyze_vocabulary_s",
    )
    @classmethod
    def validate_ttl(cls, v: int | None) -> int | None:  # noqa: N805
        if v is not None and v < 0:
            raise ValueError("cache TTL must be >= 0 (or empty for no expiry)")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field consistency rules."""
        errors: list[str] = []

        unknown = [p for p in self.provider_chain_list if p not in KNOWN_PROVIDERS]
        if unknown:
            errors.append(
                f"PROVIDER_CHAIN contains unknown providers: {', '.join(unknown)}"
            )

        if len(set(self.provider_chain_list)) != len(self.provider_chain_list):
            errors.append("PROVIDER_CHAIN lists a provider more than once")

        if self.provider_timeout_on_device_s <= 0 or self.provider_timeout_remote_s <= 0:
            errors.append("Provider timeouts must be > 0")

        if self.provider_max_retries < 0:
            errors.append("PROVIDER_MAX_RETRIES must be >= 0")

        if self.identity_rollover_threshold < 1:
            errors.append("IDENTITY_ROLLOVER_THRESHOLD must be >= 1")

        if self.remote_rate_limit_requests < 1:
            errors.append("REMOTE_RATE_LIMIT_REQUESTS must be >= 1")

        if self.batch_size < 1 or self.batch_max_concurrency < 1:
            errors.append("BATCH_SIZE and BATCH_MAX_CONCURRENCY must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def provider_chain_list(self) -> list[str]:
        """Parse comma-separated provider chain."""
        return [p.strip().lower() for p in self.provider_chain.split(",") if p.strip()]

    def provider_priority(self, name: str) -> int:
        """Configured priority for a provider, falling back to the default."""
        override = getattr(self, f"provider_priority_{name}", None)
        if override is not None:
            return override
        return _DEFAULT_PRIORITIES.get(name, 0)

    def provider_timeout(self, name: str) -> float:
        if name in ON_DEVICE_PROVIDERS:
            return self.provider_timeout_on_device_s
        return self.provider_timeout_remote_s

    def cache_ttls(self) -> dict[TaskKind, int | None]:
        """Per-task-kind TTLs in seconds (None = never expires)."""
        return {
            kind: getattr(self, f"cache_ttl_{kind.value.replace('-', '_')}_s")
            for kind in TaskKind
        }


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
