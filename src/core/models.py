# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lingocore.core.errors import PROVIDER_ERROR_TYPES, ProviderError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskKind(str, Enum):
    """Learning-content processing tasks."""

    DETECT_LANGUAGE = "detect-language"
    SUMMARIZE = "summarize"
    TRANSLATE = "translate"
    REWRITE = "rewrite"
    ANALYZE_VOCABULARY = "analyze-vocabulary"


# === REQUEST ===


class ProcessingRequest(BaseModel):
    """A single unit of work for the coordinator. Immutable once issued."""

    model_config = ConfigDict(frozen=True)

    task_kind: TaskKind
    content: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    requested_at: datetime = Field(default_factory=utcnow)


# === OUTPUT ===


class VocabularyEntry(BaseModel):
    """One analyzed word, as returned by a vocabulary analysis."""

    word: str
    definition: str = ""
    example_sentences: list[str] = Field(default_factory=list)
    difficulty: int | None = None
    is_technical_term: bool = False


class ProviderOutput(BaseModel):
    """Task-specific payload produced by a provider.

    Exactly one of ``language``, ``text`` or ``vocabulary`` is set, matching
    ``task_kind``.
    """

    task_kind: TaskKind
    language: str | None = None
    text: str | None = None
    vocabulary: list[VocabularyEntry] | None = None

    @model_validator(mode="after")
    def check_payload(self) -> ProviderOutput:
        if self.task_kind is TaskKind.DETECT_LANGUAGE:
            if not self.language:
                raise ValueError("detect-language output requires 'language'")
        elif self.task_kind is TaskKind.ANALYZE_VOCABULARY:
            if self.vocabulary is None:
                raise ValueError("analyze-vocabulary output requires 'vocabulary'")
        elif self.text is None:
            raise ValueError(f"{self.task_kind.value} output requires 'text'")
        return self


class ProviderFailure(BaseModel):
    """Diagnostics entry: one provider's failure inside a fallback chain."""

    provider: str
    error_type: str
    message: str

    @classmethod
    def from_error(cls, provider: str, error: ProviderError) -> ProviderFailure:
        return cls(provider=provider, error_type=error.error_type, message=str(error))

    @property
    def retryable(self) -> bool:
        return PROVIDER_ERROR_TYPES.get(self.error_type, ProviderError).retryable


class ProcessingResult(BaseModel):
    """What a caller receives for a successfully processed request."""

    fingerprint: str
    output: ProviderOutput
    provider_used: str
    from_cache: bool = False
    failures: list[ProviderFailure] = Field(default_factory=list)
    record_ids: list[str] = Field(default_factory=list)
