# src/store/models.py — v1
"""Persisted learning records and the on-disk schema envelope.

Records are discriminated on ``kind``. Fields the schema does not know
(legacy extras) are kept, so a migration never loses user data.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from lingocore.core.models import utcnow

CURRENT_SCHEMA_VERSION = 3
CURRENT_RECORD_VERSION = 3

RecordKind = Literal["article", "vocabulary", "sentence"]


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    version: int = CURRENT_RECORD_VERSION
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ArticleRecord(_RecordBase):
    """Processed text: detected language, summary or difficulty rewrite."""

    kind: Literal["article"] = "article"
    url: str = ""
    title: str = ""
    original_language: str = ""
    task_kind: str | None = None
    source_text: str = ""
    content: str = ""
    processing_status: Literal["processing", "completed", "failed"] = "completed"


class VocabularyCardRecord(_RecordBase):
    kind: Literal["vocabulary"] = "vocabulary"
    word: str
    definition: str = ""
    translation: str = ""
    context: str = ""
    example_sentences: list[str] = Field(default_factory=list)
    article_id: str | None = None
    difficulty: int | None = None
    is_technical_term: bool = False
    review_count: int = 0
    last_reviewed: datetime | None = None


class SentenceCardRecord(_RecordBase):
    kind: Literal["sentence"] = "sentence"
    content: str
    translation: str = ""
    source_language: str = ""
    target_language: str = ""
    article_id: str | None = None


StoreRecord = Annotated[
    Union[ArticleRecord, VocabularyCardRecord, SentenceCardRecord],
    Field(discriminator="kind"),
]

record_adapter: TypeAdapter[Any] = TypeAdapter(StoreRecord)


class SchemaEnvelope(BaseModel):
    """Top-level persisted document: ``{"schemaVersion": 3, "records": [...]}``."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, alias="schemaVersion")
    records: list[StoreRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class MigrationReport(BaseModel):
    """Outcome of bringing persisted data to the current schema."""

    from_version: int
    to_version: int = CURRENT_SCHEMA_VERSION
    records_migrated: int = 0
    writes: int = 0

    @property
    def changed(self) -> bool:
        return self.from_version != self.to_version or self.records_migrated > 0
