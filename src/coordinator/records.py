# src/coordinator/records.py — v1
"""Map a successful provider output onto the records the store keeps.

  - detect-language, summarize, rewrite → one article record
  - translate → one sentence card
  - analyze-vocabulary → one vocabulary card per analyzed word

Every record gets a fresh identifier from the process-wide generator.
Optional request parameters ``url``, ``title`` and ``article_id`` are
carried onto the records.
"""

from __future__ import annotations

from lingocore.core.identity import IdentityGenerator, get_identity_generator
from lingocore.core.models import ProcessingRequest, ProviderOutput, TaskKind
from lingocore.store.models import (
    ArticleRecord,
    SentenceCardRecord,
    StoreRecord,
    VocabularyCardRecord,
)

_CONTEXT_CHARS = 500


def build_records(
    request: ProcessingRequest,
    output: ProviderOutput,
    id_gen: IdentityGenerator | None = None,
) -> list[StoreRecord]:
    id_gen = id_gen or get_identity_generator()
    params = request.parameters
    kind = request.task_kind

    if kind is TaskKind.TRANSLATE:
        return [
            SentenceCardRecord(
                id=id_gen.next(),
                content=request.content,
                translation=output.text or "",
                source_language=str(params.get("source_language") or ""),
                target_language=str(params.get("target_language") or ""),
                article_id=params.get("article_id"),
            )
        ]

    if kind is TaskKind.ANALYZE_VOCABULARY:
        context = request.content[:_CONTEXT_CHARS]
        return [
            VocabularyCardRecord(
                id=id_gen.next(),
                word=entry.word,
                definition=entry.definition,
                context=context,
                example_sentences=entry.example_sentences,
                difficulty=entry.difficulty,
                is_technical_term=entry.is_technical_term,
                article_id=params.get("article_id"),
            )
            for entry in output.vocabulary or []
        ]

    return [
        ArticleRecord(
            id=id_gen.next(),
            url=str(params.get("url") or ""),
            title=str(params.get("title") or ""),
            original_language=output.language or str(params.get("source_language") or ""),
            task_kind=kind.value,
            source_text=request.content,
            content=output.text or "",
        )
    ]
