# src/coordinator/batch.py — v1
"""Batch processing on top of the fallback coordinator.

Two workloads:
  - vocabulary lists, split into fixed-size batches; each batch is analyzed
    and translated in one request pair;
  - long articles, split into sentence-aligned chunks that are summarized,
    rewritten and mined for vocabulary one chunk at a time.

At most ``max_concurrency`` units run at once. A failing unit is recorded
and never aborts its siblings. Results keep input order regardless of
completion order. Caching and provider fallback are the coordinator's job.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from lingocore.core.errors import AllProvidersFailed, LingocoreError
from lingocore.core.models import VocabularyEntry

if TYPE_CHECKING:
    from lingocore.config.settings import Settings
    from lingocore.coordinator.coordinator import FallbackCoordinator

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 20
DEFAULT_MAX_CONCURRENCY = 3
DEFAULT_CHUNK_SIZE = 1000
CHUNK_SUMMARY_LENGTH = 200
MAX_CHUNK_WORDS = 50

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_NON_WORD = re.compile(r"[^\w\s]")

T = TypeVar("T")


# === MODELS ===


class BatchError(BaseModel):
    """One failed batch or chunk."""

    unit: int
    error_type: str
    message: str
    retryable: bool


class BatchProgress(BaseModel):
    completed: int
    total: int
    current_batch: int
    total_batches: int
    errors: list[BatchError] = Field(default_factory=list)


class WordTranslation(BaseModel):
    original: str
    translation: str
    context: str = ""


class VocabularyBatchResult(BaseModel):
    entries: list[VocabularyEntry] = Field(default_factory=list)
    translations: list[WordTranslation] = Field(default_factory=list)
    errors: list[BatchError] = Field(default_factory=list)


class ArticleChunk(BaseModel):
    """A sentence-aligned slice of an article and what was computed for it."""

    id: str
    content: str
    order: int
    processed: bool = False
    summary: str | None = None
    rewritten: str | None = None
    vocabulary: list[VocabularyEntry] = Field(default_factory=list)


class ProgressiveResult(BaseModel):
    chunks: list[ArticleChunk]
    errors: list[BatchError] = Field(default_factory=list)

    @property
    def loaded(self) -> int:
        return sum(1 for c in self.chunks if c.processed)


ProgressCallback = Callable[[BatchProgress], None]


# === PROCESSOR ===


class BatchProcessor:
    """Runs many coordinator requests under a concurrency limit."""

    def __init__(
        self,
        coordinator: FallbackCoordinator,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        if batch_size < 1 or max_concurrency < 1:
            raise ValueError("batch_size and max_concurrency must be >= 1")
        self._coordinator = coordinator
        self._batch_size = batch_size
        self._max_concurrency = max_concurrency
        self._progress_callback = progress_callback

    @classmethod
    def from_settings(
        cls,
        coordinator: FallbackCoordinator,
        settings: Settings,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchProcessor:
        return cls(
            coordinator,
            batch_size=settings.batch_size,
            max_concurrency=settings.batch_max_concurrency,
            progress_callback=progress_callback,
        )

    # --- Vocabulary ---

    async def process_vocabulary(
        self,
        words: list[str],
        context: str,
        target_language: str,
        source_language: str | None = None,
    ) -> VocabularyBatchResult:
        """Analyze and translate ``words`` in batches.

        Each batch is translated as one newline-joined request; a missing
        line falls back to the word itself.
        """
        batches = create_batches(words, self._batch_size)
        context_excerpt = context[:100]
        result = VocabularyBatchResult()

        async def run(batch: list[str]) -> tuple[list[VocabularyEntry], list[WordTranslation]]:
            entries = await self._coordinator.analyze_vocabulary(context, words=batch)
            translated = await self._coordinator.translate(
                "\n".join(batch), target_language, source_language,
            )
            lines = translated.split("\n")
            translations = [
                WordTranslation(
                    original=word,
                    translation=(lines[i].strip() if i < len(lines) else "") or word,
                    context=context_excerpt,
                )
                for i, word in enumerate(batch)
            ]
            return entries, translations

        outcomes = await self._run_all(batches, run, result.errors, sizes=[len(b) for b in batches])
        for outcome in outcomes:
            if outcome is not None:
                entries, translations = outcome
                result.entries.extend(entries)
                result.translations.extend(translations)

        logger.info(
            "Vocabulary batch: %d word(s) in %d batch(es), %d failed",
            len(words), len(batches), len(result.errors),
        )
        return result

    # --- Articles ---

    async def process_article(
        self, chunks: list[ArticleChunk], difficulty: int,
    ) -> ProgressiveResult:
        """Summarize, rewrite and analyze every chunk.

        Input chunks are not modified; the result carries updated copies.
        """

        async def run(chunk: ArticleChunk) -> ArticleChunk:
            summary = await self._coordinator.summarize(
                chunk.content, max_length=CHUNK_SUMMARY_LENGTH,
            )
            rewritten = await self._coordinator.rewrite(chunk.content, difficulty)
            vocabulary = await self._coordinator.analyze_vocabulary(
                chunk.content, words=extract_vocabulary(chunk.content),
            )
            return chunk.model_copy(update={
                "summary": summary,
                "rewritten": rewritten,
                "vocabulary": vocabulary,
                "processed": True,
            })

        errors: list[BatchError] = []
        outcomes = await self._run_all(chunks, run, errors, sizes=[1] * len(chunks))
        processed = [
            outcome if outcome is not None else chunk
            for chunk, outcome in zip(chunks, outcomes)
        ]
        return ProgressiveResult(chunks=processed, errors=errors)

    # --- Internal helpers ---

    async def _run_all(
        self,
        units: list[T],
        run: Callable[[T], Awaitable[Any]],
        errors: list[BatchError],
        sizes: list[int],
    ) -> list[Any]:
        semaphore = asyncio.Semaphore(self._max_concurrency)
        total = sum(sizes)
        done = 0

        async def guarded(index: int, unit: T):
            nonlocal done
            async with semaphore:
                try:
                    outcome = await run(unit)
                except LingocoreError as e:
                    errors.append(_batch_error(index, e))
                    logger.warning("Batch unit %d failed: %s", index + 1, e)
                    return None
                done += sizes[index]
                self._report(BatchProgress(
                    completed=done,
                    total=total,
                    current_batch=index + 1,
                    total_batches=len(units),
                    errors=list(errors),
                ))
                return outcome

        outcomes = await asyncio.gather(
            *(guarded(i, unit) for i, unit in enumerate(units))
        )
        errors.sort(key=lambda e: e.unit)
        return list(outcomes)

    def _report(self, progress: BatchProgress) -> None:
        if self._progress_callback is not None:
            self._progress_callback(progress)


# === HELPERS ===


def create_batches(items: list[T], batch_size: int) -> list[list[T]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def split_sentences(content: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(content) if s.strip()]


def create_chunks(content: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[ArticleChunk]:
    """Group sentences into chunks of at most ``chunk_size`` characters.

    A single sentence longer than ``chunk_size`` becomes its own chunk.
    """
    chunks: list[ArticleChunk] = []
    current = ""
    for sentence in split_sentences(content):
        if current and len(current) + len(sentence) > chunk_size:
            chunks.append(_chunk(len(chunks), current))
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        chunks.append(_chunk(len(chunks), current))
    return chunks


def extract_vocabulary(content: str, limit: int = MAX_CHUNK_WORDS) -> list[str]:
    """Unique lower-cased words longer than three characters, first-seen order."""
    words = _NON_WORD.sub(" ", content.lower()).split()
    unique = dict.fromkeys(w for w in words if len(w) > 3)
    return list(unique)[:limit]


def _chunk(order: int, content: str) -> ArticleChunk:
    return ArticleChunk(id=f"chunk-{order}", content=content.strip(), order=order)


def _batch_error(index: int, error: LingocoreError) -> BatchError:
    error_type = "processing_failed" if isinstance(error, AllProvidersFailed) else error.error_type
    return BatchError(
        unit=index,
        error_type=error_type,
        message=f"Failed to process batch {index + 1}: {error}",
        retryable=error.retryable,
    )
