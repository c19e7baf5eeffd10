# tests/unit/coordinator/test_unit_batch.py — v1
"""Tests for coordinator/batch.py — BatchProcessor."""

from __future__ import annotations

import asyncio

import pytest

from lingocore.config.settings import Settings
from lingocore.coordinator.batch import (
    ArticleChunk,
    BatchProcessor,
    BatchProgress,
    create_batches,
    create_chunks,
    extract_vocabulary,
)
from lingocore.coordinator.coordinator import FallbackCoordinator
from lingocore.core.errors import ProviderUnavailable
from lingocore.core.models import ProcessingRequest, ProviderOutput, TaskKind
from tests.conftest import FakeProvider, default_output


class LineTranslator(FakeProvider):
    """Translates line by line (upper-cases); tracks peak concurrency.

    Requests whose content contains ``fail_on`` raise ProviderUnavailable.
    """

    def __init__(self, fail_on: str | None = None, delay_s: float = 0.0) -> None:
        super().__init__("fake")
        self.fail_on = fail_on
        self.delay_s = delay_s
        self.active = 0
        self.peak = 0

    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        self.calls.append(request)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay_s)
            if self.fail_on and self.fail_on in request.content:
                raise ProviderUnavailable("backend down")
            if request.task_kind is TaskKind.TRANSLATE:
                return ProviderOutput(task_kind=TaskKind.TRANSLATE, text=request.content.upper())
            return default_output(request, self.name)
        finally:
            self.active -= 1


def _words(n: int) -> list[str]:
    return [f"word{i:02d}" for i in range(n)]


class TestHelpers:
    def test_create_batches(self):
        assert create_batches([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
        assert create_batches([], 3) == []

    def test_create_batches_rejects_zero(self):
        with pytest.raises(ValueError):
            create_batches([1], 0)

    def test_create_chunks_respects_size(self):
        text = "First sentence here. Second one! Third? Fourth sentence is longer."
        chunks = create_chunks(text, chunk_size=30)
        assert [c.id for c in chunks] == [f"chunk-{i}" for i in range(len(chunks))]
        assert [c.order for c in chunks] == list(range(len(chunks)))
        assert chunks[0].content == "First sentence here Second one"
        assert all(not c.processed for c in chunks)
        assert " ".join(c.content for c in chunks).count("sentence") == 2

    def test_create_chunks_empty(self):
        assert create_chunks("  ...  ") == []

    def test_extract_vocabulary(self):
        words = extract_vocabulary("The quick, quick fox jumps over lazy dogs. Über café!")
        assert words == ["quick", "jumps", "over", "lazy", "dogs", "über", "café"]

    def test_extract_vocabulary_limit(self):
        assert len(extract_vocabulary(" ".join(_words(80)))) == 50


class TestVocabularyBatches:
    @pytest.mark.asyncio
    async def test_batches_keep_order(self):
        provider = LineTranslator()
        processor = BatchProcessor(FallbackCoordinator([provider]), batch_size=20)

        result = await processor.process_vocabulary(_words(45), "some context", "fr")

        assert [t.original for t in result.translations] == _words(45)
        assert [t.translation for t in result.translations] == [w.upper() for w in _words(45)]
        assert result.errors == []
        # 3 batches: one analysis and one translation each.
        assert len(provider.calls) == 6
        assert len(result.entries) == 6

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        provider = LineTranslator(delay_s=0.01)
        processor = BatchProcessor(
            FallbackCoordinator([provider]), batch_size=2, max_concurrency=3,
        )
        await processor.process_vocabulary(_words(20), "ctx", "de")
        assert provider.peak <= 3
        assert provider.peak > 1

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_abort_others(self):
        provider = LineTranslator(fail_on="word03")
        processor = BatchProcessor(FallbackCoordinator([provider]), batch_size=2)

        result = await processor.process_vocabulary(_words(6), "ctx", "es")

        assert [t.original for t in result.translations] == ["word00", "word01", "word04", "word05"]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.unit == 1
        assert error.error_type == "processing_failed"
        assert error.retryable is True
        assert "batch 2" in error.message

    @pytest.mark.asyncio
    async def test_missing_translation_line_falls_back_to_word(self):
        provider = FakeProvider("fake", outcomes=[
            default_output(ProcessingRequest(task_kind=TaskKind.ANALYZE_VOCABULARY, content="c"), "fake"),
            ProviderOutput(task_kind=TaskKind.TRANSLATE, text="uno"),
        ])
        processor = BatchProcessor(FallbackCoordinator([provider]))
        result = await processor.process_vocabulary(["one", "two"], "ctx", "es")
        assert [t.translation for t in result.translations] == ["uno", "two"]

    @pytest.mark.asyncio
    async def test_progress_reports(self):
        reports: list[BatchProgress] = []
        processor = BatchProcessor(
            FallbackCoordinator([LineTranslator()]), batch_size=4, max_concurrency=1,
            progress_callback=reports.append,
        )
        await processor.process_vocabulary(_words(10), "ctx", "fr")

        assert [r.completed for r in reports] == [4, 8, 10]
        assert all(r.total == 10 and r.total_batches == 3 for r in reports)
        assert [r.current_batch for r in reports] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_repeated_batches_come_from_cache(self):
        provider = LineTranslator()
        processor = BatchProcessor(FallbackCoordinator([provider]), batch_size=5)
        await processor.process_vocabulary(_words(5), "ctx", "fr")
        await processor.process_vocabulary(_words(5), "ctx", "fr")
        assert len(provider.calls) == 2


class TestArticleProcessing:
    @pytest.mark.asyncio
    async def test_every_chunk_processed(self):
        chunks = create_chunks("Uno dos tres. Cuatro cinco seis. Siete ocho nueve.", chunk_size=15)
        processor = BatchProcessor(FallbackCoordinator([LineTranslator()]))

        result = await processor.process_article(chunks, difficulty=3)

        assert result.loaded == len(chunks) == 3
        assert result.errors == []
        first = result.chunks[0]
        assert first.summary == f"fake:summarize:{first.content}"
        assert first.rewritten == f"fake:rewrite:{first.content}"
        assert [v.word for v in first.vocabulary] == ["ephemeral", "ubiquitous"]
        assert chunks[0].processed is False

    @pytest.mark.asyncio
    async def test_failed_chunk_left_unprocessed(self):
        chunks = [
            ArticleChunk(id="chunk-0", content="Fine text here", order=0),
            ArticleChunk(id="chunk-1", content="Broken text here", order=1),
        ]
        processor = BatchProcessor(FallbackCoordinator([LineTranslator(fail_on="Broken")]))

        result = await processor.process_article(chunks, difficulty=5)

        assert [c.processed for c in result.chunks] == [True, False]
        assert [e.unit for e in result.errors] == [1]

    @pytest.mark.asyncio
    async def test_invalid_difficulty_recorded_per_chunk(self):
        chunks = create_chunks("One sentence. Another sentence.", chunk_size=10)
        processor = BatchProcessor(FallbackCoordinator([LineTranslator()]))
        result = await processor.process_article(chunks, difficulty=42)
        assert result.loaded == 0
        assert {e.error_type for e in result.errors} == {"invalid_request"}
        assert {e.retryable for e in result.errors} == {False}


class TestConstruction:
    def test_from_settings(self):
        s = Settings(_env_file=None, batch_size=5, batch_max_concurrency=2)
        processor = BatchProcessor.from_settings(FallbackCoordinator([]), s)
        assert processor._batch_size == 5
        assert processor._max_concurrency == 2

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            BatchProcessor(FallbackCoordinator([]), max_concurrency=0)
