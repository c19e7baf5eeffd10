# src/api/facade.py — v2
"""Public API facade: single entry point for learning-content processing.

Usage:
    from lingocore.api.facade import LearningProcessor
    processor = LearningProcessor.from_settings()
    summary = await processor.summarize(text, max_length=120)
"""

from __future__ import annotations

import logging
from typing import Any

from lingocore.cache.cache_factory import create_cache
from lingocore.config.settings import Settings
from lingocore.coordinator.batch import BatchProcessor, ProgressCallback
from lingocore.coordinator.coordinator import FallbackCoordinator
from lingocore.core.identity import init_identity_generator
from lingocore.core.models import ProcessingRequest, ProcessingResult, TaskKind, VocabularyEntry
from lingocore.messaging.channel import BaseChannel
from lingocore.messaging.dispatcher import MessageDispatcher
from lingocore.providers.provider_factory import build_provider_chain
from lingocore.store.base_result_store import BaseResultStore
from lingocore.store.json_store import JsonResultStore

logger = logging.getLogger(__name__)


class LearningProcessor:
    """Wires providers, cache, store and coordinator together."""

    def __init__(self, coordinator: FallbackCoordinator, settings: Settings | None = None) -> None:
        self._coordinator = coordinator
        self._settings = settings

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        store: BaseResultStore | None = None,
    ) -> LearningProcessor:
        """Build the full processing stack from configuration.

        Args:
            settings: Application settings. Loaded from .env if None.
            store: Result store override. Defaults to the JSON store at
                STORE_PATH.
        """
        settings = settings if settings is not None else Settings()
        init_identity_generator(
            rollover_threshold=settings.identity_rollover_threshold,
            discriminator=settings.identity_discriminator,
        )
        providers = build_provider_chain(settings)
        coordinator = FallbackCoordinator(
            providers,
            cache=create_cache(settings),
            store=store if store is not None else JsonResultStore(settings.store_path),
            settings=settings,
        )
        logger.info(
            "Processor ready: providers=%s, cache=%s",
            ",".join(p.name for p in providers),
            settings.cache_backend if settings.cache_enabled else "disabled",
        )
        return cls(coordinator, settings)

    @property
    def coordinator(self) -> FallbackCoordinator:
        return self._coordinator

    async def process(
        self, task_kind: TaskKind | str, content: str, **parameters: Any,
    ) -> ProcessingResult:
        request = ProcessingRequest(
            task_kind=TaskKind(task_kind), content=content, parameters=parameters,
        )
        return await self._coordinator.process(request)

    async def detect_language(self, text: str) -> str:
        return await self._coordinator.detect_language(text)

    async def summarize(self, text: str, max_length: int = 300, format: str = "paragraph") -> str:
        return await self._coordinator.summarize(text, max_length=max_length, format=format)

    async def translate(
        self, text: str, target_language: str, source_language: str | None = None,
    ) -> str:
        return await self._coordinator.translate(text, target_language, source_language)

    async def rewrite(self, text: str, difficulty: int) -> str:
        return await self._coordinator.rewrite(text, difficulty)

    async def analyze_vocabulary(
        self, text: str, words: list[str] | None = None,
    ) -> list[VocabularyEntry]:
        return await self._coordinator.analyze_vocabulary(text, words)

    def batch_processor(self, progress_callback: ProgressCallback | None = None) -> BatchProcessor:
        """Batch helper for word lists and long articles, sized from settings."""
        if self._settings is None:
            return BatchProcessor(self._coordinator, progress_callback=progress_callback)
        return BatchProcessor.from_settings(
            self._coordinator, self._settings, progress_callback=progress_callback,
        )

    def dispatcher(self, channel: BaseChannel) -> MessageDispatcher:
        """Message dispatcher answering ``channel`` through this processor."""
        window = self._settings.message_replay_window if self._settings else 1024
        return MessageDispatcher(self._coordinator, channel, replay_window=window)

    def close(self) -> None:
        self._coordinator.cache.close()
