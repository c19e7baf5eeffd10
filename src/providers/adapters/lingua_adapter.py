# src/providers/adapters/lingua_adapter.py — v1
"""On-device language detection with lingua-py.

Handles detect-language only. The detector is built once per process on
first use, off the event loop.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import threading
from typing import Any

from lingocore.core.errors import ProviderInvalidResponse, ProviderUnavailable
from lingocore.core.models import ProcessingRequest, ProviderOutput, TaskKind
from lingocore.providers.base_provider import BaseProvider
from lingocore.providers.models import ProviderDescriptor

logger = logging.getLogger(__name__)

_detector: Any = None
_detector_lock = threading.Lock()


def _get_detector() -> Any:
    global _detector
    with _detector_lock:
        if _detector is None:
            from lingua import LanguageDetectorBuilder

            _detector = LanguageDetectorBuilder.from_all_languages().build()
            logger.debug("lingua detector built")
        return _detector


class LinguaProvider(BaseProvider):
    """Local statistical language detector."""

    def __init__(
        self,
        name: str = "lingua",
        priority: int = 100,
        timeout_s: float = 5.0,
        max_retries: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                name=name,
                priority=priority,
                capabilities=frozenset({TaskKind.DETECT_LANGUAGE}),
                locality="on_device",
                timeout_s=timeout_s,
                max_retries=max_retries,
            )
        )

    def is_available(self) -> bool:
        return importlib.util.find_spec("lingua") is not None

    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        if not self.is_available():
            raise ProviderUnavailable("lingua-language-detector is not installed")
        code = await asyncio.to_thread(self._detect, request.content[:5000])
        return ProviderOutput(task_kind=TaskKind.DETECT_LANGUAGE, language=code)

    @staticmethod
    def _detect(text: str) -> str:
        lang = _get_detector().detect_language_of(text)
        if lang is None:
            raise ProviderInvalidResponse("lingua could not determine the language")
        return lang.iso_code_639_1.name.lower()
