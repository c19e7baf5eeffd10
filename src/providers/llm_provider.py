# src/providers/llm_provider.py — v1
"""Prompt-driven provider shared by the LLM backends.

Subclasses only implement ``_generate``; prompt construction and answer
validation are common to every backend.
"""

from __future__ import annotations

import logging
from abc import abstractmethod

from lingocore.core.errors import ProviderUnauthorized
from lingocore.core.models import ProcessingRequest, ProviderOutput
from lingocore.providers.base_provider import BaseProvider
from lingocore.providers.models import ProviderDescriptor
from lingocore.providers.prompts import build_prompt, parse_output
from lingocore.providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class LLMProvider(BaseProvider):
    """Provider backed by a text-generation model."""

    def __init__(self, descriptor: ProviderDescriptor, model: str) -> None:
        super().__init__(descriptor)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        prompt = build_prompt(request)
        raw = await self._generate(
            system=prompt.system,
            prompt=prompt.user,
            max_tokens=prompt.max_tokens,
            temperature=prompt.temperature,
            json_mode=prompt.json_mode,
        )
        logger.debug("%s answered %d chars for %s",
                     self.name, len(raw or ""), request.task_kind.value)
        return parse_output(request.task_kind, raw)

    @abstractmethod
    async def _generate(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        """Return the raw text answer of the model."""


class RemoteLLMProvider(LLMProvider):
    """LLM provider reached over the network with a credential.

    A missing key is reported as ProviderUnauthorized on invocation, so the
    caller is prompted to configure it instead of retrying.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        model: str,
        api_key: str = "",
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        super().__init__(descriptor, model)
        self._api_key = api_key
        self._rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    @property
    def has_credential(self) -> bool:
        return bool(self._api_key)

    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        if not self._api_key:
            raise ProviderUnauthorized(
                f"No API key configured for {self.name}", provider=self.name
            )
        await self._rate_limiter.acquire()
        return await super()._invoke(request)
