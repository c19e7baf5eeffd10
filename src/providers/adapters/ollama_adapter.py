# src/providers/adapters/ollama_adapter.py — v2
"""Ollama local model provider (on-device, no credential, no quota).

Uses the ollama Python SDK.
"""

from __future__ import annotations

import importlib.util
from typing import Any

from lingocore.providers.llm_provider import LLMProvider
from lingocore.providers.models import ALL_TASKS, ProviderDescriptor


class OllamaProvider(LLMProvider):
    """Ollama local inference provider."""

    def __init__(
        self,
        model: str = "llama3",
        base_url: str = "http://localhost:11434",
        name: str = "ollama",
        priority: int = 90,
        timeout_s: float = 5.0,
        max_retries: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                name=name,
                priority=priority,
                capabilities=ALL_TASKS,
                locality="on_device",
                timeout_s=timeout_s,
                max_retries=max_retries,
            ),
            model,
        )
        self._host = base_url
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            import ollama

            self.__client = ollama.AsyncClient(host=self._host)
        return self.__client

    def is_available(self) -> bool:
        return importlib.util.find_spec("ollama") is not None

    async def _generate(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }
        if json_mode:
            kwargs["format"] = "json"

        resp = await self._client.chat(**kwargs)
        return resp["message"]["content"]
