# src/providers/adapters/anthropic_adapter.py — v3
"""Anthropic Claude provider.

Uses the official anthropic SDK. Remote, requires ANTHROPIC_API_KEY.
"""

from __future__ import annotations

from typing import Any

from lingocore.providers.llm_provider import RemoteLLMProvider
from lingocore.providers.models import ALL_TASKS, ProviderDescriptor
from lingocore.providers.rate_limiter import RateLimiter


class AnthropicProvider(RemoteLLMProvider):
    """Provider for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str = "",
        name: str = "anthropic",
        priority: int = 30,
        timeout_s: float = 30.0,
        max_retries: int = 0,
        rate_limiter: RateLimiter | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                name=name,
                priority=priority,
                capabilities=ALL_TASKS,
                locality="remote",
                timeout_s=timeout_s,
                max_retries=max_retries,
            ),
            model,
            api_key=api_key,
            rate_limiter=rate_limiter,
        )
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            import anthropic

            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key, max_retries=0)
        return self.__client

    async def _generate(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return self._extract_content(response)

    @staticmethod
    def _extract_content(response: Any) -> str:
        """Concatenate the text blocks of a Messages API response."""
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
