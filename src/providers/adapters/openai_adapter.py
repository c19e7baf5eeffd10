# src/providers/adapters/openai_adapter.py — v2
"""OpenAI GPT provider.

Uses the official openai SDK. Remote, requires OPENAI_API_KEY.
"""

from __future__ import annotations

from typing import Any

from lingocore.providers.llm_provider import RemoteLLMProvider
from lingocore.providers.models import ALL_TASKS, ProviderDescriptor
from lingocore.providers.rate_limiter import RateLimiter


class OpenAIProvider(RemoteLLMProvider):
    """OpenAI GPT provider."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        name: str = "openai",
        priority: int = 40,
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

    async def _generate(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        import openai

        client = openai.AsyncOpenAI(api_key=self._api_key, max_retries=0)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        resp = await client.chat.completions.create(**kwargs)
        return resp.choices[0].message.content or ""
