# src/providers/adapters/google_adapter.py — v2
"""Google Gemini provider.

Uses the google-generativeai SDK. Remote, requires GOOGLE_API_KEY.
"""

from __future__ import annotations

from typing import Any

from lingocore.core.errors import ProviderInvalidResponse
from lingocore.providers.llm_provider import RemoteLLMProvider
from lingocore.providers.models import ALL_TASKS, ProviderDescriptor
from lingocore.providers.rate_limiter import RateLimiter


class GoogleProvider(RemoteLLMProvider):
    """Google Gemini provider."""

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        api_key: str = "",
        name: str = "google",
        priority: int = 50,
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
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system)

        gen_config: dict[str, Any] = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            gen_config["response_mime_type"] = "application/json"

        resp = await model.generate_content_async(
            [{"role": "user", "parts": [{"text": prompt}]}],
            generation_config=gen_config,
        )
        try:
            return resp.text or ""
        except ValueError as e:
            # .text raises when the candidate was blocked or is empty
            raise ProviderInvalidResponse(f"Gemini returned no text: {e}") from e
