# src/providers/error_mapping.py — v1
"""Normalize backend-specific exceptions into the shared ProviderError taxonomy.

SDK exception classes are matched by status code, class name and message
rather than by import, so classification works whichever SDKs are installed.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from lingocore.core.errors import (
    ProviderError,
    ProviderInvalidResponse,
    ProviderQuotaExceeded,
    ProviderTimeout,
    ProviderUnauthorized,
    ProviderUnavailable,
)


def _status_of(error: Exception) -> int | None:
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_provider_error(error: Exception, provider: str | None = None) -> ProviderError:
    """Map an arbitrary exception to a ProviderError subclass."""
    if isinstance(error, ProviderError):
        return error

    status = _status_of(error)
    name = type(error).__name__.lower()
    msg = str(error).lower()
    text = f"{type(error).__name__}: {error}"

    if status == 429 or "resourceexhausted" in name or "ratelimit" in name or any(
        s in msg for s in ("quota", "rate limit", "rate_limit", "429")
    ):
        return ProviderQuotaExceeded(text, provider=provider)

    if status in (401, 403) or any(
        s in name for s in ("authentication", "permissiondenied", "unauthenticated", "unauthorized")
    ) or any(s in msg for s in ("api key", "api_key", "unauthorized", "401", "403")):
        return ProviderUnauthorized(text, provider=provider)

    if isinstance(error, TimeoutError) or "timeout" in name or "deadlineexceeded" in name \
            or "timed out" in msg or "timeout" in msg:
        return ProviderTimeout(text, provider=provider)

    if isinstance(error, (json.JSONDecodeError, ValidationError)) or any(
        s in msg for s in ("json", "parse", "decode")
    ):
        return ProviderInvalidResponse(text, provider=provider)

    # 5xx, connection failures, missing SDKs and anything unrecognized:
    # the provider cannot serve right now.
    return ProviderUnavailable(text, provider=provider)
