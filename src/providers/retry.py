# src/providers/retry.py — v2
"""Per-provider retry policy with exponential backoff.

Only transient failures (timeout, unavailable) are retried against the same
provider. Quota and credential failures are handed straight back to the
fallback chain.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from lingocore.core.errors import ProviderError, ProviderTimeout, ProviderUnavailable

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[ProviderError], ...] = (ProviderTimeout, ProviderUnavailable)


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for one provider."""

    max_retries: int = 0
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0
    max_delay_s: float = 10.0
    jitter: bool = True


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.8 + 0.4 * random.random()  # noqa: S311
    return min(delay, config.max_delay_s)


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    provider: str = "unknown",
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async provider call, retrying transient ProviderErrors.

    Raises:
        ProviderError: The last error once retries are exhausted, or the
            first non-retryable one.
    """
    config = config if config is not None else RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except RETRYABLE_ERRORS as e:
            attempts += 1
            if attempts > config.max_retries:
                raise
            delay = compute_delay(config, attempts - 1)
            logger.warning(
                "Provider '%s' failed with %s (attempt %d/%d), retrying in %.1fs",
                provider, e.error_type, attempts, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
