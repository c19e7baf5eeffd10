# src/providers/base_provider.py — v1
"""Abstract provider interface.

Every backend exposes the same capability-set contract: ``supports``,
``is_available`` and ``invoke``. ``invoke`` only ever raises
ProviderError subclasses; backend-specific exceptions are normalized here.
Providers hold no cache and perform no fallback.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from lingocore.core.errors import (
    ProviderError,
    ProviderInvalidResponse,
    ProviderTimeout,
    ProviderUnavailable,
)
from lingocore.core.models import ProcessingRequest, ProviderOutput, TaskKind
from lingocore.providers.error_mapping import classify_provider_error
from lingocore.providers.models import ProviderDescriptor

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Unified interface for all AI providers."""

    def __init__(self, descriptor: ProviderDescriptor) -> None:
        self._descriptor = descriptor

    @property
    def descriptor(self) -> ProviderDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    def supports(self, task_kind: TaskKind | str) -> bool:
        """Whether this provider can perform ``task_kind`` at all."""
        return self._descriptor.supports(task_kind)

    def is_available(self) -> bool:
        """Static availability predicate (SDK installed, runtime present)."""
        return True

    async def invoke(
        self, request: ProcessingRequest, timeout_s: float | None = None,
    ) -> ProviderOutput:
        """Run ``request`` under a bounded timeout.

        Raises:
            ProviderTimeout: If the bound is exceeded.
            ProviderError: Any other normalized provider failure.
        """
        if not self.supports(request.task_kind):
            raise ProviderUnavailable(
                f"{self.name} does not support {request.task_kind.value}",
                provider=self.name,
            )
        timeout = timeout_s if timeout_s is not None else self._descriptor.timeout_s

        try:
            output = await asyncio.wait_for(self._invoke(request), timeout)
        except ProviderError as e:
            e.provider = e.provider or self.name
            raise
        except asyncio.TimeoutError as e:
            raise ProviderTimeout(
                f"{self.name} did not answer within {timeout:.1f}s", provider=self.name
            ) from e
        except Exception as e:
            normalized = classify_provider_error(e, provider=self.name)
            logger.debug("%s raised %s, normalized to %s",
                         self.name, type(e).__name__, normalized.error_type)
            raise normalized from e

        if output.task_kind != request.task_kind:
            raise ProviderInvalidResponse(
                f"{self.name} answered a {output.task_kind.value} payload "
                f"to a {request.task_kind.value} request",
                provider=self.name,
            )
        return output

    @abstractmethod
    async def _invoke(self, request: ProcessingRequest) -> ProviderOutput:
        """Backend-specific processing. May raise anything; invoke() normalizes."""
