# src/coordinator/coordinator.py — v1
"""Provider fallback coordinator.

Routes each request through the content-addressed cache and, on a miss,
walks the provider chain until one provider succeeds:

  PENDING → TRYING(i) → SUCCEEDED
                      → TRYING(i+1) on any ProviderError
                      → EXHAUSTED when the chain runs out

The chain for a request is the providers that support its task kind and
are currently available, ordered by descending priority; equal priorities
keep their declared order. A successful computation is written to the
cache and the store exactly once, however many callers asked for it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Sequence

from lingocore.cache.coalescing_cache import ContentAddressedCache
from lingocore.cache.fingerprint import Fingerprint, fingerprint_request
from lingocore.config.settings import Settings
from lingocore.coordinator.health import ProviderHealth
from lingocore.coordinator.records import build_records
from lingocore.core.errors import (
    AllProvidersFailed,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderUnauthorized,
    ProviderUnavailable,
)
from lingocore.core.identity import IdentityGenerator
from lingocore.core.models import (
    ProcessingRequest,
    ProcessingResult,
    ProviderFailure,
    ProviderOutput,
    TaskKind,
    VocabularyEntry,
)
from lingocore.logging.context import set_provider_context, set_request_context
from lingocore.providers.base_provider import BaseProvider
from lingocore.providers.prompts import validate_request
from lingocore.providers.retry import RetryConfig, with_retry
from lingocore.store.base_result_store import BaseResultStore
from lingocore.store.models import StoreRecord

logger = logging.getLogger(__name__)

RecordBuilder = Callable[
    [ProcessingRequest, ProviderOutput, "IdentityGenerator | None"], "list[StoreRecord]"
]


class RequestState(str, Enum):
    PENDING = "pending"
    TRYING = "trying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class FallbackCoordinator:
    """Single entry point for processing requests across providers."""

    def __init__(
        self,
        providers: Sequence[BaseProvider],
        cache: ContentAddressedCache | None = None,
        store: BaseResultStore | None = None,
        health: ProviderHealth | None = None,
        settings: Settings | None = None,
        record_builder: RecordBuilder = build_records,
        id_gen: IdentityGenerator | None = None,
    ) -> None:
        self._providers = list(providers)
        self._cache = cache if cache is not None else ContentAddressedCache()
        self._store = store
        self._health = health if health is not None else ProviderHealth()
        self._record_builder = record_builder
        self._id_gen = id_gen
        self._cache_enabled = settings.cache_enabled if settings else True
        self._quota_cooldown_s = settings.quota_cooldown_s if settings else 60.0

    @property
    def providers(self) -> list[BaseProvider]:
        return list(self._providers)

    @property
    def cache(self) -> ContentAddressedCache:
        return self._cache

    @property
    def store(self) -> BaseResultStore | None:
        return self._store

    @property
    def health(self) -> ProviderHealth:
        return self._health

    def chain_for(self, task_kind: TaskKind | str) -> list[BaseProvider]:
        """Providers to try for ``task_kind``, in order."""
        kind = TaskKind(task_kind)
        candidates = [
            p for p in self._providers
            if p.supports(kind) and p.is_available() and self._health.is_available(p.name)
        ]
        # sorted() is stable: equal priorities keep declared order.
        return sorted(candidates, key=lambda p: -p.descriptor.priority)

    async def process(self, request: ProcessingRequest) -> ProcessingResult:
        """Process ``request``, from cache when possible.

        Raises:
            InvalidRequest: If the request parameters are unusable.
            AllProvidersFailed: If no provider could produce a result.
        """
        validate_request(request)
        set_request_context(request.task_kind.value)
        fingerprint = fingerprint_request(request)

        async def compute() -> ProcessingResult:
            return await self._compute(request, fingerprint)

        if not self._cache_enabled:
            return await compute()
        return await self._cache.get_or_compute(fingerprint, compute)

    # --- Convenience API ---

    async def detect_language(self, text: str) -> str:
        result = await self.process(
            ProcessingRequest(task_kind=TaskKind.DETECT_LANGUAGE, content=text)
        )
        return result.output.language or ""

    async def summarize(
        self, text: str, max_length: int = 300, format: str = "paragraph",
    ) -> str:
        result = await self.process(
            ProcessingRequest(
                task_kind=TaskKind.SUMMARIZE,
                content=text,
                parameters={"max_length": max_length, "format": format},
            )
        )
        return result.output.text or ""

    async def translate(
        self, text: str, target_language: str, source_language: str | None = None,
    ) -> str:
        result = await self.process(
            ProcessingRequest(
                task_kind=TaskKind.TRANSLATE,
                content=text,
                parameters={
                    "target_language": target_language,
                    "source_language": source_language,
                },
            )
        )
        return result.output.text or ""

    async def rewrite(self, text: str, difficulty: int) -> str:
        result = await self.process(
            ProcessingRequest(
                task_kind=TaskKind.REWRITE,
                content=text,
                parameters={"difficulty": difficulty},
            )
        )
        return result.output.text or ""

    async def analyze_vocabulary(
        self, text: str, words: list[str] | None = None,
    ) -> list[VocabularyEntry]:
        result = await self.process(
            ProcessingRequest(
                task_kind=TaskKind.ANALYZE_VOCABULARY,
                content=text,
                parameters={"words": words},
            )
        )
        return result.output.vocabulary or []

    def service_status(self) -> dict[str, Any]:
        """Availability overview of every configured provider."""
        unhealthy = self._health.snapshot()
        providers: list[dict[str, Any]] = []
        for p in sorted(self._providers, key=lambda p: -p.descriptor.priority):
            installed = p.is_available()
            providers.append({
                "name": p.name,
                "priority": p.descriptor.priority,
                "locality": p.descriptor.locality,
                "capabilities": sorted(k.value for k in p.descriptor.capabilities),
                "installed": installed,
                "state": unhealthy.get(p.name, "available" if installed else "unavailable"),
            })
        return {
            "providers": providers,
            "available": [p["name"] for p in providers if p["state"] == "available"],
            "cache_entries": len(self._cache),
        }

    # --- Internal helpers ---

    async def _compute(
        self, request: ProcessingRequest, fingerprint: Fingerprint,
    ) -> ProcessingResult:
        output, provider_used, failures = await self._run_chain(request)
        record_ids = await self._persist(request, output)
        return ProcessingResult(
            fingerprint=fingerprint.digest,
            output=output,
            provider_used=provider_used,
            failures=failures,
            record_ids=record_ids,
        )

    async def _run_chain(
        self, request: ProcessingRequest,
    ) -> tuple[ProviderOutput, str, list[ProviderFailure]]:
        kind = request.task_kind
        chain = self.chain_for(kind)
        failures: list[ProviderFailure] = []
        state = RequestState.PENDING
        logger.debug("%s: %s with %d candidate provider(s)", kind.value, state.value, len(chain))

        for index, provider in enumerate(chain):
            # An earlier attempt in this or another request may have taken it out.
            if not self._health.is_available(provider.name):
                state_name = self._health.snapshot().get(provider.name, "unavailable")
                failures.append(ProviderFailure.from_error(
                    provider.name,
                    ProviderUnavailable(f"Skipped: provider is {state_name}", provider.name),
                ))
                logger.debug("%s: skipping provider %d (%s), %s",
                             kind.value, index, provider.name, state_name)
                continue

            state = RequestState.TRYING
            logger.debug("%s: %s provider %d (%s)", kind.value, state.value, index, provider.name)
            set_provider_context(provider.name)
            try:
                output = await with_retry(
                    provider.invoke,
                    request,
                    provider=provider.name,
                    config=RetryConfig(max_retries=provider.descriptor.max_retries),
                )
            except ProviderError as e:
                failures.append(ProviderFailure.from_error(provider.name, e))
                logger.warning("Provider %s failed for %s: %s", provider.name, kind.value, e)
                self._update_health(provider.name, e)
                continue
            finally:
                set_provider_context(None)

            state = RequestState.SUCCEEDED
            logger.debug("%s: %s via %s", kind.value, state.value, provider.name)
            if failures:
                logger.info(
                    "%s served by fallback provider %s after %d failure(s)",
                    kind.value, provider.name, len(failures),
                )
            return output, provider.name, failures

        state = RequestState.EXHAUSTED
        logger.debug("%s: %s after %d failure(s)", kind.value, state.value, len(failures))
        error = AllProvidersFailed(kind.value, failures)
        logger.error("%s", error)
        raise error

    def _update_health(self, name: str, error: ProviderError) -> None:
        if isinstance(error, ProviderUnauthorized):
            self._health.disable(name, str(error))
        elif isinstance(error, ProviderQuotaExceeded):
            self._health.cool_down(name, self._quota_cooldown_s)

    async def _persist(
        self, request: ProcessingRequest, output: ProviderOutput,
    ) -> list[str]:
        if self._store is None:
            return []
        records = self._record_builder(request, output, self._id_gen)
        for record in records:
            await self._store.save(record)
        return [r.id for r in records]
