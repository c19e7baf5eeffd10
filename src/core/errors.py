# src/core/errors.py — v1
"""Error taxonomy shared by providers, coordinator, cache and store.

Provider errors are recovered inside the fallback chain; only
``AllProvidersFailed`` reaches callers of the coordinator. Every error
carries ``retryable`` and ``user_action`` so the UI boundary can choose
between a retry button and a configuration prompt.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from lingocore.core.models import ProviderFailure

UserAction = Literal["retry", "configure", "none"]


class LingocoreError(Exception):
    """Base class for all typed errors of this package."""

    error_type: str = "error"
    retryable: bool = False
    user_action: UserAction = "none"


class InvalidRequest(LingocoreError):
    """Request parameters are missing or out of range. Caller error."""

    error_type = "invalid_request"


# === PROVIDER ERRORS ===


class ProviderError(LingocoreError):
    """Normalized failure of a single provider invocation."""

    error_type = "provider_error"

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailable(ProviderError):
    error_type = "unavailable"
    retryable = True
    user_action = "retry"


class ProviderTimeout(ProviderError):
    error_type = "timeout"
    retryable = True
    user_action = "retry"


class ProviderQuotaExceeded(ProviderError):
    error_type = "quota_exceeded"
    retryable = True
    user_action = "retry"


class ProviderUnauthorized(ProviderError):
    """Credential missing or rejected. Retrying cannot help."""

    error_type = "unauthorized"
    user_action = "configure"


class ProviderInvalidResponse(ProviderError):
    error_type = "invalid_response"


class AllProvidersFailed(LingocoreError):
    """Every provider in the chain failed (or none was available).

    ``failures`` keeps the per-provider errors in the order they were tried.
    """

    error_type = "all_providers_failed"

    def __init__(self, task_kind: str, failures: list[ProviderFailure]) -> None:
        self.task_kind = task_kind
        self.failures = list(failures)
        if failures:
            detail = "; ".join(f"{f.provider}: {f.error_type}" for f in failures)
            message = f"All providers failed for {task_kind} ({detail})"
        else:
            message = f"No provider available for {task_kind}"
        super().__init__(message)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return any(f.retryable for f in self.failures)

    @property
    def user_action(self) -> UserAction:  # type: ignore[override]
        if not self.failures or all(
            f.error_type == ProviderUnauthorized.error_type for f in self.failures
        ):
            return "configure"
        return "retry" if self.retryable else "none"


# === STORE / CACHE ERRORS ===


class StoreConflict(LingocoreError):
    """A save collided with an existing record of a different kind."""

    error_type = "store_conflict"

    def __init__(self, record_id: str, existing_kind: str, new_kind: str) -> None:
        self.record_id = record_id
        self.existing_kind = existing_kind
        self.new_kind = new_kind
        super().__init__(
            f"Identifier {record_id!r} already belongs to a {existing_kind!r} "
            f"record, refusing to store a {new_kind!r} record under it"
        )


class StoreMigrationFailed(LingocoreError):
    """Persisted data could not be brought to the current schema. Fatal."""

    error_type = "store_migration_failed"

    def __init__(self, message: str, from_version: int | None = None) -> None:
        self.from_version = from_version
        super().__init__(message)


class CacheInconsistent(LingocoreError):
    """A cache entry does not match its key or fails validation."""

    error_type = "cache_inconsistent"

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Inconsistent cache entry {key!r}: {reason}")


class CacheWriteFailed(LingocoreError):
    """A cache backend could not persist an entry."""

    error_type = "cache_write_failed"

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Could not persist cache entry {key!r}: {reason}")


PROVIDER_ERROR_TYPES: dict[str, type[ProviderError]] = {
    cls.error_type: cls
    for cls in (
        ProviderUnavailable,
        ProviderTimeout,
        ProviderQuotaExceeded,
        ProviderUnauthorized,
        ProviderInvalidResponse,
    )
}
