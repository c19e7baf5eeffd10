# src/messaging/models.py — v1
"""Request/response envelopes exchanged across execution contexts.

Field names are snake_case in Python and camelCase on the wire
(``correlationId``, ``taskKind``, ``timeoutMs``, ``errorDetail``...).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lingocore.core.errors import AllProvidersFailed, LingocoreError, UserAction
from lingocore.core.models import ProcessingRequest, ProcessingResult, ProviderFailure, TaskKind


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RequestEnvelope(_WireModel):
    """``{correlationId, taskKind, payload, timeoutMs}``.

    ``payload`` carries ``content`` and an optional ``parameters`` object.
    """

    correlation_id: str
    task_kind: TaskKind
    payload: dict[str, Any] = Field(default_factory=dict)
    timeout_ms: int | None = None

    def to_request(self) -> ProcessingRequest:
        return ProcessingRequest(
            task_kind=self.task_kind,
            content=self.payload.get("content", ""),
            parameters=self.payload.get("parameters") or {},
        )


class ErrorDetail(_WireModel):
    """Typed error as rendered at the UI boundary."""

    type: str
    message: str
    retryable: bool = False
    user_action: UserAction = "none"
    provider_errors: list[ProviderFailure] = Field(default_factory=list)

    @classmethod
    def from_error(cls, error: LingocoreError) -> ErrorDetail:
        failures = error.failures if isinstance(error, AllProvidersFailed) else []
        return cls(
            type=error.error_type,
            message=str(error),
            retryable=error.retryable,
            user_action=error.user_action,
            provider_errors=failures,
        )


class ResponseEnvelope(_WireModel):
    """``{correlationId, status, result | errorDetail}``."""

    correlation_id: str
    status: Literal["success", "error"]
    result: ProcessingResult | None = None
    error_detail: ErrorDetail | None = None

    @classmethod
    def success(cls, correlation_id: str, result: ProcessingResult) -> ResponseEnvelope:
        return cls(correlation_id=correlation_id, status="success", result=result)

    @classmethod
    def failure(cls, correlation_id: str, detail: ErrorDetail) -> ResponseEnvelope:
        return cls(correlation_id=correlation_id, status="error", error_detail=detail)
