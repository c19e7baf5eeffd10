# src/cache/fingerprint.py — v3
"""Deterministic request fingerprinting for the content-addressed cache.

Two requests with equal fingerprints are equivalent for caching purposes,
whatever context issued them. The digest covers the task kind, the
normalized content and the normalized parameters.
"""

from __future__ import annotations

import hashlib
import json
import re
import unicodedata
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from lingocore.core.models import ProcessingRequest, TaskKind

_WS_RE = re.compile(r"\s+")


class Fingerprint(BaseModel):
    """Digest identifying an equivalence class of requests."""

    model_config = ConfigDict(frozen=True)

    digest: str
    task_kind: TaskKind
    content_hash: str

    def __str__(self) -> str:
        return self.digest


def compute_fingerprint(
    task_kind: TaskKind | str,
    content: str,
    parameters: Mapping[str, Any] | None = None,
) -> Fingerprint:
    """Compute the cache fingerprint of a (task, content, parameters) triple.

    Args:
        task_kind: Task to perform.
        content: Raw input text.
        parameters: Task options (target language, difficulty, ...).

    Returns:
        Fingerprint whose ``digest`` is a SHA-256 hex string.
    """
    kind = TaskKind(task_kind)
    normalized_content = normalize_content(content)
    canonical = json.dumps(
        {
            "task": kind.value,
            "content": normalized_content,
            "params": normalize_parameters(parameters or {}),
        },
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )
    return Fingerprint(
        digest=hashlib.sha256(canonical.encode("utf-8")).hexdigest(),
        task_kind=kind,
        content_hash=hashlib.sha256(normalized_content.encode("utf-8")).hexdigest(),
    )


def fingerprint_request(request: ProcessingRequest) -> Fingerprint:
    """Fingerprint of a ProcessingRequest (``requested_at`` is ignored)."""
    return compute_fingerprint(request.task_kind, request.content, request.parameters)


def normalize_content(text: str) -> str:
    """NFC-normalize, trim and collapse whitespace.

    Case and punctuation are kept: they change translations and rewrites.
    """
    text = unicodedata.normalize("NFC", text)
    return _WS_RE.sub(" ", text).strip()


def normalize_parameters(parameters: Mapping[str, Any]) -> dict[str, Any]:
    """Lower-case keys, drop None values, trim strings, recurse into containers."""
    return {
        str(key).strip().lower(): _normalize_value(value)
        for key, value in parameters.items()
        if value is not None
    }


def _normalize_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return normalize_parameters(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_normalize_value(v) for v in value)
    return value
