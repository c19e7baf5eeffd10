# src/logging/logger.py — v3
"""Logging setup for the ``lingocore`` logger tree.

Every record is enriched with the request context (correlation id, task
kind, provider being tried) held in contextvars, then rendered either as
one JSON object per line or as a single human-readable line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from lingocore.logging.context import get_context
from lingocore.logging.handlers import create_rotating_handler

if TYPE_CHECKING:
    from lingocore.config.settings import Settings

ROOT_LOGGER = "lingocore"


class ContextFormatter(logging.Formatter):
    """Collects the fields both renderings share."""

    def fields(self, record: logging.LogRecord) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            fields["context"] = context
        data = getattr(record, "data", None)
        if data:
            fields["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            fields["exception"] = self.formatException(record.exc_info)
        return fields


class JsonFormatter(ContextFormatter):
    """One JSON object per line; ``extra={"data": {...}}`` lands under "data"."""

    def format(self, record: logging.LogRecord) -> str:
        fields = self.fields(record)
        fields["timestamp"] = fields["timestamp"].isoformat()
        return json.dumps(fields, default=str)


class TextFormatter(ContextFormatter):
    """Single-line output for terminals, traceback appended below."""

    _MARKERS = (("correlation_id", "<{}>"), ("task_kind", "[{}]"), ("provider", "({})"))

    def format(self, record: logging.LogRecord) -> str:
        fields = self.fields(record)
        context = fields.get("context", {})
        head = [
            fields["timestamp"].strftime("%Y-%m-%d %H:%M:%S"),
            f"[{fields['level']:8s}]",
            fields["logger"],
        ]
        head.extend(template.format(context[key]) for key, template in self._MARKERS if key in context)
        line = f"{' '.join(head)}: {fields['message']}"
        if "exception" in fields:
            line = f"{line}\n{fields['exception']}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Child of the ``lingocore`` logger, e.g. ``get_logger("cache")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> None:
    """(Re)configure the ``lingocore`` logger.

    Console output goes to stderr; stdout belongs to command output. With
    ``log_file`` set, a size-rotated file handler is added using the same
    formatter. Calling again replaces and closes the previous handlers.
    """
    formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))

    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    level_no = logging.getLevelName(level.upper())
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)


def setup_logging_from_settings(settings: Settings, verbose: bool = False) -> None:
    """Apply the LOG_* settings; ``verbose`` forces DEBUG."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
