# src/coordinator/health.py — v1
"""Runtime provider availability.

Descriptors are static; what changes while the process runs is whether a
provider may be tried at all:
  - an Unauthorized failure disables it for the rest of the process;
  - a QuotaExceeded failure cools it down for a fixed window.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class ProviderHealth:
    """Tracks disabled and cooling-down providers."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._disabled: dict[str, str] = {}
        self._cooldown_until: dict[str, float] = {}
        self._lock = threading.Lock()

    def disable(self, name: str, reason: str = "") -> None:
        with self._lock:
            self._disabled[name] = reason
        logger.warning("Provider %s disabled for this session: %s", name, reason or "unauthorized")

    def cool_down(self, name: str, seconds: float) -> None:
        with self._lock:
            self._cooldown_until[name] = self._clock() + seconds
        logger.warning("Provider %s cooling down for %.0fs", name, seconds)

    def is_available(self, name: str) -> bool:
        with self._lock:
            if name in self._disabled:
                return False
            until = self._cooldown_until.get(name)
            if until is None:
                return True
            if self._clock() >= until:
                del self._cooldown_until[name]
                return True
            return False

    def reset(self, name: str | None = None) -> None:
        """Re-enable one provider (or all of them), e.g. after a key change."""
        with self._lock:
            if name is None:
                self._disabled.clear()
                self._cooldown_until.clear()
            else:
                self._disabled.pop(name, None)
                self._cooldown_until.pop(name, None)

    def snapshot(self) -> dict[str, str]:
        """Provider name → 'disabled' | 'cooling_down' for every unhealthy provider."""
        now = self._clock()
        with self._lock:
            state = {name: "disabled" for name in self._disabled}
            for name, until in self._cooldown_until.items():
                if until > now and name not in state:
                    state[name] = "cooling_down"
            return state
