# src/core/identity.py — v1
"""Process-wide identifier generation.

Identifiers have the form ``<timestamp_ms>-<seq>``. The sequence counter is
the uniqueness guarantee; the timestamp only makes identifiers roughly
sortable. Rapid creation within one clock tick (the common case under load)
is handled by the counter alone.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

ROLLOVER_THRESHOLD = 999_999


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class IdentityGenerator:
    """Collision-free identifier source.

    Safe for concurrent callers from threads and asyncio tasks: the
    increment-and-check of the counter and the timestamp bookkeeping happen
    under a single lock, and ``next()`` never performs I/O.

    Invariants:
      - the timestamp component never decreases;
      - a counter wrap moves the timestamp component strictly past every
        timestamp issued before the wrap, so ``(timestamp, seq)`` never
        repeats even when the clock is frozen.
    """

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        rollover_threshold: int = ROLLOVER_THRESHOLD,
        discriminator: str = "",
    ) -> None:
        if rollover_threshold < 1:
            raise ValueError("rollover_threshold must be >= 1")
        self._clock = clock or _wall_clock_ms
        self._rollover_threshold = rollover_threshold
        self._discriminator = discriminator
        self._lock = threading.Lock()
        self._counter = 0
        self._last_ts = 0

    def next(self) -> str:
        """Return a new identifier. Never fails, O(1)."""
        now = self._clock()
        with self._lock:
            seq = self._counter
            self._counter += 1
            ts = max(now, self._last_ts)
            if self._counter > self._rollover_threshold:
                self._counter = 0
                # Next epoch of sequence numbers must not reuse this timestamp.
                self._last_ts = ts + 1
            else:
                self._last_ts = ts
        if self._discriminator:
            return f"{ts}-{seq}-{self._discriminator}"
        return f"{ts}-{seq}"

    @property
    def rollover_threshold(self) -> int:
        return self._rollover_threshold


_generator: IdentityGenerator | None = None
_generator_lock = threading.Lock()


def init_identity_generator(
    rollover_threshold: int = ROLLOVER_THRESHOLD, discriminator: str = "",
) -> IdentityGenerator:
    """Construct the process-wide generator (first call wins).

    Later calls return the existing instance unchanged; the counter is reset
    only by process start.
    """
    global _generator
    with _generator_lock:
        if _generator is None:
            _generator = IdentityGenerator(
                rollover_threshold=rollover_threshold,
                discriminator=discriminator,
            )
        return _generator


def get_identity_generator() -> IdentityGenerator:
    """Return the process-wide generator, creating it with defaults if needed."""
    return _generator or init_identity_generator()


def next_id() -> str:
    """Shortcut for ``get_identity_generator().next()``."""
    return get_identity_generator().next()
