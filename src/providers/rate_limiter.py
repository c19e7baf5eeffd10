# src/providers/rate_limiter.py — v1
"""Sliding-window request limiter for remote providers."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Callable


class RateLimiter:
    """Allow at most ``max_requests`` acquisitions per ``window_s`` seconds.

    Callers over the limit sleep until the oldest request leaves the window.
    The lock covers only the bookkeeping, never the sleep.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_s = window_s
        self._clock = clock
        self._requests: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        while True:
            async with self._lock:
                now = self._clock()
                while self._requests and now - self._requests[0] >= self._window_s:
                    self._requests.popleft()
                if len(self._requests) < self._max_requests:
                    self._requests.append(now)
                    return
                wait = self._window_s - (now - self._requests[0])
            await asyncio.sleep(max(wait, 0.0))

    def reset(self) -> None:
        self._requests.clear()

    @property
    def in_window(self) -> int:
        return len(self._requests)
