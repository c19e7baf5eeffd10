# src/messaging/channel.py — v1
"""Transport abstraction between the caller's context and the core."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from lingocore.messaging.models import RequestEnvelope, ResponseEnvelope


class BaseChannel(ABC):
    """Bidirectional message channel."""

    @abstractmethod
    async def receive(self) -> RequestEnvelope | None:
        """Next incoming request, or None once the channel is closed."""

    @abstractmethod
    async def send(self, response: ResponseEnvelope) -> None:
        """Deliver a response to the requesting context."""


class InMemoryChannel(BaseChannel):
    """Queue-backed channel for tests and single-process embedding.

    Duplicate submissions are delivered as is; de-duplication is the
    dispatcher's job.
    """

    def __init__(self) -> None:
        self._inbox: asyncio.Queue[RequestEnvelope | None] = asyncio.Queue()
        self.sent: list[ResponseEnvelope] = []
        self._outbox: asyncio.Queue[ResponseEnvelope] = asyncio.Queue()

    async def submit(self, envelope: RequestEnvelope) -> None:
        await self._inbox.put(envelope)

    async def close(self) -> None:
        await self._inbox.put(None)

    async def receive(self) -> RequestEnvelope | None:
        return await self._inbox.get()

    async def send(self, response: ResponseEnvelope) -> None:
        self.sent.append(response)
        await self._outbox.put(response)

    async def next_response(self) -> ResponseEnvelope:
        return await self._outbox.get()
