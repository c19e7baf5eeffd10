# src/messaging/dispatcher.py — v1
"""Replay-safe dispatch of request envelopes to the coordinator.

Exactly one response is sent per correlation id:
  - a duplicate that arrives while the original is being handled waits for
    it and sends nothing;
  - a duplicate that arrives after the response was sent is dropped.

Answered ids are remembered in a bounded window (oldest forgotten first).
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict

from pydantic import ValidationError

from lingocore.coordinator.coordinator import FallbackCoordinator
from lingocore.core.errors import InvalidRequest, LingocoreError, ProviderTimeout
from lingocore.logging.context import clear_context, set_request_context
from lingocore.messaging.channel import BaseChannel
from lingocore.messaging.models import ErrorDetail, RequestEnvelope, ResponseEnvelope

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """Consumes a channel and answers every request exactly once."""

    def __init__(
        self,
        coordinator: FallbackCoordinator,
        channel: BaseChannel,
        replay_window: int = 1024,
    ) -> None:
        self._coordinator = coordinator
        self._channel = channel
        self._replay_window = replay_window
        self._inflight: dict[str, asyncio.Task[ResponseEnvelope]] = {}
        self._answered: OrderedDict[str, None] = OrderedDict()
        self.duplicates_dropped = 0

    async def handle(self, envelope: RequestEnvelope) -> ResponseEnvelope | None:
        """Handle one delivery.

        Returns:
            The response sent for this correlation id, or None if the
            delivery was a duplicate.
        """
        cid = envelope.correlation_id
        if cid in self._answered:
            self.duplicates_dropped += 1
            logger.debug("Dropping replayed message %s", cid)
            return None

        task = self._inflight.get(cid)
        if task is not None:
            self.duplicates_dropped += 1
            logger.debug("Duplicate of in-flight message %s, joining", cid)
            await asyncio.shield(task)
            return None

        task = asyncio.create_task(self._respond(envelope), name=f"dispatch-{cid}")
        self._inflight[cid] = task
        return await asyncio.shield(task)

    async def serve(self) -> None:
        """Handle messages concurrently until the channel is closed."""
        pending: set[asyncio.Task[ResponseEnvelope | None]] = set()
        try:
            while True:
                envelope = await self._channel.receive()
                if envelope is None:
                    break
                task = asyncio.create_task(self.handle(envelope))
                pending.add(task)
                task.add_done_callback(pending.discard)
                task.add_done_callback(_log_failure)
        finally:
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Channel closed, dispatcher stopped")

    # --- Internal helpers ---

    async def _respond(self, envelope: RequestEnvelope) -> ResponseEnvelope:
        cid = envelope.correlation_id
        try:
            response = await self._process(envelope)
            await self._channel.send(response)
            self._remember(cid)
            return response
        finally:
            self._inflight.pop(cid, None)

    async def _process(self, envelope: RequestEnvelope) -> ResponseEnvelope:
        cid = envelope.correlation_id
        set_request_context(envelope.task_kind.value, correlation_id=cid)
        try:
            request = envelope.to_request()
            work = self._coordinator.process(request)
            if envelope.timeout_ms:
                result = await asyncio.wait_for(work, envelope.timeout_ms / 1000)
            else:
                result = await work
            return ResponseEnvelope.success(cid, result)
        except asyncio.TimeoutError:
            error = ProviderTimeout(f"Request exceeded {envelope.timeout_ms} ms")
            return ResponseEnvelope.failure(cid, ErrorDetail.from_error(error))
        except ValidationError as e:
            error = InvalidRequest(f"Malformed payload: {e.error_count()} error(s)")
            return ResponseEnvelope.failure(cid, ErrorDetail.from_error(error))
        except LingocoreError as e:
            return ResponseEnvelope.failure(cid, ErrorDetail.from_error(e))
        finally:
            clear_context()

    def _remember(self, cid: str) -> None:
        self._answered[cid] = None
        while len(self._answered) > self._replay_window:
            self._answered.popitem(last=False)


def _log_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Message handling failed without a response: %s", error, exc_info=error)
