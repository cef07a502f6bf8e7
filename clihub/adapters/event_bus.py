"""Async event bus bridging tool bridge callbacks to TUI consumers.

The bridge fires push events via callback while a chat turn runs.
The EventBus queues them for the TUI's event consumer loop.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from clihub.adapters.events import BridgeEvent, dict_to_event

logger = logging.getLogger(__name__)


class EventBus:
    """Async queue bridging bridge callbacks to TUI event consumers."""

    def __init__(self, maxsize: int = 5000) -> None:
        self._queue: asyncio.Queue[BridgeEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def _callback(self, data: dict[str, Any]) -> None:
        """Callback to pass as ToolBridge(event_callback=...)."""
        await self.emit(dict_to_event(data))

    def make_callback(self):
        """Return the async callback for ToolBridge.event_callback."""
        return self._callback

    async def emit(self, event: BridgeEvent) -> None:
        """Queue an event, applying backpressure instead of dropping."""
        if self._closed:
            return
        try:
            await asyncio.wait_for(self._queue.put(event), timeout=30.0)
        except asyncio.TimeoutError:
            logger.error(
                "EventBus queue blocked for 30s, dropping: %s (queue size: %d)",
                event.event_type,
                self._queue.qsize(),
            )

    async def consume(self) -> AsyncIterator[BridgeEvent]:
        """Yield events as they arrive. Stops on close()."""
        while not self._closed:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
            except asyncio.TimeoutError:
                continue
            yield event

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Stop the consumer loop permanently."""
        self._closed = True
