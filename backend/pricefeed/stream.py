"""WebSocket endpoint connecting clients to the price feed."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket

from .factory import PriceFeed
from .session.events import ConnectionGone, EventSink, OutboundEvent
from .session.manager import SubscriptionManager
from .session.models import SubscriptionResult

logger = logging.getLogger(__name__)


class QueueEventSink(EventSink):
    """EventSink that buffers outbound events in one asyncio.Queue per connection.

    The broadcast tick and inbound handlers only ever put_nowait(); a writer
    task per socket drains the queue. Must be used from the event loop thread.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue] = {}

    def attach(self, connection_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[connection_id] = queue
        return queue

    def detach(self, connection_id: str) -> None:
        self._queues.pop(connection_id, None)

    def send(self, connection_id: str, event: OutboundEvent, payload: Any) -> None:
        queue = self._queues.get(connection_id)
        if queue is None:
            raise ConnectionGone(connection_id)
        queue.put_nowait((event, payload))

    def __len__(self) -> int:
        return len(self._queues)


def create_stream_router(feed: PriceFeed) -> APIRouter:
    """Create the WebSocket router for a feed built around a QueueEventSink.

    Frames in both directions are JSON objects: {"event": ..., "data": ...}.
    """
    sink = feed.sink
    if not isinstance(sink, QueueEventSink):
        raise TypeError(f"feed.sink must be a QueueEventSink, got {type(sink).__name__}")
    router = APIRouter(prefix="/ws", tags=["streaming"])

    @router.websocket("/prices")
    async def price_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        connection_id = feed.manager.connect()
        queue = sink.attach(connection_id)
        writer = asyncio.create_task(
            _drain(websocket, queue, sink, connection_id), name=f"ws-writer-{connection_id}"
        )

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                raw = frame.get("text")
                if raw is None:
                    logger.warning("Ignoring binary frame from %s", connection_id)
                    continue
                try:
                    message = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring non-JSON frame from %s", connection_id)
                    continue
                dispatch(feed.manager, connection_id, message)
        finally:
            sink.detach(connection_id)
            feed.manager.disconnect(connection_id)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    return router


def dispatch(
    manager: SubscriptionManager,
    connection_id: str,
    message: Any,
) -> SubscriptionResult | None:
    """Route one inbound frame to the manager.

    Returns the manager's result, or None if the frame was malformed.
    """
    if not isinstance(message, dict):
        logger.warning("Ignoring malformed frame from %s: %r", connection_id, message)
        return None

    event = message.get("event")
    data = message.get("data")

    if event == "logout":
        return manager.logout(connection_id)

    if event not in ("login", "subscribe", "unsubscribe"):
        logger.warning("Ignoring unknown event %r from %s", event, connection_id)
        return None
    if not isinstance(data, str) or not data.strip():
        logger.warning("Ignoring %s from %s: expected a string, got %r", event, connection_id, data)
        return None

    if event == "login":
        return manager.login(connection_id, data.strip())
    if event == "subscribe":
        return manager.subscribe(connection_id, data)
    return manager.unsubscribe(connection_id, data)


async def _drain(
    websocket: WebSocket,
    queue: asyncio.Queue,
    sink: QueueEventSink,
    connection_id: str,
) -> None:
    """Forward queued events to the socket until cancelled or the socket fails.

    On a failed send the connection is detached from the sink, so later
    ticks drop its events instead of queueing them.
    """
    while True:
        event, payload = await queue.get()
        try:
            await websocket.send_json({"event": event.value, "data": payload})
        except Exception as e:
            logger.debug("Writer for %s stopped: %s", connection_id, e)
            sink.detach(connection_id)
            return
