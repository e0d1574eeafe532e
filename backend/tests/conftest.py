"""Pytest configuration and fixtures."""

from typing import Any

import numpy as np
import pytest

from pricefeed.market.store import PriceStore
from pricefeed.session.events import ConnectionGone, EventSink, OutboundEvent
from pricefeed.session.manager import SubscriptionManager
from pricefeed.session.registry import ConnectionRegistry
from pricefeed.session.scheduler import BroadcastScheduler


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


class RecordingSink(EventSink):
    """EventSink that keeps every event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, OutboundEvent, Any]] = []
        self.closed: set[str] = set()

    def send(self, connection_id: str, event: OutboundEvent, payload: Any) -> None:
        if connection_id in self.closed:
            raise ConnectionGone(connection_id)
        self.events.append((connection_id, event, payload))

    def close(self, connection_id: str) -> None:
        """Make later sends to this connection fail."""
        self.closed.add(connection_id)

    def for_connection(self, connection_id: str) -> list[tuple[OutboundEvent, Any]]:
        return [(e, p) for c, e, p in self.events if c == connection_id]

    def payloads(self, connection_id: str, event: OutboundEvent) -> list[Any]:
        return [p for c, e, p in self.events if c == connection_id and e == event]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store() -> PriceStore:
    return PriceStore.from_symbols(["GOOG", "TSLA", "AMZN"], rng=np.random.default_rng(42))


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def manager(store, registry, sink) -> SubscriptionManager:
    return SubscriptionManager(store, registry, sink)


@pytest.fixture
def scheduler(store, registry, sink) -> BroadcastScheduler:
    return BroadcastScheduler(store, registry, sink, interval=0.05)
