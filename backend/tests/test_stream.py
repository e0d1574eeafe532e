"""Tests for the WebSocket adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pricefeed.config import FeedSettings
from pricefeed.factory import create_price_feed
from pricefeed.server import create_app
from pricefeed.session.events import ConnectionGone, OutboundEvent
from pricefeed.session.models import SubscriptionResult
from pricefeed.stream import QueueEventSink, _drain, create_stream_router, dispatch


def _read_until(ws, event: str, limit: int = 200) -> dict:
    """Read frames until one named `event` arrives. Returns its data."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["event"] == event:
            return message["data"]
    raise AssertionError(f"no {event} within {limit} frames")


class TestDispatch:
    """Routing of inbound frames to the manager."""

    def test_login(self, manager, registry):
        cid = manager.connect()
        assert dispatch(manager, cid, {"event": "login", "data": " a@b.com "}) == SubscriptionResult.OK
        assert registry.get(cid).identity == "a@b.com"

    def test_subscribe_and_unsubscribe(self, manager, registry):
        cid = manager.connect()
        assert dispatch(manager, cid, {"event": "subscribe", "data": "GOOG"}) == SubscriptionResult.OK
        assert registry.subscriptions(cid) == {"GOOG"}
        assert dispatch(manager, cid, {"event": "unsubscribe", "data": "GOOG"}) == SubscriptionResult.OK
        assert registry.subscriptions(cid) == frozenset()

    def test_unsupported_symbol(self, manager):
        cid = manager.connect()
        result = dispatch(manager, cid, {"event": "subscribe", "data": "AAPL"})
        assert result == SubscriptionResult.REJECTED_UNKNOWN_SYMBOL

    def test_logout_needs_no_data(self, manager):
        cid = manager.connect()
        assert dispatch(manager, cid, {"event": "logout"}) == SubscriptionResult.OK

    @pytest.mark.parametrize(
        "message",
        [
            "login",
            ["subscribe", "GOOG"],
            {"event": "shout", "data": "hi"},
            {"event": "subscribe"},
            {"event": "subscribe", "data": ["GOOG"]},
            {"event": "login", "data": "   "},
        ],
    )
    def test_malformed_frames_ignored(self, manager, registry, sink, message):
        cid = manager.connect()
        assert dispatch(manager, cid, message) is None
        assert registry.subscriptions(cid) == frozenset()
        assert registry.get(cid).identity is None
        assert sink.events == []


@pytest.mark.asyncio
class TestQueueEventSink:
    """Unit tests for the queue-backed sink."""

    async def test_send_queues_event(self):
        sink = QueueEventSink()
        queue = sink.attach("c1")
        sink.send("c1", OutboundEvent.TICKER_UPDATE, {"GOOG": 1.0})
        assert queue.get_nowait() == (OutboundEvent.TICKER_UPDATE, {"GOOG": 1.0})

    async def test_send_to_detached_raises(self):
        sink = QueueEventSink()
        sink.attach("c1")
        sink.detach("c1")
        with pytest.raises(ConnectionGone):
            sink.send("c1", OutboundEvent.TICKER_UPDATE, {})

    async def test_detach_unknown_is_noop(self):
        sink = QueueEventSink()
        sink.detach("nope")
        assert len(sink) == 0

    async def test_queues_are_per_connection(self):
        sink = QueueEventSink()
        a = sink.attach("a")
        b = sink.attach("b")
        sink.send("a", OutboundEvent.PRICE_UPDATE, {"GOOG": 1.0})
        assert a.qsize() == 1
        assert b.qsize() == 0

    async def test_failed_write_detaches_connection(self):
        """Once the socket fails, later sends are refused instead of queued."""
        sink = QueueEventSink()
        queue = sink.attach("c1")
        websocket = MagicMock()
        websocket.send_json = AsyncMock(side_effect=RuntimeError("socket closed"))
        sink.send("c1", OutboundEvent.TICKER_UPDATE, {"GOOG": 1.0})

        await _drain(websocket, queue, sink, "c1")

        websocket.send_json.assert_awaited_once_with(
            {"event": "tickerUpdate", "data": {"GOOG": 1.0}}
        )
        assert len(sink) == 0
        with pytest.raises(ConnectionGone):
            sink.send("c1", OutboundEvent.TICKER_UPDATE, {"GOOG": 1.0})


class TestCreateStreamRouter:
    """Router construction."""

    def test_uses_feed_sink(self):
        feed = create_price_feed(QueueEventSink(), FeedSettings())
        router = create_stream_router(feed)
        assert [route.path for route in router.routes] == ["/ws/prices"]

    def test_rejects_non_queue_sink(self, sink):
        feed = create_price_feed(sink, FeedSettings())
        with pytest.raises(TypeError):
            create_stream_router(feed)


class TestPriceSocket:
    """End-to-end over the WebSocket endpoint."""

    @pytest.fixture
    def client(self):
        settings = FeedSettings(symbols=("GOOG", "TSLA"), tick_interval=0.05)
        app = create_app(settings)
        with TestClient(app) as client:
            yield client

    def test_login_and_subscribe(self, client):
        with client.websocket_connect("/ws/prices") as ws:
            ws.send_json({"event": "login", "data": "a@b.com"})
            assert _read_until(ws, "supportedSymbols") == ["GOOG", "TSLA"]
            prices = _read_until(ws, "initialPrices")
            assert set(prices) == {"GOOG", "TSLA"}

            ws.send_json({"event": "subscribe", "data": "TSLA"})
            assert _read_until(ws, "subscriptionsChanged") == ["TSLA"]
            assert set(_read_until(ws, "priceUpdate")) == {"TSLA"}

    def test_anonymous_gets_ticker(self, client):
        with client.websocket_connect("/ws/prices") as ws:
            data = _read_until(ws, "tickerUpdate")
            assert set(data) == {"GOOG", "TSLA"}

    def test_bad_frames_do_not_close_socket(self, client):
        with client.websocket_connect("/ws/prices") as ws:
            ws.send_text("not json")
            ws.send_json({"event": "subscribe", "data": "AAPL"})
            ws.send_json({"event": "subscribe", "data": "GOOG"})
            assert _read_until(ws, "subscriptionsChanged") == ["GOOG"]

    def test_binary_frame_is_ignored(self, client):
        with client.websocket_connect("/ws/prices") as ws:
            ws.send_bytes(b"\x00\x01")
            ws.send_json({"event": "subscribe", "data": "GOOG"})
            assert _read_until(ws, "subscriptionsChanged") == ["GOOG"]

    def test_registry_tracks_sockets(self, client):
        feed = client.app.state.feed
        with client.websocket_connect("/ws/prices") as ws:
            _read_until(ws, "tickerUpdate")
            assert len(feed.registry) == 1
