"""Periodic differential broadcast of prices to every connection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..market.seed_prices import DEFAULT_WALK_BOUND
from ..market.store import PriceStore
from .events import EventSink, OutboundEvent
from .models import TickReport
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class BroadcastScheduler:
    """The one global timer driving price moves and fan-out.

    Each tick:
        1. Random-walk every price in the PriceStore.
        2. Send the full snapshot (tickerUpdate) to every registered connection.
        3. Send each connection with subscriptions a priceUpdate holding only
           its subscribed symbols.

    A failed send to one connection is logged and skipped; the rest of the
    tick carries on. tick() is synchronous so tests can drive it directly;
    start() runs it in a background asyncio task every `interval` seconds.
    """

    def __init__(
        self,
        store: PriceStore,
        registry: ConnectionRegistry,
        sink: EventSink,
        interval: float = 1.0,
        bound: float = DEFAULT_WALK_BOUND,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if not 0 <= bound < 1:
            raise ValueError(f"bound must be in [0, 1), got {bound}")
        self._store = store
        self._registry = registry
        self._sink = sink
        self._interval = interval
        self._bound = bound
        self._sleep = sleep
        self._ticks: int = 0
        self._task: asyncio.Task | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of completed ticks."""
        return self._ticks

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- Public API ---

    def tick(self) -> TickReport:
        """Run one broadcast cycle now."""
        prices = self._store.apply_random_walk(self._bound)
        sessions = self._registry.sessions()

        ticker_sent = 0
        dropped = 0
        for session in sessions:
            if self._deliver(session.connection_id, OutboundEvent.TICKER_UPDATE, prices):
                ticker_sent += 1
            else:
                dropped += 1

        price_sent = 0
        for session in sessions:
            if not session.subscriptions:
                continue
            payload = {s: prices[s] for s in self._store.symbols if s in session.subscriptions}
            if self._deliver(session.connection_id, OutboundEvent.PRICE_UPDATE, payload):
                price_sent += 1
            else:
                dropped += 1

        self._ticks += 1
        report = TickReport(
            tick=self._ticks,
            ticker_sent=ticker_sent,
            price_sent=price_sent,
            dropped=dropped,
        )
        logger.debug(
            "Tick %d: %d ticker, %d filtered, %d dropped",
            report.tick,
            ticker_sent,
            price_sent,
            dropped,
        )
        return report

    async def start(self) -> None:
        """Start ticking in the background. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="broadcast-loop")
        logger.info(
            "Broadcast scheduler started: %d symbols, %.2fs interval",
            len(self._store),
            self._interval,
        )

    async def stop(self) -> None:
        """Stop ticking. Safe to call multiple times."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Broadcast scheduler stopped after %d ticks", self._ticks)

    # --- Internals ---

    async def _run_loop(self) -> None:
        """Core loop: tick, sleep."""
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Broadcast tick failed")
            await self._sleep(self._interval)

    def _deliver(self, connection_id: str, event: OutboundEvent, payload: Any) -> bool:
        try:
            self._sink.send(connection_id, event, payload)
        except Exception as e:
            # Usually a client that disconnected after the sessions() snapshot.
            logger.debug("Dropped %s for %s: %s", event.value, connection_id, e)
            return False
        return True
