"""Factory wiring the price store, registry, manager and scheduler together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .config import FeedSettings
from .market.store import PriceStore
from .session.events import EventSink
from .session.manager import SubscriptionManager
from .session.registry import ConnectionRegistry
from .session.scheduler import BroadcastScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PriceFeed:
    """The assembled core. One per process."""

    store: PriceStore
    registry: ConnectionRegistry
    manager: SubscriptionManager
    scheduler: BroadcastScheduler
    sink: EventSink


def create_price_feed(
    sink: EventSink,
    settings: FeedSettings | None = None,
    rng: np.random.Generator | None = None,
) -> PriceFeed:
    """Build an unstarted PriceFeed delivering through `sink`.

    Settings default to FeedSettings.from_env(). Caller must await
    feed.scheduler.start() to begin ticking.
    """
    settings = settings or FeedSettings.from_env()

    store = PriceStore.from_symbols(settings.symbols, rng=rng)
    registry = ConnectionRegistry()
    manager = SubscriptionManager(store, registry, sink)
    scheduler = BroadcastScheduler(
        store,
        registry,
        sink,
        interval=settings.tick_interval,
        bound=settings.walk_bound,
    )
    logger.info(
        "Price feed: %s, tick every %.2fs, bound %.4f",
        ",".join(store.symbols),
        settings.tick_interval,
        settings.walk_bound,
    )
    return PriceFeed(
        store=store,
        registry=registry,
        manager=manager,
        scheduler=scheduler,
        sink=sink,
    )
