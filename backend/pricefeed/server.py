"""FastAPI application serving the price feed over WebSockets."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import FeedSettings
from .factory import create_price_feed
from .stream import QueueEventSink, create_stream_router

logger = logging.getLogger(__name__)


def create_app(settings: FeedSettings | None = None) -> FastAPI:
    """Build the app. The broadcast scheduler runs for the app's lifespan."""
    sink = QueueEventSink()
    feed = create_price_feed(sink, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await feed.scheduler.start()
        try:
            yield
        finally:
            await feed.scheduler.stop()

    app = FastAPI(title="pricefeed", lifespan=lifespan)
    app.state.feed = feed
    app.include_router(create_stream_router(feed))
    return app
