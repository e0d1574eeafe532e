"""Real-time price feed with per-connection subscriptions.

Public API:
    PriceStore          - Thread-safe store of current prices
    ConnectionRegistry  - Per-connection session state
    SubscriptionManager - Login/logout/subscribe/unsubscribe handling
    BroadcastScheduler  - Periodic ticker + filtered price broadcast
    FeedSettings        - Environment-driven configuration
    create_price_feed   - Factory wiring the core together
"""

from .config import FeedSettings
from .factory import PriceFeed, create_price_feed
from .market import PriceStore
from .session import (
    BroadcastScheduler,
    ConnectionRegistry,
    EventSink,
    OutboundEvent,
    SubscriptionManager,
    SubscriptionResult,
)

__all__ = [
    "PriceStore",
    "ConnectionRegistry",
    "SubscriptionManager",
    "BroadcastScheduler",
    "EventSink",
    "OutboundEvent",
    "SubscriptionResult",
    "FeedSettings",
    "PriceFeed",
    "create_price_feed",
]
