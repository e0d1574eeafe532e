"""Connection sessions, subscriptions and the broadcast loop.

Public API:
    ConnectionRegistry  - Thread-safe map of connection id -> Session
    SubscriptionManager - Applies inbound login/subscribe/... events
    BroadcastScheduler  - Periodic full + filtered price fan-out
    EventSink           - Outbound delivery port implemented by the transport
    OutboundEvent       - Names of events sent to clients
"""

from .events import ConnectionGone, EventSink, OutboundEvent
from .manager import SubscriptionManager
from .models import ConnectionState, Session, SubscriptionResult, TickReport
from .registry import ConnectionRegistry
from .scheduler import BroadcastScheduler

__all__ = [
    "BroadcastScheduler",
    "ConnectionGone",
    "ConnectionRegistry",
    "ConnectionState",
    "EventSink",
    "OutboundEvent",
    "Session",
    "SubscriptionManager",
    "SubscriptionResult",
    "TickReport",
]
