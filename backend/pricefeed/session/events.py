"""Outbound events and the delivery port the transport implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class OutboundEvent(str, Enum):
    """Event names sent to clients. Values are the wire names."""

    SUPPORTED_SYMBOLS = "supportedSymbols"
    INITIAL_PRICES = "initialPrices"
    SUBSCRIPTIONS_CHANGED = "subscriptionsChanged"
    PRICE_UPDATE = "priceUpdate"
    TICKER_UPDATE = "tickerUpdate"


class ConnectionGone(Exception):
    """The sink no longer holds a channel for this connection."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(f"Connection {connection_id} is gone")
        self.connection_id = connection_id


class EventSink(ABC):
    """Contract for delivering events to a single connection.

    send() is called from the broadcast tick and from inbound event handlers,
    so it must not block: implementations buffer and return. Delivery is
    best-effort with no acknowledgment.
    """

    @abstractmethod
    def send(self, connection_id: str, event: OutboundEvent, payload: Any) -> None:
        """Queue one event for one connection.

        Raises ConnectionGone (or any other exception) if the connection
        cannot take it. Callers isolate the failure to that connection.
        """

