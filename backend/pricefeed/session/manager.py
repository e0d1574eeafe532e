"""Applies inbound session events to the registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..market.store import PriceStore
from .events import EventSink, OutboundEvent
from .models import SubscriptionResult
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Validates connect/login/logout/subscribe/unsubscribe/disconnect.

    The PriceStore decides which symbols are valid; the ConnectionRegistry
    stores the result. Replies go only to the connection that asked.

    Every method is total: unknown connection ids come back as
    UNKNOWN_CONNECTION and unsupported symbols as REJECTED_UNKNOWN_SYMBOL,
    neither of which sends anything to the client.
    """

    def __init__(
        self,
        store: PriceStore,
        registry: ConnectionRegistry,
        sink: EventSink,
    ) -> None:
        self._store = store
        self._registry = registry
        self._sink = sink

    def connect(self) -> str:
        connection_id = self._registry.register()
        logger.info("Client connected: %s", connection_id)
        return connection_id

    def disconnect(self, connection_id: str) -> SubscriptionResult:
        if not self._registry.unregister(connection_id):
            return SubscriptionResult.UNKNOWN_CONNECTION
        logger.info("Client disconnected: %s", connection_id)
        return SubscriptionResult.OK

    def login(self, connection_id: str, identity: str) -> SubscriptionResult:
        """Tag the connection with an identity and send it the symbol list and prices.

        Subscriptions are left as they are.
        """
        if not self._registry.set_identity(connection_id, identity):
            return SubscriptionResult.UNKNOWN_CONNECTION
        logger.info("User logged in: %s (%s)", identity, connection_id)

        self._emit(connection_id, OutboundEvent.SUPPORTED_SYMBOLS, list(self._store.symbols))
        self._emit(connection_id, OutboundEvent.INITIAL_PRICES, self._store.snapshot())
        return SubscriptionResult.OK

    def logout(self, connection_id: str) -> SubscriptionResult:
        """Clear identity and subscriptions. Nothing is sent back."""
        session = self._registry.get(connection_id)
        if session is None or not self._registry.clear_identity(connection_id):
            return SubscriptionResult.UNKNOWN_CONNECTION
        logger.info("User logged out: %s", session.label)
        return SubscriptionResult.OK

    def subscribe(self, connection_id: str, symbol: str) -> SubscriptionResult:
        if symbol not in self._store:
            logger.debug("Ignoring subscribe to unsupported symbol %r from %s", symbol, connection_id)
            return SubscriptionResult.REJECTED_UNKNOWN_SYMBOL

        before = self._registry.subscriptions(connection_id)
        updated = self._registry.mutate_subscriptions(connection_id, lambda subs: subs | {symbol})
        if updated is None:
            return SubscriptionResult.UNKNOWN_CONNECTION
        logger.info("%s subscribed to %s", self._label(connection_id), symbol)

        self._emit(connection_id, OutboundEvent.SUBSCRIPTIONS_CHANGED, self._ordered(updated))
        return SubscriptionResult.UNCHANGED if symbol in before else SubscriptionResult.OK

    def unsubscribe(self, connection_id: str, symbol: str) -> SubscriptionResult:
        if symbol not in self._store:
            logger.debug("Ignoring unsubscribe from unsupported symbol %r from %s", symbol, connection_id)
            return SubscriptionResult.REJECTED_UNKNOWN_SYMBOL
        if connection_id not in self._registry:
            return SubscriptionResult.UNKNOWN_CONNECTION
        if symbol not in self._registry.subscriptions(connection_id):
            return SubscriptionResult.NOT_SUBSCRIBED

        updated = self._registry.mutate_subscriptions(connection_id, lambda subs: subs - {symbol})
        if updated is None:
            return SubscriptionResult.UNKNOWN_CONNECTION
        logger.info("%s unsubscribed from %s", self._label(connection_id), symbol)

        self._emit(connection_id, OutboundEvent.SUBSCRIPTIONS_CHANGED, self._ordered(updated))
        return SubscriptionResult.OK

    # --- Internals ---

    def _ordered(self, symbols: Iterable[str]) -> list[str]:
        """Symbols in the store's startup order."""
        wanted = set(symbols)
        return [s for s in self._store.symbols if s in wanted]

    def _label(self, connection_id: str) -> str:
        session = self._registry.get(connection_id)
        return session.label if session else connection_id

    def _emit(self, connection_id: str, event: OutboundEvent, payload: Any) -> None:
        try:
            self._sink.send(connection_id, event, payload)
        except Exception as e:
            # The state change stands; the transport is already tearing down.
            logger.debug("Dropped %s for %s: %s", event.value, connection_id, e)
