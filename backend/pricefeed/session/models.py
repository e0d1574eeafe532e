"""Data models for connection sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of a single connection."""

    ANONYMOUS = "anonymous"
    IDENTIFIED = "identified"
    TERMINATED = "terminated"  # Absorbing; also reported for never-seen ids


class SubscriptionResult(str, Enum):
    """Outcome of an inbound session event.

    The wire protocol stays silent on rejections; this is what tests and
    callers can assert on.
    """

    OK = "ok"
    UNCHANGED = "unchanged"
    REJECTED_UNKNOWN_SYMBOL = "rejected_unknown_symbol"
    NOT_SUBSCRIBED = "not_subscribed"
    UNKNOWN_CONNECTION = "unknown_connection"


@dataclass(frozen=True, slots=True)
class Session:
    """Immutable snapshot of one connection's state.

    The registry swaps in a new Session on every change, so a reference
    held by a broadcast tick never changes underneath it.
    """

    connection_id: str
    identity: str | None = None
    subscriptions: frozenset[str] = field(default_factory=frozenset)

    @property
    def state(self) -> ConnectionState:
        if self.identity is None:
            return ConnectionState.ANONYMOUS
        return ConnectionState.IDENTIFIED

    @property
    def label(self) -> str:
        """Identity if logged in, else the connection id. For log lines."""
        return self.identity or self.connection_id


@dataclass(frozen=True, slots=True)
class TickReport:
    """What one broadcast tick delivered."""

    tick: int
    ticker_sent: int
    price_sent: int
    dropped: int
