"""Thread-safe registry of per-connection session state."""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable, Iterable
from threading import Lock

from .models import ConnectionState, Session


class ConnectionRegistry:
    """Owns every connection's Session, keyed by an opaque connection id.

    Writers: inbound event handlers (connect, login, subscribe, ...).
    Readers: the broadcast tick, which takes one sessions() snapshot per tick.

    Unknown ids are never an error: reads return empty values and writes
    return False/None.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()

    # --- Lifecycle ---

    def register(self) -> str:
        """Allocate an anonymous session with no subscriptions. Returns its id."""
        connection_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[connection_id] = Session(connection_id=connection_id)
        return connection_id

    def unregister(self, connection_id: str) -> bool:
        """Drop all state for connection_id. Idempotent.

        Returns True if a session was removed.
        """
        with self._lock:
            return self._sessions.pop(connection_id, None) is not None

    # --- Identity ---

    def set_identity(self, connection_id: str, identity: str) -> bool:
        return self._replace(connection_id, identity=identity)

    def clear_identity(self, connection_id: str) -> bool:
        """Log the connection out. Also resets its subscriptions."""
        return self._replace(connection_id, identity=None, subscriptions=frozenset())

    # --- Subscriptions ---

    def subscriptions(self, connection_id: str) -> frozenset[str]:
        with self._lock:
            session = self._sessions.get(connection_id)
        return session.subscriptions if session else frozenset()

    def mutate_subscriptions(
        self,
        connection_id: str,
        fn: Callable[[frozenset[str]], Iterable[str]],
    ) -> frozenset[str] | None:
        """Replace the subscription set with fn(current), atomically.

        Returns the new set, or None if the connection is unknown. fn runs
        under the registry lock and must not call back into the registry.
        """
        with self._lock:
            session = self._sessions.get(connection_id)
            if session is None:
                return None
            updated = frozenset(fn(session.subscriptions))
            self._sessions[connection_id] = dataclasses.replace(session, subscriptions=updated)
            return updated

    # --- Reads ---

    def get(self, connection_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(connection_id)

    def state(self, connection_id: str) -> ConnectionState:
        session = self.get(connection_id)
        return session.state if session else ConnectionState.TERMINATED

    def sessions(self) -> list[Session]:
        """Consistent snapshot of every live session."""
        with self._lock:
            return list(self._sessions.values())

    def connection_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._sessions

    # --- Internal ---

    def _replace(self, connection_id: str, **changes) -> bool:
        with self._lock:
            session = self._sessions.get(connection_id)
            if session is None:
                return False
            self._sessions[connection_id] = dataclasses.replace(session, **changes)
            return True
