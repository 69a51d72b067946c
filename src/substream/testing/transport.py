"""
In-process transport for tests and examples.

InMemoryTransport implements the Transport protocol without any network.
Tests drive its lifecycle explicitly and inspect what the client emitted.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from substream.protocols import (
    EVENT_CONNECT,
    EVENT_RECONNECT,
    EVENT_RECONNECT_ATTEMPT,
    ReadyState,
)

logger = logging.getLogger(__name__)


class InMemoryTransport:
    """
    Transport double recording emitted messages.

    Lifecycle helpers fire the same events a real auto-reconnecting
    transport would, in the same order:

    - connect(): ready_state -> open, fires ``connect``
    - disconnect(): ready_state -> closed, fires ``reconnect_attempt``
    - reconnect(): ready_state -> open, fires ``reconnect``

    Example:
        >>> transport = InMemoryTransport(ready_state="opening")
        >>> client = SubscriptionClient(transport)
        >>> client.subscribe({"query": "subscription { ping }"}, handler)
        0
        >>> transport.sent_messages()
        []
        >>> transport.connect()
        >>> transport.sent_messages()[0]["type"]
        'start'
    """

    def __init__(self, ready_state: str | ReadyState = ReadyState.OPEN) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._sent: list[tuple[str, dict[str, Any]]] = []
        self._ready_state = ReadyState(ready_state)
        self._lock = threading.RLock()

    # Transport protocol

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        with self._lock:
            self._listeners[event].append(callback)

    def emit(self, event: str, message: dict[str, Any]) -> None:
        with self._lock:
            self._sent.append((event, dict(message)))
        logger.debug(f"Emitted on '{event}'", extra={"event": event, "message": message})

    @property
    def ready_state(self) -> str:
        return self._ready_state.value

    # Test controls

    def set_ready_state(self, ready_state: str | ReadyState) -> None:
        self._ready_state = ReadyState(ready_state)

    def fire(self, event: str, *args: Any) -> None:
        """Invoke every listener registered for an event, in order."""
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        for callback in listeners:
            callback(*args)

    def connect(self) -> None:
        self._ready_state = ReadyState.OPEN
        self.fire(EVENT_CONNECT)

    def disconnect(self, attempts: int = 1) -> None:
        """Drop the connection and report reconnect attempts."""
        self._ready_state = ReadyState.CLOSED
        for attempt in range(1, attempts + 1):
            self.fire(EVENT_RECONNECT_ATTEMPT, attempt)

    def reconnect(self) -> None:
        self._ready_state = ReadyState.OPEN
        self.fire(EVENT_RECONNECT)

    def deliver(self, message: Any, event: str | None = None) -> None:
        """
        Deliver an inbound message to the client.

        Args:
            message: The ``{id, type, payload}`` envelope
            event: Event name; defaults to every non-lifecycle event the
                client subscribed to
        """
        if event is not None:
            self.fire(event, message)
            return
        lifecycle = {EVENT_CONNECT, EVENT_RECONNECT_ATTEMPT, EVENT_RECONNECT}
        with self._lock:
            events = [name for name in self._listeners if name not in lifecycle]
        for name in events:
            self.fire(name, message)

    def sent_messages(self, event: str | None = None) -> list[dict[str, Any]]:
        """Messages emitted so far, oldest first, optionally filtered by event."""
        with self._lock:
            return [message for name, message in self._sent if event is None or name == event]

    def clear_sent(self) -> None:
        with self._lock:
            self._sent.clear()

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))


__all__ = ["InMemoryTransport"]
