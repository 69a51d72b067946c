"""
Transport contract consumed by the subscription client.

The transport is an external collaborator: it owns the physical connection,
its handshake and its reconnect timing. The client only needs to listen for
named events, emit named events, and read the current readiness.

Example:
    >>> class SocketIOTransport:
    ...     def __init__(self, sio):
    ...         self._sio = sio
    ...
    ...     def on(self, event, callback):
    ...         self._sio.on(event, callback)
    ...
    ...     def emit(self, event, message):
    ...         self._sio.emit(event, message)
    ...
    ...     @property
    ...     def ready_state(self) -> str:
    ...         return "open" if self._sio.connected else "closed"
"""

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

# Lifecycle events the client listens for
EVENT_CONNECT = "connect"
EVENT_RECONNECT_ATTEMPT = "reconnect_attempt"
EVENT_RECONNECT = "reconnect"


class ReadyState(str, Enum):
    """
    Readiness of the underlying transport.

    Only OPENING and OPEN are meaningful to the send policy; every other
    value is treated as "not ready".
    """

    OPENING = "opening"
    """Handshake in progress; outbound messages are buffered."""

    OPEN = "open"
    """Connected; outbound messages are emitted immediately."""

    CLOSING = "closing"
    CLOSED = "closed"


@runtime_checkable
class Transport(Protocol):
    """
    Protocol for the duplex transport a SubscriptionClient is bound to.

    Implementations must invoke registered callbacks one at a time and
    strictly after the underlying event occurred.
    """

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a listener for a named event."""
        ...

    def emit(self, event: str, message: dict[str, Any]) -> None:
        """Send a message under a named event."""
        ...

    @property
    def ready_state(self) -> str:
        """Current readiness, e.g. 'opening', 'open' or 'closed'."""
        ...


__all__ = [
    "EVENT_CONNECT",
    "EVENT_RECONNECT",
    "EVENT_RECONNECT_ATTEMPT",
    "ReadyState",
    "Transport",
]
