"""Library exceptions for the substream package."""


class SubstreamError(Exception):
    """Base exception for substream library."""

    pass


class InvalidArgumentError(SubstreamError, ValueError):
    """Raised when subscribe is called with malformed options or handler."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid subscribe argument '{field}': {message}")


class NotConnectedError(SubstreamError):
    """Raised when a message must be sent while the transport is down."""

    def __init__(self, ready_state: str) -> None:
        self.ready_state = ready_state
        super().__init__(
            f"Client is not connected to a transport (ready_state={ready_state!r}) "
            "and no reconnect is in progress."
        )


class ProtocolError(SubstreamError):
    """
    Raised when an inbound message cannot be interpreted.

    This covers unrecognized message type tags as well as envelopes that
    do not have the shape of any known message.
    """

    def __init__(self, message_type: object, reason: str | None = None) -> None:
        self.message_type = message_type
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Invalid message type {message_type!r} - must be one of "
            f"'success', 'fail' or 'data'{detail}"
        )


class BufferOverflowError(SubstreamError):
    """Raised when the send buffer is full and another message is queued."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(
            f"Send buffer is full ({capacity} messages). "
            "Increase max_buffered_messages or wait for the transport to connect."
        )


__all__ = [
    "SubstreamError",
    "InvalidArgumentError",
    "NotConnectedError",
    "ProtocolError",
    "BufferOverflowError",
]
