"""
Send buffer holding outbound messages until the transport is ready.

Messages are emitted strictly in the order they were queued. A flush
drains everything queued before it and anything queued while it runs.
"""

import logging
from collections import deque
from collections.abc import Callable

from substream.exceptions import BufferOverflowError
from substream.messages import OutboundMessage

logger = logging.getLogger(__name__)


class SendBuffer:
    """
    FIFO queue of outbound messages.

    Example:
        >>> buffer = SendBuffer()
        >>> buffer.enqueue(StartMessage(id=0, options=options))
        >>> buffer.flush(lambda message: transport.emit("subscription", message.to_wire()))
        1
    """

    def __init__(self, max_size: int | None = None) -> None:
        """
        Initialize an empty buffer.

        Args:
            max_size: Maximum number of queued messages, or None for no limit
        """
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be positive or None, got {max_size}.")
        self._queue: deque[OutboundMessage] = deque()
        self._max_size = max_size

    def enqueue(self, message: OutboundMessage) -> None:
        """
        Append a message to the end of the queue.

        Raises:
            BufferOverflowError: If the buffer is already at max_size
        """
        if self._max_size is not None and len(self._queue) >= self._max_size:
            raise BufferOverflowError(self._max_size)
        self._queue.append(message)

    def flush(self, emit: Callable[[OutboundMessage], None]) -> int:
        """
        Emit queued messages in FIFO order until the queue is empty.

        Only call this when the transport is ready. If emit raises, the
        failing message and everything after it stay queued.

        Args:
            emit: Callable sending one message to the transport

        Returns:
            Number of messages emitted
        """
        count = 0
        while self._queue:
            emit(self._queue[0])
            self._queue.popleft()
            count += 1

        if count:
            logger.debug(f"Flushed {count} buffered message(s)", extra={"flushed": count})
        return count

    def pending(self) -> list[OutboundMessage]:
        """Copy of the queued messages, oldest first."""
        return list(self._queue)

    def clear(self) -> None:
        self._queue.clear()

    @property
    def max_size(self) -> int | None:
        return self._max_size

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)


__all__ = ["SendBuffer"]
