"""
Subscription client: the public surface of substream.

A SubscriptionClient is bound to exactly one transport for its whole
lifetime. It multiplexes any number of logical subscriptions over that
transport, delivers pushed results to per-subscription handlers, and
restarts every live subscription after the transport reconnects.

Example:
    >>> client = SubscriptionClient(transport)
    >>>
    >>> def on_order(errors, data):
    ...     if errors:
    ...         print("failed:", errors)
    ...     else:
    ...         print("order:", data)
    >>>
    >>> sub_id = client.subscribe(
    ...     {"query": "subscription { orderCreated { id } }"},
    ...     on_order,
    ... )
    >>> client.unsubscribe(sub_id)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any

from substream.buffer import SendBuffer
from substream.config import ClientConfig
from substream.dispatcher import MessageDispatcher
from substream.exceptions import NotConnectedError, ProtocolError, SubstreamError
from substream.messages import EndMessage, OutboundMessage, StartMessage
from substream.metrics import ClientMetrics
from substream.observability import (
    ATTR_BUFFER_SIZE,
    ATTR_MESSAGE_BUFFERED,
    ATTR_MESSAGE_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_OPERATION_NAME,
    ATTR_READY_STATE,
    ATTR_SUBSCRIPTION_COUNT,
    ATTR_SUBSCRIPTION_ID,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from substream.protocols import (
    EVENT_CONNECT,
    EVENT_RECONNECT,
    EVENT_RECONNECT_ATTEMPT,
    ReadyState,
    Transport,
)
from substream.reconnect import ReconnectCoordinator
from substream.registry import SubscriptionRegistry
from substream.types import SubscriptionHandler, SubscriptionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientStatus:
    """
    Status snapshot for diagnostics.

    Attributes:
        active: Number of subscriptions in the live registry
        pending: How many of those await server acknowledgement
        buffered: Outbound messages waiting for the transport
        reconnecting: Whether a reconnect cycle is in progress
        snapshot_size: Subscriptions held for replay
        next_id: Id the next subscription will receive
    """

    active: int
    pending: int
    buffered: int
    reconnecting: bool
    snapshot_size: int
    next_id: SubscriptionId

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "active": self.active,
            "pending": self.pending,
            "buffered": self.buffered,
            "reconnecting": self.reconnecting,
            "snapshot_size": self.snapshot_size,
            "next_id": self.next_id,
        }


def _state_name(ready_state: Any) -> str:
    if isinstance(ready_state, ReadyState):
        return ready_state.value
    return str(ready_state)


class SubscriptionClient:
    """
    Session manager for multiplexed subscriptions over one transport.

    Thread Safety:
        Transport callbacks and public methods are serialized behind one
        re-entrant lock, so handlers may call subscribe/unsubscribe from
        inside their own callback. Handlers for one subscription are never
        invoked concurrently.
    """

    def __init__(
        self,
        transport: Transport,
        config: ClientConfig | None = None,
        *,
        tracer: Tracer | None = None,
        metrics: ClientMetrics | None = None,
    ) -> None:
        """
        Bind a new session to a transport and start listening to it.

        Args:
            transport: Transport implementing on/emit/ready_state
            config: Optional client configuration
            tracer: Optional tracer; overrides config.enable_tracing
            metrics: Optional metrics container; overrides config.enable_metrics
        """
        self._transport = transport
        self._config = config or ClientConfig()
        self._tracer = tracer or create_tracer(__name__, self._config.enable_tracing)
        self._metrics = metrics or ClientMetrics(enable_metrics=self._config.enable_metrics)
        self._lock = threading.RLock()

        self._registry = SubscriptionRegistry()
        self._buffer = SendBuffer(self._config.max_buffered_messages)
        self._dispatcher = MessageDispatcher(
            self._registry,
            tracer=self._tracer,
            metrics=self._metrics,
        )
        self._reconnect = ReconnectCoordinator(
            self._registry,
            resubscribe=self._resubscribe,
            flush=self._flush,
            replay=self._config.replay_on_reconnect,
            tracer=self._tracer,
            metrics=self._metrics,
        )

        transport.on(self._config.event_key, self._on_message)
        transport.on(EVENT_CONNECT, self._on_connect)
        transport.on(EVENT_RECONNECT_ATTEMPT, self._on_reconnect_attempt)
        transport.on(EVENT_RECONNECT, self._on_reconnect)

    # =========================================================================
    # Public API
    # =========================================================================

    def subscribe(self, options: Any, handler: SubscriptionHandler) -> SubscriptionId:
        """
        Start a subscription.

        Args:
            options: SubscriptionOptions, or a mapping with ``query`` and
                optionally ``operationName``/``operation_name``,
                ``variables`` and ``context``
            handler: Called as handler(errors, None) or handler(None, data)

        Returns:
            The subscription id. Ids are valid for the current connection
            epoch only: after a reconnect the subscription is restarted
            under a new id and the old one no longer refers to it.

        Raises:
            InvalidArgumentError: If options or handler are malformed
            NotConnectedError: If the transport is down and not reconnecting
            BufferOverflowError: If the message must be buffered but the
                buffer is full
        """
        return self._subscribe(options, handler)

    def unsubscribe(self, sub_id: SubscriptionId) -> None:
        """
        Stop a subscription.

        Removing an unknown id is harmless; the ``end`` message is sent
        either way. No further results are delivered to the handler, even
        if the server already had some in flight.

        Raises:
            NotConnectedError: If the transport is down and not reconnecting
        """
        with self._lock:
            with self._tracer.span(
                "substream.client.unsubscribe",
                {ATTR_SUBSCRIPTION_ID: sub_id},
            ):
                self._registry.remove(sub_id)
                self._send(EndMessage(id=sub_id))

    def unsubscribe_all(self) -> None:
        """Stop every subscription in the live registry."""
        with self._lock:
            ids = self._registry.ids()
            with self._tracer.span(
                "substream.client.unsubscribe_all",
                {ATTR_SUBSCRIPTION_COUNT: len(ids)},
            ):
                for sub_id in ids:
                    self.unsubscribe(sub_id)

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def metrics(self) -> ClientMetrics:
        return self._metrics

    @property
    def reconnecting(self) -> bool:
        return self._reconnect.reconnecting

    @property
    def buffered_count(self) -> int:
        return len(self._buffer)

    def active_ids(self) -> list[SubscriptionId]:
        """Ids of the subscriptions in the live registry."""
        with self._lock:
            return self._registry.ids()

    def is_pending(self, sub_id: SubscriptionId) -> bool:
        """True if the subscription is live and not yet acknowledged."""
        with self._lock:
            record = self._registry.get(sub_id)
            return record is not None and record.pending

    def get_status(self) -> ClientStatus:
        with self._lock:
            records = self._registry.list_all()
            return ClientStatus(
                active=len(records),
                pending=sum(1 for _, record in records if record.pending),
                buffered=len(self._buffer),
                reconnecting=self._reconnect.reconnecting,
                snapshot_size=self._reconnect.snapshot_size,
                next_id=self._registry.next_id,
            )

    # =========================================================================
    # Send policy
    # =========================================================================

    def _subscribe(
        self,
        options: Any,
        handler: SubscriptionHandler,
        *,
        replay: bool = False,
    ) -> SubscriptionId:
        with self._lock:
            sub_id = self._registry.register(options, handler)
            record = self._registry.get(sub_id)
            assert record is not None

            with self._tracer.span(
                "substream.client.subscribe",
                {
                    ATTR_SUBSCRIPTION_ID: sub_id,
                    ATTR_OPERATION_NAME: record.options.operation_name or "",
                },
            ):
                try:
                    self._send(StartMessage(id=sub_id, options=record.options), replay=replay)
                except SubstreamError:
                    # The server never heard of this id; retire it
                    self._registry.remove(sub_id)
                    raise

            logger.debug(
                f"Subscribed {sub_id}",
                extra={"subscription_id": sub_id},
            )
            return sub_id

    def _resubscribe(self, options: Any, handler: SubscriptionHandler) -> SubscriptionId:
        return self._subscribe(options, handler, replay=True)

    def _send(self, message: OutboundMessage, *, replay: bool = False) -> None:
        """
        Route an outbound message according to transport readiness.

        opening -> buffer; open -> emit now; anything else -> buffer while
        reconnecting, otherwise NotConnectedError.

        While open, anything still buffered is flushed ahead of the message
        so the server sees messages in the order they were sent. Replayed
        starts skip that flush; the coordinator flushes right after them.
        """
        state = _state_name(self._transport.ready_state)

        if state == ReadyState.OPEN.value:
            if self._buffer and not replay:
                self._flush()
            self._emit(message)
            return

        if state == ReadyState.OPENING.value or self._reconnect.reconnecting:
            self._buffer.enqueue(message)
            self._metrics.record_buffered(message.type.value)
            logger.debug(
                f"Buffered {message.type.value} message for subscription {message.id}",
                extra={
                    "subscription_id": message.id,
                    "message_type": message.type.value,
                    "ready_state": state,
                    "buffered": len(self._buffer),
                },
            )
            return

        raise NotConnectedError(state)

    def _emit(self, message: OutboundMessage) -> None:
        with self._tracer.span_with_kind(
            "substream.client.emit",
            SpanKindEnum.PRODUCER,
            {
                ATTR_MESSAGE_TYPE: message.type.value,
                ATTR_SUBSCRIPTION_ID: message.id,
                ATTR_MESSAGING_DESTINATION: self._config.event_key,
                ATTR_MESSAGE_BUFFERED: False,
            },
        ):
            self._transport.emit(self._config.event_key, message.to_wire())
        self._metrics.record_sent(message.type.value)

    def _flush(self) -> int:
        with self._tracer.span(
            "substream.buffer.flush",
            {
                ATTR_BUFFER_SIZE: len(self._buffer),
                ATTR_READY_STATE: _state_name(self._transport.ready_state),
            },
        ):
            return self._buffer.flush(self._emit)

    # =========================================================================
    # Transport callbacks
    # =========================================================================

    def _on_message(self, raw: Any, *args: Any) -> None:
        with self._lock:
            try:
                self._dispatcher.dispatch(raw)
            except ProtocolError as e:
                logger.error(
                    f"Protocol error on '{self._config.event_key}': {e}",
                    exc_info=True,
                    extra={"message_type": e.message_type},
                )
                raise

    def _on_connect(self, *args: Any) -> None:
        with self._lock:
            logger.info(
                "Transport connected",
                extra={"buffered": len(self._buffer)},
            )
            self._reconnect.on_connect()

    def _on_reconnect_attempt(self, *args: Any) -> None:
        with self._lock:
            self._reconnect.on_reconnect_attempt()

    def _on_reconnect(self, *args: Any) -> None:
        with self._lock:
            self._reconnect.on_reconnect()


__all__ = ["ClientStatus", "SubscriptionClient"]
