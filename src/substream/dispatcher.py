"""
Inbound message dispatch for multiplexed subscriptions.

Every subscription id moves through a small state machine driven by the
messages the server sends for it:

    PENDING --success--> ACTIVE
    PENDING | ACTIVE --fail--> CLOSED
    ACTIVE --data--> ACTIVE

CLOSED is not stored anywhere: a closed id is simply absent from the
registry, and any later message for it is dropped. This is also what keeps
an unsubscribed subscription from receiving results that were already in
flight when it was cancelled.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from substream.messages import (
    DataMessage,
    FailMessage,
    SuccessMessage,
    decode_inbound,
)
from substream.metrics import ClientMetrics
from substream.observability import (
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SUCCESS,
    ATTR_MESSAGE_DROPPED,
    ATTR_MESSAGE_TYPE,
    ATTR_SUBSCRIPTION_ID,
    NullTracer,
    SpanKindEnum,
    Tracer,
)
from substream.registry import SubscriptionRecord, SubscriptionRegistry
from substream.types import ErrorInfo

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def normalize_errors(errors: Any) -> Sequence[ErrorInfo]:
    """
    Coerce whatever the server sent as errors into a sequence of errors.

    - A list or tuple is returned unchanged.
    - A single error (mapping or object with a non-empty ``message``) is
      wrapped in a one-element list.
    - Anything else becomes ``[{"message": "Unknown error"}]``.
    """
    if isinstance(errors, list | tuple):
        return errors
    if isinstance(errors, Mapping):
        if errors.get("message"):
            return [errors]  # type: ignore[list-item]
    elif errors is not None and getattr(errors, "message", None):
        return [errors]
    return [{"message": UNKNOWN_ERROR_MESSAGE}]


def _handler_name(record: SubscriptionRecord) -> str:
    handler = record.handler
    return getattr(handler, "__qualname__", None) or type(handler).__name__


class MessageDispatcher:
    """
    Routes decoded inbound messages to subscription handlers.

    The dispatcher only mutates the registry it is given; it never sends
    anything and does not know about the transport's lifecycle.

    Example:
        >>> dispatcher = MessageDispatcher(registry)
        >>> dispatcher.dispatch({"type": "success", "id": 0})
        >>> dispatcher.dispatch({"type": "data", "id": 0, "payload": {"data": {"n": 1}}})
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        *,
        tracer: Tracer | None = None,
        metrics: ClientMetrics | None = None,
    ) -> None:
        self._registry = registry
        self._tracer = tracer or NullTracer()
        self._metrics = metrics or ClientMetrics(enable_metrics=False)

    def dispatch(self, raw: Any) -> None:
        """
        Decode one inbound message and apply it.

        Args:
            raw: The envelope delivered by the transport

        Raises:
            ProtocolError: If the message type is not recognized
            Exception: Whatever the subscription handler raises
        """
        message = decode_inbound(raw)
        record = self._registry.get(message.id)

        with self._tracer.span_with_kind(
            "substream.dispatcher.dispatch",
            SpanKindEnum.CONSUMER,
            {
                ATTR_MESSAGE_TYPE: message.type,
                ATTR_SUBSCRIPTION_ID: message.id,
                ATTR_MESSAGE_DROPPED: record is None,
            },
        ):
            if record is None:
                self._metrics.record_dropped(message.type)
                logger.debug(
                    f"Dropping {message.type} message for unknown subscription {message.id}",
                    extra={"subscription_id": message.id, "message_type": message.type},
                )
                return

            self._metrics.record_dispatched(message.type)

            if isinstance(message, SuccessMessage):
                self._registry.mark_acknowledged(message.id)
                logger.debug(
                    "Subscription acknowledged",
                    extra={"subscription_id": message.id},
                )
            elif isinstance(message, FailMessage):
                # Remove before invoking so the handler observes CLOSED
                self._registry.remove(message.id)
                logger.info(
                    "Subscription failed",
                    extra={"subscription_id": message.id},
                )
                self._invoke(message.id, record, normalize_errors(message.errors), None)
            elif isinstance(message, DataMessage):
                if message.data is not None and message.errors is None:
                    self._invoke(message.id, record, None, message.data)
                else:
                    self._invoke(message.id, record, normalize_errors(message.errors), None)

    def _invoke(
        self,
        sub_id: int,
        record: SubscriptionRecord,
        errors: Sequence[ErrorInfo] | None,
        data: Any,
    ) -> None:
        """Call the handler, logging and re-raising anything it raises."""
        name = _handler_name(record)
        with self._tracer.span(
            "substream.dispatcher.handle",
            {ATTR_SUBSCRIPTION_ID: sub_id, ATTR_HANDLER_NAME: name},
        ) as span:
            try:
                record.handler(errors, data)
            except Exception as e:
                # The span itself records the exception as it propagates out
                if span:
                    span.set_attribute(ATTR_HANDLER_SUCCESS, False)
                logger.error(
                    f"Handler {name} failed for subscription {sub_id}: {e}",
                    exc_info=True,
                    extra={"subscription_id": sub_id, "handler": name},
                )
                raise
            if span:
                span.set_attribute(ATTR_HANDLER_SUCCESS, True)


__all__ = ["MessageDispatcher", "normalize_errors", "UNKNOWN_ERROR_MESSAGE"]
