"""
Observability utilities for substream.

Tracers (null, OpenTelemetry, mock) and the span attribute names
shared by the client, dispatcher and reconnect coordinator.

Example:
    >>> from substream.observability import MockTracer
    >>> client = SubscriptionClient(transport, tracer=MockTracer())
"""

from substream.observability.attributes import (
    ATTR_BUFFER_SIZE,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SUCCESS,
    ATTR_MESSAGE_BUFFERED,
    ATTR_MESSAGE_DROPPED,
    ATTR_MESSAGE_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_OPERATION_NAME,
    ATTR_READY_STATE,
    ATTR_SUBSCRIPTION_COUNT,
    ATTR_SUBSCRIPTION_ID,
)
from substream.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "MockTracer",
    "SpanKindEnum",
    "create_tracer",
    # Attributes
    "ATTR_BUFFER_SIZE",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_SUCCESS",
    "ATTR_MESSAGE_BUFFERED",
    "ATTR_MESSAGE_DROPPED",
    "ATTR_MESSAGE_TYPE",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_OPERATION_NAME",
    "ATTR_READY_STATE",
    "ATTR_SUBSCRIPTION_COUNT",
    "ATTR_SUBSCRIPTION_ID",
]
