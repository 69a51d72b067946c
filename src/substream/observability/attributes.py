"""
Standard span and metric attributes for substream.

Attribute names are shared by tracing spans and metric labels so that
traces and metrics for the same subscription can be correlated.

Example:
    >>> from substream.observability.attributes import ATTR_SUBSCRIPTION_ID
    >>>
    >>> with tracer.span(
    ...     "substream.client.subscribe",
    ...     {ATTR_SUBSCRIPTION_ID: sub_id},
    ... ):
    ...     pass
"""

# =============================================================================
# Subscription Attributes
# =============================================================================

ATTR_SUBSCRIPTION_ID = "substream.subscription.id"
"""Client-assigned subscription identifier (integer)."""

ATTR_OPERATION_NAME = "substream.subscription.operation_name"
"""Operation name of the subscription, if any (string)."""

ATTR_SUBSCRIPTION_COUNT = "substream.subscription.count"
"""Number of subscriptions involved in an operation (integer)."""

# =============================================================================
# Message Attributes
# =============================================================================

ATTR_MESSAGE_TYPE = "substream.message.type"
"""Wire type tag of a message (e.g., 'start', 'data')."""

ATTR_MESSAGE_BUFFERED = "substream.message.buffered"
"""Whether an outbound message was queued instead of sent (boolean)."""

ATTR_MESSAGE_DROPPED = "substream.message.dropped"
"""Whether an inbound message referenced an unknown id (boolean)."""

ATTR_BUFFER_SIZE = "substream.buffer.size"
"""Number of messages in the send buffer (integer)."""

# =============================================================================
# Handler Attributes
# =============================================================================

ATTR_HANDLER_NAME = "substream.handler.name"
"""Name of the subscription handler being invoked (string)."""

ATTR_HANDLER_SUCCESS = "substream.handler.success"
"""Whether the handler returned without raising (boolean)."""

# =============================================================================
# Messaging Attributes (OpenTelemetry Semantic Conventions)
# =============================================================================

ATTR_MESSAGING_DESTINATION = "messaging.destination"
"""Transport event name messages are emitted under."""

ATTR_READY_STATE = "substream.transport.ready_state"
"""Transport readiness when a message was routed (string)."""
