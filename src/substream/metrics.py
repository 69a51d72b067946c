"""
OpenTelemetry metrics for the subscription client.

Instruments are created on the OpenTelemetry metrics API. Until the
application installs a MeterProvider, the API hands out no-op instruments,
so recording is always safe.

Example:
    >>> from substream.metrics import ClientMetrics
    >>>
    >>> metrics = ClientMetrics()
    >>> metrics.record_sent("start")
    >>> metrics.record_buffered("end")
    >>> metrics.snapshot().messages_sent
    1

Metrics Exposed:
    - substream.messages.sent (Counter): Messages emitted to the transport
    - substream.messages.buffered (Counter): Messages queued in the send buffer
    - substream.messages.dispatched (Counter): Inbound messages routed to a subscription
    - substream.messages.dropped (Counter): Inbound messages for unknown ids
    - substream.subscriptions.replayed (Counter): Subscriptions restarted after reconnect

All metrics carry a 'message.type' attribute where it applies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from opentelemetry import metrics
from opentelemetry.metrics import NoOpMeter

# Module-level meter instance
_meter: Any = None


def _get_meter() -> Any:
    """Get or create the meter for the substream namespace."""
    global _meter
    if _meter is None:
        _meter = metrics.get_meter("substream", version="1.0.0")
    return _meter


def reset_meter() -> None:
    """
    Reset the global meter instance.

    Useful for testing to ensure fresh meter state between tests.
    """
    global _meter
    _meter = None


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the locally tracked counters."""

    messages_sent: int
    messages_buffered: int
    messages_dispatched: int
    messages_dropped: int
    subscriptions_replayed: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "messages_sent": self.messages_sent,
            "messages_buffered": self.messages_buffered,
            "messages_dispatched": self.messages_dispatched,
            "messages_dropped": self.messages_dropped,
            "subscriptions_replayed": self.subscriptions_replayed,
        }


@dataclass
class ClientMetrics:
    """
    Container for subscription client metric instruments.

    Attributes:
        enable_metrics: Whether to record to OpenTelemetry (default True).
            Local counters used by snapshot() are kept either way.
        meter_provider: Optional MeterProvider to create instruments from
            instead of the global one
    """

    enable_metrics: bool = True
    meter_provider: Any = None

    _sent_counter: Any = field(default=None, init=False, repr=False)
    _buffered_counter: Any = field(default=None, init=False, repr=False)
    _dispatched_counter: Any = field(default=None, init=False, repr=False)
    _dropped_counter: Any = field(default=None, init=False, repr=False)
    _replayed_counter: Any = field(default=None, init=False, repr=False)

    _sent: int = field(default=0, init=False, repr=False)
    _buffered: int = field(default=0, init=False, repr=False)
    _dispatched: int = field(default=0, init=False, repr=False)
    _dropped: int = field(default=0, init=False, repr=False)
    _replayed: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize metric instruments."""
        if not self.enable_metrics:
            meter = NoOpMeter("substream")
        elif self.meter_provider is not None:
            meter = self.meter_provider.get_meter("substream", version="1.0.0")
        else:
            meter = _get_meter()

        self._sent_counter = meter.create_counter(
            name="substream.messages.sent",
            unit="messages",
            description="Messages emitted to the transport",
        )
        self._buffered_counter = meter.create_counter(
            name="substream.messages.buffered",
            unit="messages",
            description="Outbound messages queued while the transport was not open",
        )
        self._dispatched_counter = meter.create_counter(
            name="substream.messages.dispatched",
            unit="messages",
            description="Inbound messages routed to a live subscription",
        )
        self._dropped_counter = meter.create_counter(
            name="substream.messages.dropped",
            unit="messages",
            description="Inbound messages referencing an unknown subscription id",
        )
        self._replayed_counter = meter.create_counter(
            name="substream.subscriptions.replayed",
            unit="subscriptions",
            description="Subscriptions restarted after a transport reconnect",
        )

    def record_sent(self, message_type: str) -> None:
        self._sent_counter.add(1, {"message.type": message_type})
        self._sent += 1

    def record_buffered(self, message_type: str) -> None:
        self._buffered_counter.add(1, {"message.type": message_type})
        self._buffered += 1

    def record_dispatched(self, message_type: str) -> None:
        self._dispatched_counter.add(1, {"message.type": message_type})
        self._dispatched += 1

    def record_dropped(self, message_type: str) -> None:
        self._dropped_counter.add(1, {"message.type": message_type})
        self._dropped += 1

    def record_replayed(self, count: int) -> None:
        """Record how many subscriptions one reconnect restarted."""
        if count <= 0:
            return
        self._replayed_counter.add(count)
        self._replayed += count

    def snapshot(self) -> MetricsSnapshot:
        """Return the locally tracked totals."""
        return MetricsSnapshot(
            messages_sent=self._sent,
            messages_buffered=self._buffered,
            messages_dispatched=self._dispatched,
            messages_dropped=self._dropped,
            subscriptions_replayed=self._replayed,
        )


__all__ = ["ClientMetrics", "MetricsSnapshot", "reset_meter"]
