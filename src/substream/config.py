"""
Configuration for the subscription client.

This module provides:
- ClientConfig: Settings for one SubscriptionClient session
- DEFAULT_EVENT_KEY: Transport event name used for protocol messages
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_EVENT_KEY = "subscription"


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for a subscription client session.

    Attributes:
        event_key: Transport event name carrying protocol messages, both
            inbound and outbound
        max_buffered_messages: Maximum outbound messages held while the
            transport is not open (None = unbounded)
        replay_on_reconnect: Restart live subscriptions after a reconnect.
            When False they are dropped and each handler receives a
            "Subscription lost during reconnect" error instead.
        enable_tracing: Emit OpenTelemetry spans
        enable_metrics: Record OpenTelemetry metrics

    Example:
        >>> config = ClientConfig(
        ...     event_key="graphql:subscription",
        ...     max_buffered_messages=500,
        ... )
    """

    event_key: str = DEFAULT_EVENT_KEY

    # Send buffer
    max_buffered_messages: int | None = None

    # Reconnect behavior
    replay_on_reconnect: bool = True

    # Observability
    enable_tracing: bool = True
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not isinstance(self.event_key, str) or not self.event_key:
            raise ValueError(
                f"event_key must be a non-empty string, got {self.event_key!r}. "
                f"Use the event name your server listens on, e.g. '{DEFAULT_EVENT_KEY}'."
            )

        if self.max_buffered_messages is not None and self.max_buffered_messages < 1:
            raise ValueError(
                f"max_buffered_messages must be positive or None, "
                f"got {self.max_buffered_messages}. Use None for an unbounded buffer."
            )


__all__ = ["ClientConfig", "DEFAULT_EVENT_KEY"]
