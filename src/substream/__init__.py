"""
substream - Multiplexed, auto-replaying subscriptions over one transport.

This library provides:
- SubscriptionClient: subscribe/unsubscribe over a shared duplex transport
- Inbound message dispatch with per-subscription handlers
- Send buffering while the transport is opening or reconnecting
- Replay of live subscriptions after a transport reconnect
- OpenTelemetry tracing and metrics
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("substream-py")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from substream.buffer import SendBuffer
from substream.client import ClientStatus, SubscriptionClient
from substream.config import DEFAULT_EVENT_KEY, ClientConfig
from substream.dispatcher import MessageDispatcher, normalize_errors
from substream.exceptions import (
    BufferOverflowError,
    InvalidArgumentError,
    NotConnectedError,
    ProtocolError,
    SubstreamError,
)
from substream.messages import (
    DataMessage,
    EndMessage,
    FailMessage,
    MessageType,
    StartMessage,
    SubscriptionOptions,
    SuccessMessage,
    decode_inbound,
)
from substream.metrics import ClientMetrics, MetricsSnapshot
from substream.protocols import ReadyState, Transport
from substream.reconnect import ReconnectCoordinator
from substream.registry import SubscriptionRecord, SubscriptionRegistry
from substream.types import ErrorInfo, SubscriptionHandler, SubscriptionId

__all__ = [
    "__version__",
    # Client
    "SubscriptionClient",
    "ClientStatus",
    "ClientConfig",
    "DEFAULT_EVENT_KEY",
    # Components
    "SubscriptionRegistry",
    "SubscriptionRecord",
    "MessageDispatcher",
    "normalize_errors",
    "SendBuffer",
    "ReconnectCoordinator",
    # Messages
    "MessageType",
    "SubscriptionOptions",
    "StartMessage",
    "EndMessage",
    "SuccessMessage",
    "FailMessage",
    "DataMessage",
    "decode_inbound",
    # Transport
    "Transport",
    "ReadyState",
    # Observability
    "ClientMetrics",
    "MetricsSnapshot",
    # Types
    "ErrorInfo",
    "SubscriptionHandler",
    "SubscriptionId",
    # Exceptions
    "SubstreamError",
    "InvalidArgumentError",
    "NotConnectedError",
    "ProtocolError",
    "BufferOverflowError",
]
