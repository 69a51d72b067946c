"""Common type definitions for the substream library."""

from collections.abc import Callable, Sequence
from typing import Any, NotRequired, TypedDict

# Identifier assigned by the client to each logical subscription
SubscriptionId = int


class ErrorInfo(TypedDict):
    """Normalized error shape delivered to subscription handlers."""

    message: str
    locations: NotRequired[list[dict[str, int]]]
    path: NotRequired[list[str | int]]


# Handler receives (errors, None) or (None, data)
SubscriptionHandler = Callable[[Sequence[ErrorInfo] | None, Any | None], None]
