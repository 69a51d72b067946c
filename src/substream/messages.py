"""
Wire messages exchanged with the subscription server.

Outbound messages (client -> server):
    {"type": "start", "id": 0, "query": "...", "operationName"?, "variables"?, "context"?, ...}
    {"type": "end", "id": 0}

Inbound messages (server -> client):
    {"type": "success", "id": 0}
    {"type": "fail", "id": 0, "payload": {"errors": [...]}}
    {"type": "data", "id": 0, "payload": {"data": ..., "errors": ...}}

Inbound dictionaries are decoded exactly once, at the transport boundary,
into a closed union of pydantic models. Anything that is not one of the
known inbound shapes raises ProtocolError instead of being matched loosely.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from substream.exceptions import ProtocolError
from substream.types import SubscriptionId


class MessageType(str, Enum):
    """Type tags used on the wire."""

    START = "start"
    SUCCESS = "success"
    FAIL = "fail"
    DATA = "data"
    END = "end"


INBOUND_TYPES: frozenset[str] = frozenset(
    {MessageType.SUCCESS.value, MessageType.FAIL.value, MessageType.DATA.value}
)


class SubscriptionOptions(BaseModel):
    """
    Immutable description of what a subscription asks the server for.

    Field names follow Python conventions; the wire uses camelCase for
    ``operationName``. Both spellings are accepted on construction.

    Attributes:
        query: Subscription document (required, non-empty)
        operation_name: Operation to run when the document holds several
        variables: Variables for the operation
        context: Opaque value forwarded to the server untouched

    Any other keys are kept and forwarded in the start message, except
    that they never override its ``type`` or ``id``.

    Example:
        >>> options = SubscriptionOptions(
        ...     query="subscription { newOrder { id } }",
        ...     variables={"region": "eu"},
        ... )
        >>> options.to_wire()["query"]
        'subscription { newOrder { id } }'
    """

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True, extra="allow")

    query: str = Field(..., min_length=1, description="Subscription document")
    operation_name: str | None = Field(
        default=None,
        alias="operationName",
        description="Name of the operation to execute",
    )
    variables: dict[str, Any] | None = Field(
        default=None,
        description="Operation variables",
    )
    context: Any = Field(
        default=None,
        description="Opaque value forwarded with the start message",
    )

    @field_validator("variables", mode="before")
    @classmethod
    def _variables_to_dict(cls, value: Any) -> Any:
        # Strict mode only takes a real dict; copy any other mapping into one
        if isinstance(value, Mapping) and not isinstance(value, dict):
            return dict(value)
        return value

    def to_wire(self) -> dict[str, Any]:
        """
        Serialize to the wire field names, omitting unset optionals.

        Keys the caller passed beyond the known fields are forwarded as is.
        """
        wire: dict[str, Any] = dict(self.model_extra or {})
        wire["query"] = self.query
        if self.operation_name is not None:
            wire["operationName"] = self.operation_name
        if self.variables is not None:
            wire["variables"] = self.variables
        if self.context is not None:
            wire["context"] = self.context
        return wire


# =============================================================================
# Outbound
# =============================================================================


class StartMessage(BaseModel):
    """Asks the server to start a subscription under the given id."""

    model_config = ConfigDict(frozen=True)

    type: Literal[MessageType.START] = MessageType.START
    id: SubscriptionId
    options: SubscriptionOptions

    def to_wire(self) -> dict[str, Any]:
        return {**self.options.to_wire(), "type": self.type.value, "id": self.id}


class EndMessage(BaseModel):
    """Asks the server to stop a subscription."""

    model_config = ConfigDict(frozen=True)

    type: Literal[MessageType.END] = MessageType.END
    id: SubscriptionId

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type.value, "id": self.id}


OutboundMessage = StartMessage | EndMessage


# =============================================================================
# Inbound
# =============================================================================


class FailPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    errors: Any = None


class DataPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: Any = None
    errors: Any = None


class SuccessMessage(BaseModel):
    """Server acknowledged the subscription start."""

    model_config = ConfigDict(frozen=True)

    type: Literal["success"]
    id: SubscriptionId


class FailMessage(BaseModel):
    """Server rejected or terminated the subscription."""

    model_config = ConfigDict(frozen=True)

    type: Literal["fail"]
    id: SubscriptionId
    payload: FailPayload | None = None

    @property
    def errors(self) -> Any:
        return self.payload.errors if self.payload is not None else None


class DataMessage(BaseModel):
    """A pushed result, carrying data, errors, or both."""

    model_config = ConfigDict(frozen=True)

    type: Literal["data"]
    id: SubscriptionId
    payload: DataPayload | None = None

    @property
    def data(self) -> Any:
        return self.payload.data if self.payload is not None else None

    @property
    def errors(self) -> Any:
        return self.payload.errors if self.payload is not None else None


InboundMessage = Annotated[
    SuccessMessage | FailMessage | DataMessage,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[SuccessMessage | FailMessage | DataMessage] = TypeAdapter(
    InboundMessage
)


def decode_inbound(raw: Any) -> SuccessMessage | FailMessage | DataMessage:
    """
    Decode a raw inbound envelope into a typed message.

    Args:
        raw: The ``{id, type, payload}`` mapping received from the transport

    Returns:
        SuccessMessage, FailMessage or DataMessage

    Raises:
        ProtocolError: If the type tag is unknown or the envelope is malformed
    """
    if isinstance(raw, SuccessMessage | FailMessage | DataMessage):
        return raw

    if not isinstance(raw, Mapping):
        raise ProtocolError(None, f"expected a mapping, got {type(raw).__name__}")

    message_type = raw.get("type")
    if not isinstance(message_type, str) or message_type not in INBOUND_TYPES:
        raise ProtocolError(message_type)

    try:
        return _inbound_adapter.validate_python(dict(raw))
    except ValidationError as e:
        raise ProtocolError(message_type, f"malformed message: {e}") from e


__all__ = [
    "MessageType",
    "INBOUND_TYPES",
    "SubscriptionOptions",
    "StartMessage",
    "EndMessage",
    "OutboundMessage",
    "FailPayload",
    "DataPayload",
    "SuccessMessage",
    "FailMessage",
    "DataMessage",
    "InboundMessage",
    "decode_inbound",
]
