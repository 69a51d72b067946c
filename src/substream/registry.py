"""
Subscription registry for id allocation and record lookup.

The SubscriptionRegistry handles only subscription bookkeeping:
- Validating subscribe arguments and allocating ids
- Storing one SubscriptionRecord per live id
- Acknowledging, removing and listing records

It never talks to the transport. Ids come from a counter that only ever
moves forward, so an id is never handed out twice within one registry,
even after the subscription using it is removed.

Example:
    >>> registry = SubscriptionRegistry()
    >>> sub_id = registry.register({"query": "subscription { ping }"}, print)
    >>> registry.get(sub_id).pending
    True
    >>> registry.mark_acknowledged(sub_id)
    >>> registry.remove(sub_id) is not None
    True
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from substream.exceptions import InvalidArgumentError
from substream.messages import SubscriptionOptions
from substream.types import SubscriptionHandler, SubscriptionId

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionRecord:
    """
    State kept for one live subscription.

    Attributes:
        options: What the subscription asked for
        handler: Callback receiving (errors, data)
        pending: True until the server acknowledges the start
    """

    options: SubscriptionOptions
    handler: SubscriptionHandler
    pending: bool = True


def coerce_options(options: Any) -> SubscriptionOptions:
    """
    Validate subscribe options into a SubscriptionOptions instance.

    Args:
        options: A SubscriptionOptions or a mapping using Python or wire names

    Returns:
        The validated SubscriptionOptions

    Raises:
        InvalidArgumentError: If options are missing, mistyped or empty
    """
    if isinstance(options, SubscriptionOptions):
        return options
    if not isinstance(options, Mapping):
        raise InvalidArgumentError(
            "options", f"must be a mapping or SubscriptionOptions, got {type(options).__name__}"
        )
    try:
        return SubscriptionOptions.model_validate(dict(options))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "options"
        raise InvalidArgumentError(field, first["msg"]) from e


class SubscriptionRegistry:
    """
    Registry mapping subscription ids to their records.

    Not thread-safe on its own; SubscriptionClient serializes access.
    """

    def __init__(self, first_id: SubscriptionId = 0) -> None:
        """
        Initialize an empty registry.

        Args:
            first_id: Id handed out by the first successful registration
        """
        if first_id < 0:
            raise ValueError(f"first_id must be >= 0, got {first_id}.")
        self._records: dict[SubscriptionId, SubscriptionRecord] = {}
        self._next_id = first_id

    def register(self, options: Any, handler: SubscriptionHandler) -> SubscriptionId:
        """
        Validate arguments, allocate the next id and store a pending record.

        Args:
            options: SubscriptionOptions or an equivalent mapping
            handler: Callable invoked with (errors, data)

        Returns:
            The newly allocated subscription id

        Raises:
            InvalidArgumentError: If options or handler are invalid. No id
                is consumed in that case.
        """
        validated = coerce_options(options)
        if handler is None:
            raise InvalidArgumentError("handler", "must provide a handler to subscribe")
        if not callable(handler):
            raise InvalidArgumentError(
                "handler", f"must be callable, got {type(handler).__name__}"
            )

        sub_id = self._next_id
        self._next_id += 1
        self._records[sub_id] = SubscriptionRecord(options=validated, handler=handler)

        logger.debug(
            "Subscription registered",
            extra={
                "subscription_id": sub_id,
                "operation_name": validated.operation_name,
            },
        )
        return sub_id

    def mark_acknowledged(self, sub_id: SubscriptionId) -> None:
        """Clear the pending flag; unknown ids are ignored."""
        record = self._records.get(sub_id)
        if record is not None:
            record.pending = False

    def remove(self, sub_id: SubscriptionId) -> SubscriptionRecord | None:
        """
        Remove a subscription.

        Returns:
            The removed record, or None if the id was not registered
        """
        record = self._records.pop(sub_id, None)
        if record is not None:
            logger.debug("Subscription removed", extra={"subscription_id": sub_id})
        return record

    def list_all(self) -> list[tuple[SubscriptionId, SubscriptionRecord]]:
        """Snapshot of all (id, record) pairs."""
        return list(self._records.items())

    def snapshot_and_clear(self) -> dict[SubscriptionId, SubscriptionRecord]:
        """Move every record out of the registry and return them."""
        records = self._records
        self._records = {}
        return records

    def clear(self) -> None:
        self._records.clear()

    def get(self, sub_id: SubscriptionId) -> SubscriptionRecord | None:
        return self._records.get(sub_id)

    def contains(self, sub_id: SubscriptionId) -> bool:
        return sub_id in self._records

    def ids(self) -> list[SubscriptionId]:
        """Snapshot of the registered ids."""
        return list(self._records)

    @property
    def next_id(self) -> SubscriptionId:
        """Id the next successful registration will receive."""
        return self._next_id

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SubscriptionId]:
        return iter(list(self._records))


__all__ = ["SubscriptionRecord", "SubscriptionRegistry", "coerce_options"]
