"""
Reconnect replay for subscriptions that were live at disconnect time.

The server keeps no subscription state across transport reconnects, so
every subscription has to be started again from scratch once the
transport is back. The coordinator does that in two steps:

1. On the first ``reconnect_attempt`` after a successful connection, move
   every record out of the live registry into a snapshot.
2. On ``reconnect``, run a full subscribe for each snapshotted
   (options, handler) pair, then flush whatever was buffered meanwhile.

Replayed subscriptions get new ids. Ids are only meaningful within one
connection epoch, so the ids handed out before the disconnect are retired
for good: unsubscribing with one of them afterwards only sends an ``end``
for an id the server no longer knows.
"""

import logging
from collections.abc import Callable
from typing import Any

from substream.exceptions import SubstreamError
from substream.metrics import ClientMetrics
from substream.observability import ATTR_SUBSCRIPTION_COUNT, NullTracer, Tracer
from substream.registry import SubscriptionRecord, SubscriptionRegistry
from substream.types import SubscriptionHandler, SubscriptionId

logger = logging.getLogger(__name__)

LOST_ON_RECONNECT_MESSAGE = "Subscription lost during reconnect"

ResubscribeFunc = Callable[[Any, SubscriptionHandler], SubscriptionId]
FlushFunc = Callable[[], int]


class ReconnectCoordinator:
    """
    Snapshots the registry on disconnect and replays it on reconnect.

    Driven only by transport lifecycle signals; never by inbound messages.

    Example:
        >>> coordinator = ReconnectCoordinator(
        ...     registry,
        ...     resubscribe=client.subscribe,
        ...     flush=lambda: buffer.flush(emit),
        ... )
        >>> coordinator.on_reconnect_attempt()
        >>> coordinator.reconnecting
        True
        >>> coordinator.on_reconnect()
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        *,
        resubscribe: ResubscribeFunc,
        flush: FlushFunc,
        replay: bool = True,
        tracer: Tracer | None = None,
        metrics: ClientMetrics | None = None,
    ) -> None:
        """
        Args:
            registry: The live registry to snapshot
            resubscribe: Full subscribe path used to restart a subscription
            flush: Drains the send buffer to the transport
            replay: If False, snapshotted subscriptions are dropped on
                reconnect and their handlers told so instead of replayed
            tracer: Optional tracer
            metrics: Optional metrics container
        """
        self._registry = registry
        self._resubscribe = resubscribe
        self._flush = flush
        self._replay = replay
        self._tracer = tracer or NullTracer()
        self._metrics = metrics or ClientMetrics(enable_metrics=False)
        self._snapshot: dict[SubscriptionId, SubscriptionRecord] = {}
        self._reconnecting = False

    @property
    def reconnecting(self) -> bool:
        return self._reconnecting

    @property
    def snapshot_size(self) -> int:
        return len(self._snapshot)

    def on_connect(self) -> None:
        """Fresh connection: only the send buffer needs draining."""
        self._flush()

    def on_reconnect_attempt(self) -> None:
        """
        Move live subscriptions into the snapshot.

        Only the first attempt after a successful connection takes the
        snapshot; later attempts would otherwise replace it with an
        already-emptied registry.
        """
        if self._reconnecting:
            return

        self._snapshot = self._registry.snapshot_and_clear()
        self._reconnecting = True
        logger.info(
            f"Transport reconnecting, holding {len(self._snapshot)} subscription(s) for replay",
            extra={"snapshot_size": len(self._snapshot)},
        )

    def on_reconnect(self) -> None:
        """
        Restart every snapshotted subscription, then flush the buffer.

        A subscription whose restart raises a SubstreamError is reported to
        its handler as lost; the remaining ones are still replayed.
        """
        self._reconnecting = False
        snapshot = self._snapshot
        self._snapshot = {}

        with self._tracer.span(
            "substream.reconnect.replay",
            {ATTR_SUBSCRIPTION_COUNT: len(snapshot)},
        ):
            if self._replay:
                self._replay_all(snapshot)
            else:
                self._drop_all(snapshot)
            self._flush()

    def _replay_all(self, snapshot: dict[SubscriptionId, SubscriptionRecord]) -> None:
        replayed = 0
        for old_id, record in snapshot.items():
            try:
                new_id = self._resubscribe(record.options, record.handler)
            except SubstreamError as e:
                logger.error(
                    f"Could not replay subscription {old_id}: {e}",
                    exc_info=True,
                    extra={"subscription_id": old_id},
                )
                record.handler([{"message": f"{LOST_ON_RECONNECT_MESSAGE}: {e}"}], None)
                continue
            replayed += 1
            logger.debug(
                f"Replayed subscription {old_id} as {new_id}",
                extra={"old_subscription_id": old_id, "subscription_id": new_id},
            )

        self._metrics.record_replayed(replayed)
        logger.info(
            f"Transport reconnected, replayed {replayed} of {len(snapshot)} subscription(s)",
            extra={"replayed": replayed, "lost": len(snapshot) - replayed},
        )

    def _drop_all(self, snapshot: dict[SubscriptionId, SubscriptionRecord]) -> None:
        for old_id, record in snapshot.items():
            logger.warning(
                f"Dropping subscription {old_id} after reconnect",
                extra={"subscription_id": old_id},
            )
            record.handler([{"message": LOST_ON_RECONNECT_MESSAGE}], None)


__all__ = ["ReconnectCoordinator", "LOST_ON_RECONNECT_MESSAGE"]
