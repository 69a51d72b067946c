"""
Tracers used by the subscription client.

Every component takes a ``Tracer`` at construction time and opens spans
through it. Three implementations exist:

- NullTracer: tracing disabled, spans are free
- OpenTelemetryTracer: spans go to the global (or a given) TracerProvider
- MockTracer: remembers every span for assertions in tests

Example:
    >>> tracer = create_tracer(__name__, enable_tracing=False)
    >>> with tracer.span("substream.buffer.flush", {"substream.buffer.size": 3}):
    ...     buffer.flush(emit)
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.trace import Span


class SpanKindEnum(Enum):
    """
    Span kinds the client emits.

    INTERNAL covers bookkeeping (subscribe, flush, replay), PRODUCER an
    outbound protocol message and CONSUMER the handling of an inbound one.
    """

    INTERNAL = "internal"
    PRODUCER = "producer"
    CONSUMER = "consumer"


_OTEL_KINDS = {
    SpanKindEnum.INTERNAL: trace.SpanKind.INTERNAL,
    SpanKindEnum.PRODUCER: trace.SpanKind.PRODUCER,
    SpanKindEnum.CONSUMER: trace.SpanKind.CONSUMER,
}


@runtime_checkable
class Tracer(Protocol):
    """Something that opens spans around client operations."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """Open an INTERNAL span; the context yields the span or None."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether spans are actually recorded somewhere."""
        ...

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """Open a span of the given kind."""
        ...


class NullTracer:
    """Tracer that does nothing."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    @property
    def enabled(self) -> bool:
        return False

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        yield None


class OpenTelemetryTracer:
    """
    Tracer backed by the OpenTelemetry API.

    Without a configured TracerProvider the API hands out non-recording
    spans, so this is safe to use before the application sets up exporting.

    Args:
        tracer_name: Instrumentation scope name, usually the module's __name__
        tracer_provider: Provider to use instead of the global one
    """

    def __init__(
        self,
        tracer_name: str,
        tracer_provider: trace.TracerProvider | None = None,
    ) -> None:
        self._tracer = trace.get_tracer(tracer_name, tracer_provider=tracer_provider)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    @property
    def enabled(self) -> bool:
        return True

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span]:
        return self._tracer.start_as_current_span(
            name,
            kind=_OTEL_KINDS.get(kind, trace.SpanKind.INTERNAL),
            attributes=attributes or {},
        )


@dataclass(frozen=True)
class RecordedSpan:
    """A span seen by MockTracer."""

    name: str
    attributes: dict[str, Any] | None
    kind: SpanKindEnum = SpanKindEnum.INTERNAL


class MockTracer:
    """
    Tracer for tests; keeps every span it opens, in order.

    Example:
        >>> tracer = MockTracer()
        >>> client = SubscriptionClient(transport, tracer=tracer)
        >>> client.subscribe({"query": "subscription { a }"}, handler)
        >>> tracer.span_names
        ['substream.client.subscribe', 'substream.client.emit']
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    @property
    def enabled(self) -> bool:
        return True

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        self.spans.append(RecordedSpan(name, attributes, kind))
        yield None

    @property
    def span_names(self) -> list[str]:
        return [span.name for span in self.spans]

    def find(self, name: str) -> list[RecordedSpan]:
        """All recorded spans with the given name."""
        return [span for span in self.spans if span.name == name]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """Return an OpenTelemetryTracer, or a NullTracer when tracing is off."""
    if enable_tracing:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "SpanKindEnum",
    "create_tracer",
]
