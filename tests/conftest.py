"""
Shared pytest fixtures for the substream library tests.

This module provides:
- Transport fixtures (transport, opening_transport)
- Client fixtures (client, traced_client)
- Handler recorders (recorder, recorder_factory)
- OpenTelemetry SDK fixtures (metric_reader, meter_provider, span_exporter,
  tracer_provider)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from substream import ClientConfig, SubscriptionClient
from substream.observability import MockTracer
from substream.testing import InMemoryTransport

SAMPLE_QUERY = "subscription OnOrder { orderCreated { id total } }"


class HandlerRecorder:
    """Subscription handler that records every (errors, data) call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Sequence[Any] | None, Any]] = []

    def __call__(self, errors: Sequence[Any] | None, data: Any) -> None:
        self.calls.append((errors, data))

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last(self) -> tuple[Sequence[Any] | None, Any]:
        return self.calls[-1]


# ============================================================================
# Transport Fixtures
# ============================================================================


@pytest.fixture
def transport() -> InMemoryTransport:
    """Transport that is already open."""
    return InMemoryTransport(ready_state="open")


@pytest.fixture
def opening_transport() -> InMemoryTransport:
    """Transport still performing its handshake."""
    return InMemoryTransport(ready_state="opening")


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def config() -> ClientConfig:
    """Client config with OpenTelemetry recording switched off."""
    return ClientConfig(enable_tracing=False, enable_metrics=False)


@pytest.fixture
def client(transport: InMemoryTransport, config: ClientConfig) -> SubscriptionClient:
    """Client bound to the open transport."""
    return SubscriptionClient(transport, config)


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()


@pytest.fixture
def traced_client(
    transport: InMemoryTransport,
    config: ClientConfig,
    mock_tracer: MockTracer,
) -> SubscriptionClient:
    """Client recording spans into mock_tracer."""
    return SubscriptionClient(transport, config, tracer=mock_tracer)


# ============================================================================
# Handler Fixtures
# ============================================================================


@pytest.fixture
def recorder() -> HandlerRecorder:
    return HandlerRecorder()


@pytest.fixture
def recorder_factory() -> Callable[[], HandlerRecorder]:
    return HandlerRecorder


@pytest.fixture
def options() -> dict[str, Any]:
    """Subscribe options in wire spelling."""
    return {
        "query": SAMPLE_QUERY,
        "operationName": "OnOrder",
        "variables": {"region": "eu"},
    }


# ============================================================================
# OpenTelemetry Metrics Fixtures
# ============================================================================


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    """Fresh in-memory reader for inspecting collected metrics."""
    return InMemoryMetricReader()


@pytest.fixture
def meter_provider(metric_reader: InMemoryMetricReader) -> Any:
    """
    Local MeterProvider wired to metric_reader.

    Passed explicitly to ClientMetrics so tests never touch the global
    meter provider.
    """
    provider = MeterProvider(metric_readers=[metric_reader])
    yield provider
    provider.shutdown()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Collects finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> Any:
    """Local TracerProvider exporting to span_exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()
