"""Shared fixtures for the telemetry emitter test suite."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import pytest

from telemetry_emitter import metrics as m
from telemetry_emitter.domain.values import EventName, MetricDescriptor
from telemetry_emitter.emitter import Emitter
from telemetry_emitter.infrastructure.event_bus import TelemetryBus
from telemetry_emitter.reporters.capture import CaptureReporter

# ---------------------------------------------------------------------------
# Descriptor helpers
# ---------------------------------------------------------------------------


def metadata_size(measurements: Mapping[str, Any], metadata: Mapping[str, Any]) -> dict[str, int]:
    return {"size": len(metadata)}


def request_route(metadata: Mapping[str, Any]) -> dict[str, Any] | None:
    if "route" not in metadata:
        return None
    return {"route": metadata["route"]}


def rename_tags(metadata: Mapping[str, Any]) -> dict[str, Any]:
    if metadata.get("foo") == "bar":
        return {"bar": "baz", "extra": "ignored"}
    return {}


def is_boom(metadata: Mapping[str, Any]) -> bool:
    return metadata.get("boom") == "pow"


@dataclass(frozen=True)
class Publication:
    """One event seen on the test bus."""

    event_name: EventName
    measurements: dict[str, Any]
    metadata: dict[str, Any]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def bus() -> TelemetryBus:
    """A fresh telemetry bus."""
    return TelemetryBus()


@pytest.fixture
def published(bus: TelemetryBus) -> list[Publication]:
    """Every event published on the test bus, in order."""
    events: list[Publication] = []

    def record(event_name, measurements, metadata, config) -> None:
        events.append(Publication(event_name, dict(measurements), dict(metadata)))

    bus.subscribe_all("published", record)
    return events


@pytest.fixture
def emitter(bus: TelemetryBus) -> Emitter:
    """An emitter publishing on the test bus."""
    return Emitter(bus)


@pytest.fixture
def declared_metrics() -> list[MetricDescriptor]:
    """The metrics most tests capture."""
    return [
        m.last_value("vm.memory.total", unit="byte"),
        m.counter("service.request.count"),
        m.summary("service.request.duration", unit="millisecond"),
        m.sum("service.message.count"),
        m.summary("service.request.start.system_time", tags=["foo", "baz"]),
        m.summary("service.request.stop.duration", tags=["foo", "baz"]),
        m.summary(
            "http.request.response_time",
            tag_values=rename_tags,
            tags=["bar"],
            drop=is_boom,
        ),
        m.sum("telemetry.event.size", measurement=metadata_size),
        m.distribution("router.dispatch.stop.route", measurement=request_route),
    ]


@pytest.fixture
def reporter(
    bus: TelemetryBus, declared_metrics: list[MetricDescriptor]
) -> Iterator[CaptureReporter]:
    """A capture reporter subscribed to the test bus, stopped afterwards."""
    capture = CaptureReporter(metrics=declared_metrics, bus=bus)
    yield capture
    capture.stop()
