"""Telemetry Emitter.

A common interface for emitting metrics as telemetry events, plus a capture
reporter that records those events for test assertions.

Every declaration constructor lives in :mod:`telemetry_emitter.metrics`;
``metrics.sum`` is only reachable there so that star imports never shadow
the builtin.
"""

__version__ = "0.1.1"

from telemetry_emitter import metrics
from telemetry_emitter.domain import MetricDescriptor, Outcome, RecordedMetric
from telemetry_emitter.emitter import Emitter, emit, gauge, increment, measure
from telemetry_emitter.infrastructure import TelemetryBus, default_bus
from telemetry_emitter.metrics import counter, distribution, last_value, summary
from telemetry_emitter.reporters import CaptureReporter

__all__ = [
    "CaptureReporter",
    "Emitter",
    "MetricDescriptor",
    "Outcome",
    "RecordedMetric",
    "TelemetryBus",
    "counter",
    "default_bus",
    "distribution",
    "emit",
    "gauge",
    "increment",
    "last_value",
    "measure",
    "metrics",
    "summary",
]
