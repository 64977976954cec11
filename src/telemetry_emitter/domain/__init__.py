"""Domain layer for the telemetry emitter.

Re-exports all public domain types so that consumers can write::

    from telemetry_emitter.domain import MetricDescriptor, Outcome
"""

# -- Enumerations -------------------------------------------------------------
from .enums import ExtractorKind, MetricKind, Outcome

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    HandlerExistsError,
    MetricArgumentError,
    MetricDefinitionError,
    MetricNameError,
    ReporterConfigError,
    ReporterStoppedError,
    ReporterTimeoutError,
    TelemetryEmitterError,
)

# -- Value Objects ------------------------------------------------------------
from .values import (
    UNITLESS,
    EventName,
    MeasurementExtractor,
    Merged,
    MetricDescriptor,
    MetricName,
    RecordedMetric,
    RecordedState,
    RecordedValue,
    Stacked,
    display_name,
    split_measurement,
    strip_stop_duration,
    to_segments,
)

__all__ = [
    # Enums
    "ExtractorKind",
    "MetricKind",
    "Outcome",
    # Exceptions
    "HandlerExistsError",
    "MetricArgumentError",
    "MetricDefinitionError",
    "MetricNameError",
    "ReporterConfigError",
    "ReporterStoppedError",
    "ReporterTimeoutError",
    "TelemetryEmitterError",
    # Values
    "UNITLESS",
    "EventName",
    "MeasurementExtractor",
    "Merged",
    "MetricDescriptor",
    "MetricName",
    "RecordedMetric",
    "RecordedState",
    "RecordedValue",
    "Stacked",
    # Name helpers
    "display_name",
    "split_measurement",
    "strip_stop_duration",
    "to_segments",
]
