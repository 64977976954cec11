"""Emit metrics declared with :mod:`telemetry_emitter.metrics`.

Metric names are strings separated by ``.`` or sequences of strings.  For
``increment`` and ``gauge`` each name must have at least two segments, the
last segment being the measurement.

All functions take the metric as the first argument.  There is also an
optional ``metadata`` argument that accepts a mapping of metric metadata,
including tag values.

Examples
--------
Increment a counter::

    increment("request.count")
    increment(["request", "count"])

Both publish the ``request`` event with the measurement ``{"count": 1}``.

Measure the time of a function call::

    measure("request.stop.duration", {"operation": "op1"},
            lambda: (service.operation(), {}))

The module-level functions publish on
:data:`~telemetry_emitter.infrastructure.event_bus.default_bus`; build an
:class:`Emitter` to publish on another bus.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import numpy as np

from telemetry_emitter.domain.exceptions import MetricArgumentError
from telemetry_emitter.domain.values import (
    MetricName,
    split_measurement,
    strip_stop_duration,
    to_segments,
)
from telemetry_emitter.infrastructure.event_bus import TelemetryBus, default_bus

_INTEGER_TYPES = (int, np.integer)
_NUMBER_TYPES = (int, float, np.integer, np.floating)


def _is_integer(value: Any) -> bool:
    return isinstance(value, _INTEGER_TYPES) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)


class Emitter:
    """Translate convenience calls into publications on a :class:`TelemetryBus`.

    The emitter keeps no state besides the bus it publishes on.
    """

    def __init__(self, bus: TelemetryBus | None = None) -> None:
        self._bus = bus if bus is not None else default_bus

    @property
    def bus(self) -> TelemetryBus:
        return self._bus

    def increment(
        self,
        counter: MetricName,
        count: int = 1,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Increment the value of a counter metric.

        Declare the metric with ``counter("request.count")`` and emit it with
        the same name: ``increment("request.count")`` publishes ``request``
        with the measurement ``{"count": 1}``.  Declare it as ``sum`` to
        increment by more than one: ``increment("request.count", 99)``.
        """
        if not _is_integer(count):
            raise MetricArgumentError(
                f"count must be an integer, got {count!r}", argument="count", value=count
            )
        event_name, key = split_measurement(to_segments(counter))
        self._bus.publish(event_name, {key: count}, _metadata(metadata))

    def gauge(
        self,
        metric: MetricName,
        value: int | float,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit the current value of a gauge.

        Declare the metric with ``last_value("memory_usage.ratio")``;
        ``gauge("memory_usage.ratio", 0.88)`` publishes ``memory_usage``
        with the measurement ``{"ratio": 0.88}``.
        """
        if not _is_number(value):
            raise MetricArgumentError(
                f"value must be a number, got {value!r}", argument="value", value=value
            )
        event_name, key = split_measurement(to_segments(metric))
        self._bus.publish(event_name, {key: value}, _metadata(metadata))

    def emit(
        self,
        metric: MetricName,
        measurements: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit a metric with explicit measurements.

        The entire *metric* is the event name; nothing is stripped.  With
        ``counter("service.request.count")`` and
        ``summary("service.request.duration")`` declared,
        ``emit("service.request", {"count": 1, "duration": 5})`` feeds both.
        """
        if not isinstance(measurements, Mapping):
            raise MetricArgumentError(
                f"measurements must be a mapping, got {measurements!r}",
                argument="measurements",
                value=measurements,
            )
        self._bus.publish(to_segments(metric), measurements, _metadata(metadata))

    def measure(
        self,
        metric: MetricName,
        start_metadata: Mapping[str, Any] | Callable[[], tuple] | None = None,
        function: Callable[[], tuple] | None = None,
    ) -> Any:
        """Measure the duration of *function*.

        *metric* is either the span prefix (``"my.service.call"``) or the
        full stop metric (``"my.service.call.stop.duration"``).  The
        ``.start`` event carries *start_metadata* and a ``system_time``
        measurement; the ``.stop`` event carries the stop metadata returned
        by *function* and a ``duration`` measurement.  If *function* raises,
        a ``.exception`` event with a ``duration`` is emitted and the
        exception propagates.

        *function* takes no arguments and returns ``(result,
        stop_metadata)``; ``result`` is returned.  ``start_metadata`` may be
        omitted: ``measure("my.service.call", fn)``.
        """
        if function is None and callable(start_metadata):
            function, start_metadata = start_metadata, None
        if function is None or not callable(function):
            raise MetricArgumentError(
                f"function must be callable, got {function!r}",
                argument="function",
                value=function,
            )
        if start_metadata is not None and not isinstance(start_metadata, Mapping):
            raise MetricArgumentError(
                f"start_metadata must be a mapping, got {start_metadata!r}",
                argument="start_metadata",
                value=start_metadata,
            )
        prefix = strip_stop_duration(to_segments(metric))
        return self._bus.span(prefix, _metadata(start_metadata), function)


def _metadata(metadata: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if metadata is None:
        return {}
    if not isinstance(metadata, Mapping):
        raise MetricArgumentError(
            f"metadata must be a mapping, got {metadata!r}",
            argument="metadata",
            value=metadata,
        )
    return metadata


# ---------------------------------------------------------------------------
# Module-level API bound to the default bus
# ---------------------------------------------------------------------------

_default_emitter = Emitter()


def increment(
    counter: MetricName, count: int = 1, metadata: Mapping[str, Any] | None = None
) -> None:
    _default_emitter.increment(counter, count, metadata)


def gauge(
    metric: MetricName, value: int | float, metadata: Mapping[str, Any] | None = None
) -> None:
    _default_emitter.gauge(metric, value, metadata)


def emit(
    metric: MetricName,
    measurements: Mapping[str, Any],
    metadata: Mapping[str, Any] | None = None,
) -> None:
    _default_emitter.emit(metric, measurements, metadata)


def measure(
    metric: MetricName,
    start_metadata: Mapping[str, Any] | Callable[[], tuple] | None = None,
    function: Callable[[], tuple] | None = None,
) -> Any:
    return _default_emitter.measure(metric, start_metadata, function)
