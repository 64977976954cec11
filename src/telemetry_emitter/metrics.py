"""Metric declarations.

One constructor per metric kind builds a :class:`MetricDescriptor` from a
metric name.  The last name segment is the measurement key and the others
form the event name, unless overridden::

    metrics = [
        counter("service.request.count"),
        last_value("vm.memory.total", unit="byte"),
        summary("http.request.duration", tags=["route"], drop=is_health_check),
    ]

The same names are then used with the emitter, e.g.
``increment("service.request.count")``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from telemetry_emitter.domain.enums import MetricKind
from telemetry_emitter.domain.exceptions import MetricDefinitionError, MetricNameError
from telemetry_emitter.domain.values import (
    UNITLESS,
    MetricDescriptor,
    MetricName,
    split_measurement,
    to_segments,
)

Predicate = Callable[[Mapping[str, Any]], bool]


def counter(name: MetricName, **options: Any) -> MetricDescriptor:
    """Count events; reporters ignore the measured value."""
    return _declare(MetricKind.COUNTER, name, **options)


def sum(name: MetricName, **options: Any) -> MetricDescriptor:  # noqa: A001
    """Keep the running sum of the measured values."""
    return _declare(MetricKind.SUM, name, **options)


def last_value(name: MetricName, **options: Any) -> MetricDescriptor:
    """Keep the most recent measured value (a gauge)."""
    return _declare(MetricKind.LAST_VALUE, name, **options)


def summary(name: MetricName, **options: Any) -> MetricDescriptor:
    """Summarize the measured values (count, mean, percentiles)."""
    return _declare(MetricKind.SUMMARY, name, **options)


def distribution(name: MetricName, **options: Any) -> MetricDescriptor:
    """Build a histogram of the measured values."""
    return _declare(MetricKind.DISTRIBUTION, name, **options)


def _declare(
    kind: MetricKind,
    name: MetricName,
    *,
    event_name: MetricName | None = None,
    measurement: Any = None,
    tags: Sequence[str] = (),
    tag_values: Callable[[Mapping[str, Any]], Mapping[str, Any]] | None = None,
    keep: Predicate | None = None,
    drop: Predicate | None = None,
    unit: str = UNITLESS,
    description: str | None = None,
    reporter_options: Mapping[str, Any] | None = None,
) -> MetricDescriptor:
    try:
        segments = to_segments(name)
        if event_name is None or measurement is None:
            default_event, default_key = split_measurement(segments)
            event_name = default_event if event_name is None else event_name
            measurement = default_key if measurement is None else measurement
    except MetricNameError as exc:
        raise MetricDefinitionError(str(exc), details={"name": name}) from exc

    if keep is not None and drop is not None:
        raise MetricDefinitionError("Only one of keep and drop may be given")
    if drop is not None:
        keep = _negate(drop)
    if isinstance(tags, str) or not all(isinstance(tag, str) for tag in tags):
        raise MetricDefinitionError(f"tags must be a sequence of strings, got {tags!r}")
    if not isinstance(unit, str):
        raise MetricDefinitionError(f"unit must be a string, got {unit!r}")

    extra: dict[str, Any] = {}
    if tag_values is not None:
        extra["tag_values"] = tag_values
    return MetricDescriptor(
        name=segments,
        event_name=event_name,
        measurement=measurement,
        kind=kind,
        unit=unit,
        tags=tuple(tags),
        keep=keep,
        description=description,
        reporter_options=dict(reporter_options or {}),
        **extra,
    )


def _negate(drop: Predicate) -> Predicate:
    if not callable(drop):
        raise MetricDefinitionError(f"drop must be callable, got {drop!r}")

    def keep(metadata: Mapping[str, Any]) -> bool:
        return not drop(metadata)

    return keep
