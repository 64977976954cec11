"""Value objects for the telemetry emitter.

All types here are frozen dataclasses.  They describe metric names, metric
descriptors, and the outcomes a capture reporter records for them.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Union

from .enums import ExtractorKind, MetricKind, Outcome
from .exceptions import MetricDefinitionError, MetricNameError

EventName = tuple[str, ...]
MetricName = Union[str, Sequence[str]]

UNITLESS = "unit"
SEPARATOR = "."

# ---------------------------------------------------------------------------
# Metric names
# ---------------------------------------------------------------------------


def to_segments(metric: MetricName) -> EventName:
    """Normalize a dot-joined string or a segment sequence to a tuple."""
    if isinstance(metric, str):
        return tuple(metric.split(SEPARATOR))
    if not isinstance(metric, Sequence):
        raise MetricNameError(
            f"Metric names must be strings or sequences of strings, got {metric!r}",
            details={"metric": metric},
        )
    segments = tuple(metric)
    if not segments:
        raise MetricNameError("Metric names must have at least one segment")
    for segment in segments:
        if not isinstance(segment, str):
            raise MetricNameError(
                f"Metric name segments must be strings, got {segment!r} in {metric!r}",
                metric=tuple(map(str, segments)),
            )
    return segments


def split_measurement(segments: EventName) -> tuple[EventName, str]:
    """Split *segments* into ``(event_name, measurement_key)``."""
    if len(segments) < 2:
        name = display_name(segments)
        raise MetricNameError(
            "Metric names must have at least one segment separating the metric "
            "name from the measurement: `metric_name.measurement` or "
            f"`metric.name.measurement`, etc. {name!r} has no segments.",
            metric=segments,
        )
    return segments[:-1], segments[-1]


def strip_stop_duration(segments: EventName) -> EventName:
    """Return the span prefix of *segments*.

    ``("svc", "call", "stop", "duration")`` becomes ``("svc", "call")``; any
    other name is returned unchanged.
    """
    if len(segments) >= 2 and segments[-2:] == ("stop", "duration"):
        return segments[:-2]
    return segments


def display_name(event_name: MetricName) -> str:
    """Dot-join an event name for display and for recorded-state keys."""
    if isinstance(event_name, str):
        return event_name
    return SEPARATOR.join(event_name)


# ---------------------------------------------------------------------------
# MeasurementExtractor
# ---------------------------------------------------------------------------


def _positional_arity(function: Callable[..., Any]) -> int:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        # itemgetter and some builtins carry no signature; they take metadata
        return 1
    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    required = [p for p in positional if p.default is p.empty]
    if required:
        return len(required)
    if any(p.kind is p.VAR_POSITIONAL for p in signature.parameters.values()):
        return 2
    return len(positional)


@dataclass(frozen=True)
class MeasurementExtractor:
    """How a descriptor derives its value from a published event.

    The shape is resolved once by :meth:`resolve`, so delivery never needs to
    inspect the user-supplied measurement again.
    """

    kind: ExtractorKind
    key: str | None = None
    function: Callable[..., Any] | None = None

    @classmethod
    def resolve(cls, measurement: Any) -> MeasurementExtractor:
        if isinstance(measurement, MeasurementExtractor):
            return measurement
        if not callable(measurement):
            return cls(kind=ExtractorKind.KEY, key=measurement)
        arity = _positional_arity(measurement)
        if arity == 1:
            return cls(kind=ExtractorKind.METADATA, function=measurement)
        if arity == 2:
            return cls(kind=ExtractorKind.MEASUREMENTS_AND_METADATA, function=measurement)
        raise MetricDefinitionError(
            f"Measurement functions take 1 or 2 arguments, {measurement!r} takes {arity}"
        )

    def extract(self, measurements: Mapping[str, Any], metadata: Mapping[str, Any]) -> Any:
        if self.kind is ExtractorKind.KEY:
            return {self.key: measurements.get(self.key)}
        if self.kind is ExtractorKind.METADATA:
            return self.function(metadata)
        return self.function(measurements, metadata)


# ---------------------------------------------------------------------------
# MetricDescriptor
# ---------------------------------------------------------------------------


def _identity(metadata: Mapping[str, Any]) -> Mapping[str, Any]:
    return metadata


@dataclass(frozen=True, eq=False)
class MetricDescriptor:
    """Declarative description of how to derive a metric from an event.

    Attributes
    ----------
    name:
        Full metric name, e.g. ``("vm", "memory", "total")``.
    event_name:
        Event the metric listens on, e.g. ``("vm", "memory")``.
    measurement:
        A measurement key, a ``fn(metadata)`` or a
        ``fn(measurements, metadata)``.
    kind:
        The metric kind reporters aggregate by.
    unit:
        Unit label, ``"unit"`` when unitless.
    tags:
        Metadata keys surfaced as tags.
    tag_values:
        Maps metadata to the mapping tags are taken from.
    keep:
        Optional predicate; events it rejects are dropped.
    """

    name: EventName
    event_name: EventName
    measurement: Any
    kind: MetricKind = MetricKind.SUMMARY
    unit: str = UNITLESS
    tags: tuple[str, ...] = ()
    tag_values: Callable[[Mapping[str, Any]], Mapping[str, Any]] = _identity
    keep: Callable[[Mapping[str, Any]], bool] | None = None
    description: str | None = None
    reporter_options: Mapping[str, Any] = field(default_factory=dict)
    extractor: MeasurementExtractor = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", to_segments(self.name))
        object.__setattr__(self, "event_name", to_segments(self.event_name))
        object.__setattr__(self, "tags", tuple(self.tags))
        if not callable(self.tag_values):
            raise MetricDefinitionError(f"tag_values must be callable, got {self.tag_values!r}")
        if self.keep is not None and not callable(self.keep):
            raise MetricDefinitionError(f"keep must be callable, got {self.keep!r}")
        object.__setattr__(self, "extractor", MeasurementExtractor.resolve(self.measurement))

    @property
    def display_name(self) -> str:
        return display_name(self.name)

    def keeps(self, metadata: Mapping[str, Any]) -> bool:
        """Return ``False`` when the keep predicate rejects *metadata*."""
        return self.keep is None or bool(self.keep(metadata))

    def extract_tags(self, metadata: Mapping[str, Any]) -> dict[str, Any]:
        """Tag values restricted to the declared tag keys."""
        values = self.tag_values(metadata)
        return {tag: values[tag] for tag in self.tags if tag in values}


# ---------------------------------------------------------------------------
# Recorded outcomes and state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordedMetric:
    """A successfully captured measurement for one descriptor."""

    metric: MetricDescriptor
    measurement: Any
    unit: str = UNITLESS
    tags: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_mapping(self) -> bool:
        return isinstance(self.measurement, Mapping)

    def merged_with(self, previous: RecordedMetric) -> RecordedMetric:
        """Copy of this record whose measurement also keeps *previous*'s keys."""
        return replace(self, measurement={**previous.measurement, **self.measurement})

    def detached(self) -> RecordedMetric:
        """Copy whose measurement and tags share no mapping with this record."""
        measurement = dict(self.measurement) if self.is_mapping else self.measurement
        return replace(self, measurement=measurement, tags=dict(self.tags))


RecordedValue = Union[RecordedMetric, Outcome]


@dataclass(frozen=True)
class Merged:
    """State of an event name that has only produced mapping measurements."""

    record: RecordedMetric

    def unwrap(self) -> RecordedMetric:
        return self.record.detached()


@dataclass(frozen=True)
class Stacked:
    """Most-recent-first outcomes of an event name."""

    items: tuple[RecordedValue, ...]

    def unwrap(self) -> list[RecordedValue]:
        return [
            item.detached() if isinstance(item, RecordedMetric) else item
            for item in self.items
        ]


RecordedState = Union[Merged, Stacked]
