"""Domain enumerations for the telemetry emitter.

These enums capture the fixed vocabularies used across the domain layer:
metric kinds, measurement-extractor shapes, and the sentinel outcomes a
capture reporter records when no measurement can be produced.
"""

from enum import Enum


class MetricKind(Enum):
    """Kind of a declared metric, as understood by reporters."""

    COUNTER = "counter"
    SUM = "sum"
    LAST_VALUE = "last_value"
    SUMMARY = "summary"
    DISTRIBUTION = "distribution"


class ExtractorKind(Enum):
    """Shape of a descriptor's measurement, resolved once at declaration."""

    KEY = "key"  # look the key up in the published measurements
    METADATA = "metadata"  # fn(metadata)
    MEASUREMENTS_AND_METADATA = "measurements_and_metadata"  # fn(measurements, metadata)


class Outcome(Enum):
    """Sentinel outcomes recorded in place of a measurement."""

    MISSING = "missing"  # extractor produced no value
    DROPPED = "dropped"  # keep predicate rejected the event
    INVALID = "invalid"  # extraction raised

    def __repr__(self) -> str:
        return f"Outcome.{self.name}"
