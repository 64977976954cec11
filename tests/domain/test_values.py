"""Tests for metric names, extractors and descriptors."""

from __future__ import annotations

import operator

import pytest

from telemetry_emitter.domain.enums import ExtractorKind
from telemetry_emitter.domain.exceptions import (
    MetricDefinitionError,
    MetricNameError,
    TelemetryEmitterError,
)
from telemetry_emitter.domain.values import (
    MeasurementExtractor,
    MetricDescriptor,
    display_name,
    split_measurement,
    strip_stop_duration,
    to_segments,
)


class TestNames:

    def test_string_and_sequence_forms_agree(self) -> None:
        assert to_segments("a.b.c") == to_segments(["a", "b", "c"]) == ("a", "b", "c")

    def test_rejects_non_string_segments(self) -> None:
        with pytest.raises(MetricNameError):
            to_segments(["a", 1])

    def test_rejects_empty_sequence(self) -> None:
        with pytest.raises(MetricNameError):
            to_segments([])

    def test_split_measurement(self) -> None:
        assert split_measurement(("vm", "memory", "total")) == (("vm", "memory"), "total")

    def test_split_single_segment(self) -> None:
        with pytest.raises(MetricNameError) as info:
            split_measurement(("total",))
        assert info.value.metric == ("total",)
        assert isinstance(info.value, ValueError)
        assert isinstance(info.value, TelemetryEmitterError)

    @pytest.mark.parametrize(
        ("name", "prefix"),
        [
            (("svc", "call", "stop", "duration"), ("svc", "call")),
            (("svc", "call"), ("svc", "call")),
            (("svc", "call", "stop"), ("svc", "call", "stop")),
            (("svc", "duration", "stop"), ("svc", "duration", "stop")),
        ],
    )
    def test_strip_stop_duration(self, name: tuple[str, ...], prefix: tuple[str, ...]) -> None:
        assert strip_stop_duration(name) == prefix

    def test_display_name(self) -> None:
        assert display_name(("a", "b")) == "a.b"
        assert display_name("a.b") == "a.b"


class TestMeasurementExtractor:

    def test_key(self) -> None:
        extractor = MeasurementExtractor.resolve("latency")
        assert extractor.kind is ExtractorKind.KEY
        assert extractor.extract({"latency": 2}, {}) == {"latency": 2}
        assert extractor.extract({}, {}) == {"latency": None}

    def test_metadata_function(self) -> None:
        extractor = MeasurementExtractor.resolve(lambda metadata: metadata["n"])
        assert extractor.kind is ExtractorKind.METADATA
        assert extractor.extract({"n": 1}, {"n": 2}) == 2

    def test_measurements_and_metadata_function(self) -> None:
        extractor = MeasurementExtractor.resolve(lambda measurements, metadata: (measurements, metadata))
        assert extractor.kind is ExtractorKind.MEASUREMENTS_AND_METADATA
        assert extractor.extract({"a": 1}, {"b": 2}) == ({"a": 1}, {"b": 2})

    def test_uninspectable_callable_takes_metadata(self) -> None:
        extractor = MeasurementExtractor.resolve(operator.itemgetter("route"))
        assert extractor.kind is ExtractorKind.METADATA
        assert extractor.extract({"route": "ignored"}, {"route": "/home"}) == "/home"

    def test_rejects_other_arities(self) -> None:
        with pytest.raises(MetricDefinitionError, match="take 1 or 2 arguments"):
            MeasurementExtractor.resolve(lambda a, b, c: None)


class TestMetricDescriptor:

    def test_resolves_extractor_once(self) -> None:
        descriptor = MetricDescriptor(name="a.b.c", event_name="a.b", measurement="c")
        assert descriptor.name == ("a", "b", "c")
        assert descriptor.event_name == ("a", "b")
        assert descriptor.extractor == MeasurementExtractor(ExtractorKind.KEY, key="c")
        assert descriptor.unit == "unit"
        assert descriptor.display_name == "a.b.c"

    def test_default_tag_values_is_identity(self) -> None:
        descriptor = MetricDescriptor(name="a.b", event_name="a", measurement="b", tags=["x"])
        assert descriptor.extract_tags({"x": 1, "y": 2}) == {"x": 1}
        assert descriptor.keeps({})

    def test_keep_must_be_callable(self) -> None:
        with pytest.raises(MetricDefinitionError):
            MetricDescriptor(name="a.b", event_name="a", measurement="b", keep=True)
