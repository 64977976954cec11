"""Tests for ReporterConfig, BusConfig and the JSON loader."""

from __future__ import annotations

import json

import pytest

from telemetry_emitter.domain.exceptions import ReporterConfigError
from telemetry_emitter.infrastructure.config import (
    BusConfig,
    ReporterConfig,
    load_config_from_json,
)
from telemetry_emitter.infrastructure.event_bus import TelemetryBus
from telemetry_emitter.reporters.capture import CaptureReporter


class TestReporterConfig:

    def test_defaults(self) -> None:
        cfg = ReporterConfig()
        assert cfg.call_timeout == 5.0
        cfg.validate()

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ReporterConfigError, match="call_timeout"):
            ReporterConfig(call_timeout=0).validate()

    def test_none_timeout_is_valid(self) -> None:
        ReporterConfig(call_timeout=None).validate()

    def test_from_dict_ignores_unknown_keys(self) -> None:
        cfg = ReporterConfig.from_dict({"call_timeout": 1.5, "name": "r", "color": "red"})
        assert cfg.to_dict() == {"call_timeout": 1.5, "name": "r"}

    def test_reporter_validates_config(self) -> None:
        with pytest.raises(ReporterConfigError):
            CaptureReporter(metrics=[], bus=TelemetryBus(), config=ReporterConfig(call_timeout=-1))


class TestBusConfig:

    def test_rejects_non_bool(self) -> None:
        with pytest.raises(ReporterConfigError):
            TelemetryBus(BusConfig(detach_failing_handlers="yes"))  # type: ignore[arg-type]


class TestLoadConfig:

    def test_sections(self) -> None:
        raw = json.dumps({
            "reporter": {"call_timeout": 2},
            "bus": {"detach_failing_handlers": True},
            "custom": {"x": 1},
        })
        loaded = load_config_from_json(raw)
        assert loaded["reporter"] == ReporterConfig(call_timeout=2)
        assert loaded["bus"].detach_failing_handlers is True
        assert loaded["custom"] == {"x": 1}

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(ReporterConfigError):
            load_config_from_json("[1, 2]")
