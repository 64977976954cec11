"""Domain exceptions for the telemetry emitter.

All library exceptions inherit from ``TelemetryEmitterError`` so callers can
catch the full family with a single ``except`` clause when needed.  Usage
errors also inherit from the matching builtin (``ValueError`` or
``TypeError``) so they read naturally at call sites.
"""

from __future__ import annotations

from typing import Any


class TelemetryEmitterError(Exception):
    """Base exception for all telemetry emitter errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class MetricNameError(TelemetryEmitterError, ValueError):
    """Raised when a metric name cannot be split into event name and measurement.

    ``increment`` and ``gauge`` need at least two segments: the last one is
    the measurement key, the others form the event name.
    """

    def __init__(
        self,
        message: str = "Malformed metric name",
        metric: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.metric = metric


class MetricArgumentError(TelemetryEmitterError, TypeError):
    """Raised when an emitter argument has the wrong type."""

    def __init__(
        self,
        message: str = "Invalid metric argument",
        argument: str = "",
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.argument = argument
        self.value = value


class MetricDefinitionError(TelemetryEmitterError, ValueError):
    """Raised when a metric declaration carries invalid options."""


class ReporterConfigError(TelemetryEmitterError, ValueError):
    """Raised when a reporter or bus is configured incorrectly."""


class ReporterStoppedError(TelemetryEmitterError):
    """Raised when calling a reporter whose actor is no longer running."""


class ReporterTimeoutError(TelemetryEmitterError, TimeoutError):
    """Raised when a reporter call does not get a reply within the timeout."""

    def __init__(
        self,
        message: str = "Reporter call timed out",
        timeout: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.timeout = timeout


class HandlerExistsError(TelemetryEmitterError, ValueError):
    """Raised when subscribing a handler id that is already registered."""

    def __init__(
        self,
        message: str = "Handler already exists",
        handler_id: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.handler_id = handler_id
