"""Infrastructure layer for the telemetry emitter.

Re-exports the public API surface for convenience::

    from telemetry_emitter.infrastructure import (
        TelemetryBus, default_bus,
        ReporterConfig, BusConfig,
    )
"""

from telemetry_emitter.infrastructure.config import (
    BusConfig,
    ReporterConfig,
    load_config_from_json,
)
from telemetry_emitter.infrastructure.event_bus import (
    SPAN_CONTEXT_KEY,
    HandlerEntry,
    TelemetryBus,
    default_bus,
)

__all__ = [
    # Event bus
    "TelemetryBus",
    "HandlerEntry",
    "SPAN_CONTEXT_KEY",
    "default_bus",
    # Configuration
    "BusConfig",
    "ReporterConfig",
    "load_config_from_json",
]
