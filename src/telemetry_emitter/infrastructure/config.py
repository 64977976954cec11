"""Configuration dataclasses for the telemetry emitter.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ReporterConfigError`` (a ``ValueError``) on invalid values.

Configs are **frozen** so they can be shared between a bus, its reporters
and their actor threads without risking silent mutation.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

from telemetry_emitter.domain.exceptions import ReporterConfigError


# ===================================================================== #
#  Reporter Configuration                                                #
# ===================================================================== #

@dataclass(frozen=True)
class ReporterConfig:
    """Parameters of a capture reporter actor.

    Attributes
    ----------
    call_timeout:
        Seconds a caller waits for the actor to reply to a record or query
        call.  ``None`` waits forever.
    name:
        Optional label used for the actor thread and in log messages.
    """

    call_timeout: float | None = 5.0
    name: str = ""

    def validate(self) -> None:
        """Raise ``ReporterConfigError`` if any field is out of valid range."""
        if self.call_timeout is not None and self.call_timeout <= 0:
            raise ReporterConfigError(
                f"call_timeout must be > 0 or None, got {self.call_timeout}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReporterConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Bus Configuration                                                     #
# ===================================================================== #

@dataclass(frozen=True)
class BusConfig:
    """Delivery policy of a telemetry bus.

    Attributes
    ----------
    detach_failing_handlers:
        If ``True``, a handler that raises is unsubscribed after the failure
        is logged.  Otherwise it stays attached and keeps receiving events.
    """

    detach_failing_handlers: bool = False

    def validate(self) -> None:
        if not isinstance(self.detach_failing_handlers, bool):
            raise ReporterConfigError(
                "detach_failing_handlers must be a bool, "
                f"got {self.detach_failing_handlers!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BusConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "reporter": ReporterConfig,
    "bus": BusConfig,
}


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    The JSON is expected to be an object whose top-level keys correspond to
    config section names (``reporter``, ``bus``).  Unknown sections are
    preserved as raw dicts.
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ReporterConfigError("Top-level JSON must be an object")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    return result
