"""Event bus infrastructure for the telemetry emitter.

Provides a synchronous pub-sub bus keyed by hierarchical event names and
the span helper that instruments a function call with start/stop/exception
events.  The bus catches and logs handler errors so that a single failing
subscriber never breaks the publish pipeline.
"""

from __future__ import annotations

import logging
import threading
import time
import traceback
import uuid
from collections import defaultdict
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Any

from telemetry_emitter.domain.exceptions import HandlerExistsError, MetricArgumentError
from telemetry_emitter.domain.values import EventName, MetricName, to_segments
from telemetry_emitter.infrastructure.config import BusConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
Handler = Callable[[EventName, Mapping[str, Any], Mapping[str, Any], Any], None]
SpanFunction = Callable[[], tuple]

SPAN_CONTEXT_KEY = "telemetry_span_context"


@dataclass(frozen=True)
class HandlerEntry:
    """A handler attached to the bus.

    ``event_name`` is ``None`` for handlers that receive every event.
    """

    handler_id: Hashable
    event_name: EventName | None
    function: Handler
    config: Any = None


# ===================================================================== #
#  Synchronous Telemetry Bus                                             #
# ===================================================================== #

class TelemetryBus:
    """Thread-safe synchronous pub-sub for telemetry events.

    Handlers are invoked **in registration order** on the publisher's
    thread, as ``handler(event_name, measurements, metadata, config)``.
    A handler that raises is logged and skipped; subsequent handlers still
    execute.

    Usage::

        bus = TelemetryBus()
        bus.subscribe("my-handler", ("http", "request"), my_handler)
        bus.publish(("http", "request"), {"duration": 12}, {"route": "/"})
    """

    def __init__(self, config: BusConfig | None = None) -> None:
        self._config = config or BusConfig()
        self._config.validate()
        self._lock = threading.Lock()
        self._handlers: dict[EventName, list[HandlerEntry]] = defaultdict(list)
        self._global_handlers: list[HandlerEntry] = []
        self._ids: dict[Hashable, HandlerEntry] = {}

    @property
    def config(self) -> BusConfig:
        return self._config

    # -- subscription -------------------------------------------------------

    def subscribe(
        self,
        handler_id: Hashable,
        event_name: MetricName,
        function: Handler,
        config: Any = None,
    ) -> None:
        """Register *function* under *handler_id* for one *event_name*.

        Raises ``HandlerExistsError`` if *handler_id* is already taken.
        """
        entry = HandlerEntry(handler_id, to_segments(event_name), function, config)
        with self._lock:
            self._claim(entry)
            self._handlers[entry.event_name].append(entry)
        logger.debug("Subscribed handler %r to %s", handler_id, entry.event_name)

    def subscribe_all(
        self,
        handler_id: Hashable,
        function: Handler,
        config: Any = None,
    ) -> None:
        """Register *function* to receive **every** published event."""
        entry = HandlerEntry(handler_id, None, function, config)
        with self._lock:
            self._claim(entry)
            self._global_handlers.append(entry)

    def unsubscribe(self, handler_id: Hashable) -> bool:
        """Remove the handler registered as *handler_id*. Returns ``True`` if found."""
        with self._lock:
            entry = self._ids.pop(handler_id, None)
            if entry is None:
                return False
            if entry.event_name is None:
                self._global_handlers.remove(entry)
            else:
                handlers = self._handlers[entry.event_name]
                handlers.remove(entry)
                if not handlers:
                    del self._handlers[entry.event_name]
        logger.debug("Unsubscribed handler %r", handler_id)
        return True

    def _claim(self, entry: HandlerEntry) -> None:
        if entry.handler_id in self._ids:
            raise HandlerExistsError(
                f"Handler {entry.handler_id!r} is already subscribed",
                handler_id=entry.handler_id,
            )
        self._ids[entry.handler_id] = entry

    # -- publishing ---------------------------------------------------------

    def publish(
        self,
        event_name: MetricName,
        measurements: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Publish an event to all matching handlers (global first, then named)."""
        name = to_segments(event_name)
        measurements = measurements if measurements is not None else {}
        metadata = metadata if metadata is not None else {}
        with self._lock:
            snapshot = list(self._global_handlers) + list(self._handlers.get(name, []))

        for entry in snapshot:
            try:
                entry.function(name, measurements, metadata, entry.config)
            except Exception:
                logger.exception(
                    "Error in handler %r for %s", entry.handler_id, ".".join(name)
                )
                if self._config.detach_failing_handlers:
                    self.unsubscribe(entry.handler_id)

    def span(
        self,
        prefix: MetricName,
        start_metadata: Mapping[str, Any] | None,
        function: SpanFunction,
    ) -> Any:
        """Run *function* between ``prefix.start`` and ``prefix.stop`` events.

        *function* must return ``(result, stop_metadata)`` or
        ``(result, extra_measurements, stop_metadata)``.  If it raises,
        ``prefix.exception`` is published and the exception propagates.
        Returns ``result``.
        """
        prefix = to_segments(prefix)
        start_metadata = dict(start_metadata or {})
        span_context = uuid.uuid4().hex
        start_time = time.monotonic_ns()
        self.publish(
            prefix + ("start",),
            {"monotonic_time": start_time, "system_time": time.time_ns()},
            {**start_metadata, SPAN_CONTEXT_KEY: span_context},
        )

        try:
            returned = function()
        except BaseException as exc:
            stop_time = time.monotonic_ns()
            self.publish(
                prefix + ("exception",),
                {"duration": stop_time - start_time, "monotonic_time": stop_time},
                {
                    **start_metadata,
                    SPAN_CONTEXT_KEY: span_context,
                    "kind": "error" if isinstance(exc, Exception) else "exit",
                    "reason": exc,
                    "stacktrace": traceback.extract_tb(exc.__traceback__),
                },
            )
            raise

        result, extra_measurements, stop_metadata = _unpack_span_result(returned)
        stop_time = time.monotonic_ns()
        self.publish(
            prefix + ("stop",),
            {
                **extra_measurements,
                "duration": stop_time - start_time,
                "monotonic_time": stop_time,
            },
            {**stop_metadata, SPAN_CONTEXT_KEY: span_context},
        )
        return result

    # -- introspection / lifecycle ------------------------------------------

    def handler_count(self, event_name: MetricName | None = None) -> int:
        """Return the number of handlers registered.

        If *event_name* is ``None``, returns the total across all event
        names plus globals.
        """
        with self._lock:
            if event_name is not None:
                return len(self._handlers.get(to_segments(event_name), []))
            return len(self._ids)

    def list_handlers(self, prefix: MetricName = ()) -> list[HandlerEntry]:
        """Return named handlers whose event name starts with *prefix*."""
        prefix = tuple(prefix) if not isinstance(prefix, str) else to_segments(prefix)
        with self._lock:
            return [
                entry
                for name, entries in self._handlers.items()
                if name[: len(prefix)] == prefix
                for entry in entries
            ]

    def clear(self) -> None:
        """Remove all registered handlers."""
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()
            self._ids.clear()


def _unpack_span_result(returned: Any) -> tuple[Any, Mapping[str, Any], Mapping[str, Any]]:
    if isinstance(returned, tuple):
        if len(returned) == 2:
            return returned[0], {}, returned[1]
        if len(returned) == 3:
            return returned
    raise MetricArgumentError(
        "Span functions must return (result, stop_metadata) or "
        f"(result, extra_measurements, stop_metadata), got {returned!r}",
        argument="function",
        value=returned,
    )


#: Bus used by the module-level emitter functions and by reporters created
#: without an explicit bus.
default_bus = TelemetryBus()

