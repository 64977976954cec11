"""Capture reporter -- records measurements in memory for test assertions.

The :class:`CaptureReporter` subscribes to the event names of a list of
metric descriptors and, for every delivered event, records one outcome per
descriptor.  It is useful for testing but nothing else.

Design notes
~~~~~~~~~~~~
* The reporter is a single actor: one thread drains a mailbox of call/reply
  messages, so recorded state is only ever touched by that thread.
* Outcomes are computed on the publisher's thread; only the fold into
  recorded state goes through the mailbox.  The publisher blocks until the
  fold is done, so state is current as soon as ``publish`` returns.
* A descriptor whose extraction raises is recorded as ``Outcome.INVALID``
  and never affects its siblings.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import defaultdict
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

from telemetry_emitter.domain.enums import Outcome
from telemetry_emitter.domain.exceptions import (
    ReporterConfigError,
    ReporterStoppedError,
    ReporterTimeoutError,
)
from telemetry_emitter.domain.values import (
    EventName,
    Merged,
    MetricDescriptor,
    MetricName,
    RecordedMetric,
    RecordedState,
    RecordedValue,
    Stacked,
    display_name,
)
from telemetry_emitter.infrastructure.config import ReporterConfig
from telemetry_emitter.infrastructure.event_bus import TelemetryBus, default_bus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Folding
# ---------------------------------------------------------------------------

def fold(state: RecordedState | None, outcome: RecordedValue) -> RecordedState:
    """Fold *outcome* into the recorded *state* of one event name.

    Records with a mapping measurement merge into a ``Merged`` state; any
    other outcome is pushed onto the front of a ``Stacked`` state, wrapping
    a previously merged record first.
    """
    if isinstance(outcome, RecordedMetric) and outcome.is_mapping:
        if state is None:
            return Merged(outcome)
        if isinstance(state, Merged):
            return Merged(outcome.merged_with(state.record))
    if state is None:
        return Stacked((outcome,))
    if isinstance(state, Merged):
        return Stacked((outcome, state.record))
    return Stacked((outcome, *state.items))


def extract(
    metric: MetricDescriptor,
    measurements: Mapping[str, Any],
    metadata: Mapping[str, Any],
) -> RecordedValue:
    """Compute the outcome of one descriptor for one delivered event.

    Exceptions raised by the descriptor's functions propagate.
    """
    value = metric.extractor.extract(measurements, metadata)
    if value is None:
        return Outcome.MISSING
    if isinstance(value, Mapping):
        value = dict(value)
    if not metric.keeps(metadata):
        return Outcome.DROPPED
    return RecordedMetric(
        metric=metric,
        measurement=value,
        unit=metric.unit,
        tags=metric.extract_tags(metadata),
    )


# ---------------------------------------------------------------------------
# Actor messages
# ---------------------------------------------------------------------------

@dataclass
class _Call:
    request: tuple[Any, ...]
    reply: Future = field(default_factory=Future)


_STOP = object()


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class CaptureReporter:
    """Subscribes to the bus and records outcomes per event name.

    Parameters
    ----------
    metrics:
        Metric descriptors to capture.  Required.
    bus:
        Bus to subscribe to; defaults to the process-wide bus.
    config:
        Actor settings (call timeout, thread name).

    Usage::

        with CaptureReporter(metrics=[counter("service.request.count")]) as reporter:
            increment("service.request.count")
            record = reporter.recorded("service.request")
            assert record.measurement == {"count": 1}
    """

    def __init__(
        self,
        metrics: Iterable[MetricDescriptor] | None = None,
        *,
        bus: TelemetryBus | None = None,
        config: ReporterConfig | None = None,
    ) -> None:
        if metrics is None:
            raise ReporterConfigError(
                f"the metrics option is required by {type(self).__name__}"
            )
        self._config = config or ReporterConfig()
        self._config.validate()
        self._bus = bus if bus is not None else default_bus
        self._groups = self._group(metrics)
        self._recorded: dict[str, RecordedState] = {}
        self._handler_ids: list[tuple[Any, ...]] = []
        self._mailbox: queue.Queue[Any] = queue.Queue()
        self._lifecycle_lock = threading.Lock()
        self._running = True
        self._thread = threading.Thread(
            target=self._loop,
            name=self._config.name or f"{type(self).__name__}-{id(self):x}",
            daemon=True,
        )
        self._thread.start()

        try:
            for event_name, descriptors in self._groups.items():
                handler_id = (type(self).__name__, event_name, id(self))
                self._bus.subscribe(handler_id, event_name, self.handle_event, descriptors)
                self._handler_ids.append(handler_id)
        except Exception:
            self.stop()
            raise
        logger.debug(
            "%s subscribed to %d event names", self._thread.name, len(self._handler_ids)
        )

    @staticmethod
    def _group(
        metrics: Iterable[MetricDescriptor],
    ) -> dict[EventName, tuple[MetricDescriptor, ...]]:
        groups: dict[EventName, list[MetricDescriptor]] = defaultdict(list)
        for metric in metrics:
            if not isinstance(metric, MetricDescriptor):
                raise ReporterConfigError(
                    f"metrics must be MetricDescriptor instances, got {metric!r}"
                )
            groups[metric.event_name].append(metric)
        return {name: tuple(group) for name, group in groups.items()}

    # -- lifecycle ------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def event_names(self) -> list[EventName]:
        """Event names this reporter subscribed to."""
        return list(self._groups)

    def stop(self) -> None:
        """Unsubscribe every handler and stop the actor.  Safe to call twice."""
        with self._lifecycle_lock:
            if not self._running:
                return
            for handler_id in self._handler_ids:
                self._bus.unsubscribe(handler_id)
            self._handler_ids.clear()
            self._running = False
            self._mailbox.put(_STOP)
        if threading.current_thread() is not self._thread:
            self._thread.join()
        logger.debug("%s stopped", self._thread.name)

    def __enter__(self) -> CaptureReporter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    # -- bus callback ---------------------------------------------------------

    def handle_event(
        self,
        event_name: EventName,
        measurements: Mapping[str, Any],
        metadata: Mapping[str, Any],
        metrics: tuple[MetricDescriptor, ...],
    ) -> None:
        """Record one outcome per descriptor in *metrics*."""
        name = display_name(event_name)
        for metric in metrics:
            try:
                outcome = extract(metric, measurements, metadata)
            except Exception:
                logger.exception("Could not format metric %r", metric)
                outcome = Outcome.INVALID
            self.record(name, outcome)

    # -- calls ----------------------------------------------------------------

    def record(self, event_name: str, outcome: RecordedValue) -> None:
        """Fold *outcome* into the state recorded under *event_name*."""
        self._call("record", event_name, outcome)

    def recorded(self, event_name: MetricName) -> RecordedMetric | list[RecordedValue] | None:
        """Return what was recorded under *event_name*.

        A single :class:`RecordedMetric` while only mapping measurements were
        recorded, a most-recent-first list once anything else was, and
        ``None`` if nothing was.
        """
        return self._call("recorded", display_name(event_name))

    def snapshot(self) -> dict[str, RecordedMetric | list[RecordedValue]]:
        """Return everything recorded so far, keyed by event name."""
        return self._call("snapshot")

    def _call(self, *request: Any) -> Any:
        message = _Call(request)
        with self._lifecycle_lock:
            if not self._running:
                raise ReporterStoppedError(f"{self._thread.name} is not running")
            self._mailbox.put(message)
        timeout = self._config.call_timeout
        try:
            return message.reply.result(timeout=timeout)
        except FutureTimeoutError as exc:
            raise ReporterTimeoutError(
                f"{self._thread.name} did not reply to {request[0]!r} within {timeout}s",
                timeout=timeout,
            ) from exc

    # -- actor ----------------------------------------------------------------

    def _loop(self) -> None:
        while True:
            message = self._mailbox.get()
            if message is _STOP:
                break
            if not message.reply.set_running_or_notify_cancel():
                continue
            try:
                result = self._handle_call(*message.request)
            except Exception as exc:
                logger.exception("%s failed to handle %r", self._thread.name, message.request[0])
                message.reply.set_exception(exc)
            else:
                message.reply.set_result(result)

        while True:
            try:
                message = self._mailbox.get_nowait()
            except queue.Empty:
                break
            if message is not _STOP:
                message.reply.set_exception(
                    ReporterStoppedError(f"{self._thread.name} stopped")
                )

    def _handle_call(self, kind: str, *args: Any) -> Any:
        if kind == "record":
            event_name, outcome = args
            self._recorded[event_name] = fold(self._recorded.get(event_name), outcome)
            return None
        if kind == "recorded":
            state = self._recorded.get(args[0])
            return state.unwrap() if state is not None else None
        if kind == "snapshot":
            return {name: state.unwrap() for name, state in self._recorded.items()}
        raise ValueError(f"Unknown reporter call {kind!r}")
