"""Reporters that consume the events published by the emitter.

Public API
----------
- :class:`CaptureReporter` -- records outcomes in memory for test assertions
- :func:`fold` / :func:`extract` -- the reporter's pure delivery steps
"""

from telemetry_emitter.reporters.capture import CaptureReporter, extract, fold

__all__ = [
    "CaptureReporter",
    "extract",
    "fold",
]
