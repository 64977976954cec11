#!/usr/bin/env python3
"""Example 01: Emit metrics and inspect them with a capture reporter.

Demonstrates:
- Declaring metrics with counter / last_value / summary
- Emitting them with increment, gauge, emit and measure
- Reading back what a CaptureReporter recorded, including sentinels

Run:
    PYTHONPATH=src python examples/01_capture_metrics.py
"""

from __future__ import annotations

import logging
import time

from telemetry_emitter import CaptureReporter, emit, gauge, increment, measure
from telemetry_emitter import metrics as m


def fetch_user(user_id: int) -> tuple[dict, dict]:
    time.sleep(0.01)
    return {"id": user_id, "name": "Ada"}, {"status": "ok"}


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    metrics = [
        m.counter("service.request.count"),
        m.last_value("vm.memory.total", unit="byte"),
        m.summary("users.fetch.stop.duration", tags=["status"], unit="native"),
        m.summary("http.request.response_time", tags=["route"], drop=lambda md: md.get("health")),
    ]

    with CaptureReporter(metrics=metrics) as reporter:
        increment("service.request.count")
        gauge("vm.memory.total", 1_048_576)
        user = measure("users.fetch", {"user_id": 7}, lambda: fetch_user(7))
        emit("http.request", {"response_time": 12}, {"route": "/users"})
        emit("http.request", {"response_time": 1}, {"route": "/health", "health": True})

        print("=== Captured metrics ===")
        print(f"Fetched: {user}")
        for name, state in reporter.snapshot().items():
            print(f"{name}: {state}")
        print()
        print("Done.")


if __name__ == "__main__":
    main()
