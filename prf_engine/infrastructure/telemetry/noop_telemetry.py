"""Telemetry adapter that records nothing (TELEMETRY_ENABLED=false)."""

from typing import Any

from prf_engine.application.ports import TelemetryPort


class NoopTelemetry(TelemetryPort):
    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        return None

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        return None
