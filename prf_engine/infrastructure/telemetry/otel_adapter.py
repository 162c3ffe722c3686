"""OpenTelemetry adapter for expansion metrics.

Why: Expansion rate, merged term counts and second-pass latency show whether
PRF pays off in production; OpenTelemetry keeps that vendor-neutral.
"""

from dataclasses import dataclass
from importlib import import_module
from typing import Any

import structlog

from prf_engine.application.ports import TelemetryPort

logger = structlog.get_logger(__name__)


@dataclass
class OtelConfig:
    """Configuration for OpenTelemetry."""

    service_name: str = "prf-engine"
    otlp_endpoint: str | None = None  # e.g., "http://localhost:4317"
    environment: str = "production"
    enable_console: bool = False


class OpenTelemetryAdapter(TelemetryPort):
    """OpenTelemetry adapter for counters and histograms.

    Metrics:
    - Counters: incr() for events (expansions by status, merged terms)
    - Histograms: observe() for distributions (search latency)

    Note: Without opentelemetry-sdk installed every call is a no-op.
    """

    def __init__(self, cfg: OtelConfig) -> None:
        self._cfg = cfg
        self._meter: Any | None = None
        self._counters: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}
        self._init_otel()

    @property
    def enabled(self) -> bool:
        return self._meter is not None

    def _init_otel(self) -> None:
        try:
            otel_sdk = import_module("opentelemetry.sdk.metrics")
            otel_export = import_module("opentelemetry.sdk.metrics.export")
            otel_metrics = import_module("opentelemetry.metrics")
            otel_resources = import_module("opentelemetry.sdk.resources")

            resource = otel_resources.Resource.create(
                {
                    "service.name": self._cfg.service_name,
                    "deployment.environment": self._cfg.environment,
                }
            )

            readers = []
            if self._cfg.otlp_endpoint:
                otel_otlp = import_module("opentelemetry.exporter.otlp.proto.grpc.metric_exporter")
                exporter = otel_otlp.OTLPMetricExporter(endpoint=self._cfg.otlp_endpoint)
                readers.append(otel_export.PeriodicExportingMetricReader(exporter))
            if self._cfg.enable_console:
                readers.append(
                    otel_export.PeriodicExportingMetricReader(otel_export.ConsoleMetricExporter())
                )

            provider = otel_sdk.MeterProvider(resource=resource, metric_readers=readers)
            otel_metrics.set_meter_provider(provider)
            self._meter = otel_metrics.get_meter(__name__)
        except Exception as ex:
            # Degrade to no-op metrics
            logger.info("telemetry_disabled", reason=str(ex))
            self._meter = None

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        """Increment a counter metric.

        Examples:
            - incr("qe.expansions.total", {"status": "expanded"})
            - incr("qe.terms.merged", {"model": "Bo1"})
        """
        if self._meter is None:
            return
        try:
            if name not in self._counters:
                self._counters[name] = self._meter.create_counter(
                    name=name, description=f"Counter for {name}"
                )
            self._counters[name].add(1, attributes=tags or {})
        except Exception:
            # Metrics never break a search
            logger.debug("telemetry_incr_failed", metric=name, exc_info=True)

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Record a value on a histogram metric.

        Examples:
            - observe("prf.search.latency_ms", 12.5, {"qe": "on"})
        """
        if self._meter is None:
            return
        try:
            if name not in self._histograms:
                self._histograms[name] = self._meter.create_histogram(
                    name=name, description=f"Histogram for {name}"
                )
            self._histograms[name].record(value, attributes=tags or {})
        except Exception:
            logger.debug("telemetry_observe_failed", metric=name, exc_info=True)
