"""Prometheus metrics sink for ingested readings."""

from __future__ import annotations

from typing import Optional, Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from models.records import NormalizedReading

_LABELS = ("device_id", "location")


class MetricsSink:
    """Owns a registry instead of using the process-global default one."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        include_runtime_collectors: bool = True,
    ) -> None:
        self.registry = registry or CollectorRegistry()
        if include_runtime_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.temperature = Gauge(
            "climate_temperature_celsius",
            "Current temperature in Celsius",
            _LABELS,
            registry=self.registry,
        )
        self.humidity = Gauge(
            "climate_humidity_percent",
            "Current humidity percentage",
            _LABELS,
            registry=self.registry,
        )
        self.data_points = Counter(
            "climate_data_points",
            "Total number of climate data points received",
            _LABELS,
            registry=self.registry,
        )

    def record(self, reading: NormalizedReading) -> None:
        labels = {"device_id": reading.device_id, "location": reading.location}
        self.temperature.labels(**labels).set(reading.temperature)
        self.humidity.labels(**labels).set(reading.humidity)
        self.data_points.labels(**labels).inc()

    def render(self) -> Tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
