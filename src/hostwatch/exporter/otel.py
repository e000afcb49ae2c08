"""OpenTelemetry exporter - pushes snapshot gauges via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

from ..config import OtelExporterConfig
from ..core.snapshot import Snapshot
from .base import BaseExporter

logger = logging.getLogger(__name__)

# (name, unit, description)
Gauge = tuple[str, str, str]
Observation = tuple[Gauge, float, dict[str, str]]

CPU_USAGE: Gauge = ("system.cpu.usage_percent", "%", "CPU usage percentage")
MEM_USED: Gauge = ("system.memory.used_bytes", "By", "Memory used in bytes")
MEM_TOTAL: Gauge = ("system.memory.total_bytes", "By", "Total memory in bytes")
SWAP_USED: Gauge = ("system.swap.used_bytes", "By", "Swap used in bytes")
LOAD: Gauge = ("system.cpu.load_average", "1", "Load average")
NET_RX: Gauge = ("system.network.rx_throughput", "By/s", "Receive throughput")
NET_TX: Gauge = ("system.network.tx_throughput", "By/s", "Transmit throughput")
DISK_USAGE: Gauge = ("system.filesystem.usage_percent", "%", "Volume usage percentage")


def snapshot_observations(snapshot: Snapshot) -> Iterator[Observation]:
    """Flatten a snapshot into gauge observations with attributes."""
    yield CPU_USAGE, snapshot.cpu_total_percent, {"cpu": "total"}
    for idx, pct in enumerate(snapshot.cpu_per_core):
        yield CPU_USAGE, pct, {"cpu": str(idx)}
    yield MEM_USED, float(snapshot.memory_used_bytes), {}
    yield MEM_TOTAL, float(snapshot.memory_total_bytes), {}
    yield SWAP_USED, float(snapshot.swap_used_bytes), {}
    for window, value in (("1m", snapshot.load_1m), ("5m", snapshot.load_5m), ("15m", snapshot.load_15m)):
        yield LOAD, value, {"window": window}
    for net in snapshot.interfaces:
        yield NET_RX, net.rx_throughput_bps, {"interface": net.interface}
        yield NET_TX, net.tx_throughput_bps, {"interface": net.interface}
    for vol in snapshot.volumes:
        yield DISK_USAGE, vol.usage_percent, {"mountpoint": vol.mount_point}


class OtelExporter(BaseExporter):
    """Exports snapshot gauges to an OpenTelemetry endpoint.

    Each call to :meth:`export` records gauge values via the OTel SDK; the
    SDK's ``PeriodicExportingMetricReader`` flushes them to the configured
    OTLP/HTTP endpoint. Tests pass their own *reader*.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        if reader is None:
            exporter_kwargs: dict[str, Any] = {
                "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
            }
            if config.headers:
                exporter_kwargs["headers"] = config.headers
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),
                export_interval_millis=config.export_interval_ms,
            )
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter("hostwatch.snapshot")
        self._gauges: dict[str, Any] = {}

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    @property
    def name(self) -> str:
        return "otel"

    def _get_gauge(self, gauge: Gauge) -> Any:
        name, unit, description = gauge
        if name not in self._gauges:
            self._gauges[name] = self._meter.create_gauge(
                name=name,
                unit=unit,
                description=description,
            )
        return self._gauges[name]

    def export(self, snapshot: Snapshot) -> None:
        for gauge, value, attributes in snapshot_observations(snapshot):
            self._get_gauge(gauge).set(value, attributes=attributes)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
