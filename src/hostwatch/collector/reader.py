"""System reader that composes the psutil sub-collectors."""

from __future__ import annotations

import logging
from typing import Any

from ..config import CollectorsConfig
from ..errors import SevereCollectionFailure
from .base import BaseCollector, RawCounters
from .connections import ConnectionCollector
from .cpu import CpuCollector, LoadCollector
from .disk import DiskCollector
from .gpu import GpuCollector
from .memory import MemoryCollector
from .network import NetworkCollector
from .process import ProcessCollector
from .sensors import BatteryCollector, SensorCollector

logger = logging.getLogger(__name__)


class SystemReader:
    """Reads the current raw counters from the local host.

    CPU and memory are always collected and a failure there raises
    :class:`SevereCollectionFailure`. Every other collector is optional:
    when it fails, its fields are left empty for that read.
    """

    def __init__(
        self,
        config: CollectorsConfig | None = None,
        collectors: list[BaseCollector] | None = None,
    ) -> None:
        if collectors is not None:
            self._collectors = list(collectors)
            return

        config = config or CollectorsConfig()
        self._collectors = [CpuCollector(), MemoryCollector()]
        if config.load:
            self._collectors.append(LoadCollector())
        if config.network:
            self._collectors.append(NetworkCollector(
                interface=config.network_interface,
                include_loopback=config.include_loopback,
            ))
        if config.disk:
            self._collectors.append(DiskCollector())
        if config.process:
            self._collectors.append(ProcessCollector())
        if config.sensors:
            self._collectors.append(SensorCollector())
        if config.battery:
            self._collectors.append(BatteryCollector())
        if config.connections:
            self._collectors.append(ConnectionCollector())
        if config.gpu:
            self._collectors.append(GpuCollector())

    @property
    def collector_names(self) -> list[str]:
        return [c.name for c in self._collectors]

    def read(self) -> RawCounters:
        fields: dict[str, Any] = {}
        for collector in self._collectors:
            try:
                fields.update(collector.collect())
            except Exception as exc:
                if collector.required:
                    raise SevereCollectionFailure(
                        f"Collector {collector.name} failed: {exc}"
                    ) from exc
                logger.debug("Collector %s unavailable: %s", collector.name, exc)

        if "cpu_per_core" not in fields or "memory_total" not in fields:
            raise SevereCollectionFailure("No CPU/memory collector produced data")
        return RawCounters(**fields)
