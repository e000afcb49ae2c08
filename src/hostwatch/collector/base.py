"""Raw counter types and the base interface for sub-collectors."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..core.snapshot import (
    BatterySample,
    ConnectionSample,
    ContainerSample,
    GpuSample,
    SensorSample,
)


@dataclass
class RawInterface:
    """Cumulative counters for one network interface as read from the OS."""

    name: str
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0


@dataclass
class RawVolume:
    """Space figures for one mounted volume."""

    name: str
    mount_point: str
    total_bytes: int = 0
    available_bytes: int = 0


@dataclass
class RawProcess:
    """One entry of the flat process list."""

    pid: int
    name: str = ""
    parent_pid: int | None = None
    cpu_percent: float = 0.0
    memory_bytes: int = 0
    status: str = ""


@dataclass
class RawCounters:
    """Everything a single read of the host returns.

    The CPU and memory base has no default; every other field defaults to
    empty so a sub-collector that is unavailable simply contributes nothing.
    """

    cpu_per_core: list[float]
    memory_total: int
    memory_used: int
    swap_total: int = 0
    swap_used: int = 0
    load_avg: tuple[float, float, float] = (0.0, 0.0, 0.0)
    interfaces: list[RawInterface] = field(default_factory=list)
    volumes: list[RawVolume] = field(default_factory=list)
    processes: list[RawProcess] = field(default_factory=list)
    sensors: list[SensorSample] = field(default_factory=list)
    batteries: list[BatterySample] = field(default_factory=list)
    gpus: list[GpuSample] = field(default_factory=list)
    connections: list[ConnectionSample] = field(default_factory=list)
    containers: list[ContainerSample] = field(default_factory=list)


class RawReader(Protocol):
    """Anything that can produce the current raw counters on demand."""

    def read(self) -> RawCounters: ...


class BaseCollector(abc.ABC):
    """Abstract base class for one raw sub-collector.

    :meth:`collect` returns the :class:`RawCounters` fields this collector
    is responsible for, keyed by field name.
    """

    #: A failure of a required collector makes the whole read unusable.
    required: bool = False

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name used in configuration and logs."""

    @abc.abstractmethod
    def collect(self) -> dict[str, Any]:
        """Read current values from the OS."""
