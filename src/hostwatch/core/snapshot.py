"""Immutable snapshot types published by the supervisor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class NetworkSample:
    """Cumulative counters and derived throughput for one interface."""

    interface: str
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0
    rx_throughput_bps: float = 0.0
    tx_throughput_bps: float = 0.0


@dataclass(frozen=True)
class DiskSample:
    """Space figures for one mounted volume."""

    name: str
    mount_point: str
    total_bytes: int = 0
    available_bytes: int = 0
    used_bytes: int = 0
    usage_percent: float = 0.0


@dataclass(frozen=True)
class ProcessSample:
    """Flat entry of the top-processes list."""

    pid: int
    name: str
    cpu_percent: float = 0.0
    memory_bytes: int = 0
    status: str = ""


@dataclass(frozen=True)
class ProcessNode:
    """A process and the subtree of processes it spawned."""

    pid: int
    name: str
    cpu_percent: float = 0.0
    memory_bytes: int = 0
    parent_pid: int | None = None
    children: tuple[ProcessNode, ...] = ()

    def walk(self) -> Iterator[ProcessNode]:
        """Yield this node and all descendants, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(frozen=True)
class SensorSample:
    label: str
    temperature_celsius: float
    high: float | None = None
    critical: float | None = None


@dataclass(frozen=True)
class BatterySample:
    name: str
    charge_percent: float
    state: str = "unknown"  # "charging" | "discharging" | "full" | "unknown"
    seconds_left: int | None = None


@dataclass(frozen=True)
class GpuSample:
    name: str
    usage_percent: float = 0.0
    memory_used_bytes: int = 0
    memory_total_bytes: int = 0
    temperature_celsius: float = 0.0
    fan_speed_percent: float = 0.0


@dataclass(frozen=True)
class ConnectionSample:
    protocol: str
    local_address: str
    remote_address: str = ""
    state: str = ""
    pid: int | None = None


@dataclass(frozen=True)
class ContainerSample:
    id: str
    name: str
    state: str = "unknown"
    cpu_percent: float = 0.0
    memory_usage_bytes: int = 0
    memory_limit_bytes: int = 0
    network_rx_bytes: int = 0
    network_tx_bytes: int = 0
    disk_read_bytes: int = 0
    disk_write_bytes: int = 0


@dataclass(frozen=True)
class Snapshot:
    """One point-in-time capture of host metrics.

    Built once by :func:`hostwatch.core.builder.build_snapshot` and never
    mutated afterwards, so the same instance can be handed to any number of
    consumers without copying.
    """

    captured_at: int  # ms since epoch
    cpu_total_percent: float = 0.0
    cpu_per_core: tuple[float, ...] = ()
    memory_used_bytes: int = 0
    memory_total_bytes: int = 0
    swap_used_bytes: int = 0
    swap_total_bytes: int = 0
    load_1m: float = 0.0
    load_5m: float = 0.0
    load_15m: float = 0.0
    interfaces: tuple[NetworkSample, ...] = ()
    volumes: tuple[DiskSample, ...] = ()
    top_processes: tuple[ProcessSample, ...] = ()
    process_forest: tuple[ProcessNode, ...] = ()
    sensors: tuple[SensorSample, ...] = ()
    batteries: tuple[BatterySample, ...] = ()
    gpus: tuple[GpuSample, ...] = ()
    connections: tuple[ConnectionSample, ...] = ()
    containers: tuple[ContainerSample, ...] = ()

    @property
    def memory_percent(self) -> float:
        if not self.memory_total_bytes:
            return 0.0
        return self.memory_used_bytes / self.memory_total_bytes * 100.0

    @property
    def swap_percent(self) -> float:
        if not self.swap_total_bytes:
            return 0.0
        return self.swap_used_bytes / self.swap_total_bytes * 100.0

    def interface(self, name: str) -> NetworkSample | None:
        for sample in self.interfaces:
            if sample.interface == name:
                return sample
        return None

    def volume(self, mount_point: str) -> DiskSample | None:
        for sample in self.volumes:
            if sample.mount_point == mount_point:
                return sample
        return None

    def iter_processes(self) -> Iterator[ProcessNode]:
        """Walk every node of the process forest."""
        for root in self.process_forest:
            yield from root.walk()
