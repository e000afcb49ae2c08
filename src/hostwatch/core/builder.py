"""Turn one raw read plus the previous snapshot into a new snapshot."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from ..collector.base import RawCounters, RawInterface, RawProcess, RawVolume
from .snapshot import DiskSample, NetworkSample, ProcessNode, ProcessSample, Snapshot

TOP_PROCESS_COUNT = 10


def _saturating_sub(current: int, previous: int) -> int:
    return current - previous if current > previous else 0


def _rate(current: int, previous: int, elapsed_ms: int) -> float:
    return _saturating_sub(current, previous) / (elapsed_ms / 1000.0)


def build_interfaces(
    raw: Iterable[RawInterface],
    previous: Snapshot | None,
    now: int,
) -> tuple[NetworkSample, ...]:
    """Attach per-second throughput to the raw interface counters.

    A counter that went down since the previous snapshot (interface reset)
    contributes a rate of 0 for this tick. Interfaces without a previous
    sample also report 0.
    """
    prev_by_name: dict[str, NetworkSample] = {}
    elapsed_ms = 1
    if previous is not None:
        prev_by_name = {s.interface: s for s in previous.interfaces}
        elapsed_ms = max(now - previous.captured_at, 1)

    samples: list[NetworkSample] = []
    seen: set[str] = set()
    for iface in raw:
        if iface.name in seen:
            continue
        seen.add(iface.name)
        rx_bps = tx_bps = 0.0
        prev = prev_by_name.get(iface.name)
        if prev is not None:
            rx_bps = _rate(iface.rx_bytes, prev.rx_bytes, elapsed_ms)
            tx_bps = _rate(iface.tx_bytes, prev.tx_bytes, elapsed_ms)
        samples.append(NetworkSample(
            interface=iface.name,
            rx_bytes=iface.rx_bytes,
            tx_bytes=iface.tx_bytes,
            rx_packets=iface.rx_packets,
            tx_packets=iface.tx_packets,
            rx_errors=iface.rx_errors,
            tx_errors=iface.tx_errors,
            rx_throughput_bps=rx_bps,
            tx_throughput_bps=tx_bps,
        ))
    return tuple(samples)


def build_volumes(raw: Iterable[RawVolume]) -> tuple[DiskSample, ...]:
    volumes: list[DiskSample] = []
    seen: set[str] = set()
    for vol in raw:
        if vol.mount_point in seen:
            continue
        seen.add(vol.mount_point)
        used = _saturating_sub(vol.total_bytes, vol.available_bytes)
        volumes.append(DiskSample(
            name=vol.name or vol.mount_point,
            mount_point=vol.mount_point,
            total_bytes=vol.total_bytes,
            available_bytes=vol.available_bytes,
            used_bytes=used,
            usage_percent=used / vol.total_bytes * 100.0 if vol.total_bytes else 0.0,
        ))
    return tuple(volumes)


def _unique_processes(processes: Iterable[RawProcess]) -> dict[int, RawProcess]:
    by_pid: dict[int, RawProcess] = {}
    for proc in processes:
        by_pid.setdefault(proc.pid, proc)
    return by_pid


def build_process_forest(processes: Iterable[RawProcess]) -> tuple[ProcessNode, ...]:
    """Reconstruct process trees from a flat list with parent links.

    Every pid ends up in the forest exactly once: under its parent when the
    parent is in the list, otherwise as a root. Roots carry no parent_pid.
    Children and roots are ordered by pid.
    """
    by_pid = _unique_processes(processes)

    children: dict[int, list[int]] = defaultdict(list)
    roots: list[int] = []
    for pid, proc in by_pid.items():
        parent = proc.parent_pid
        if parent is None or parent == pid or parent not in by_pid:
            roots.append(pid)
        else:
            children[parent].append(pid)

    placed: set[int] = set()
    forest: list[ProcessNode] = []

    def assemble(root: int) -> ProcessNode:
        # iterative post-order; deep chains would overflow the recursion limit
        built: dict[int, ProcessNode] = {}
        kids_of: dict[int, list[int]] = {}
        stack: list[tuple[int, bool]] = [(root, False)]
        placed.add(root)
        while stack:
            pid, expanded = stack.pop()
            if not expanded:
                kids = [c for c in sorted(children.get(pid, ())) if c not in placed]
                placed.update(kids)
                kids_of[pid] = kids
                stack.append((pid, True))
                stack.extend((c, False) for c in reversed(kids))
                continue
            proc = by_pid[pid]
            built[pid] = ProcessNode(
                pid=pid,
                name=proc.name,
                cpu_percent=proc.cpu_percent,
                memory_bytes=proc.memory_bytes,
                parent_pid=None if pid == root else proc.parent_pid,
                children=tuple(built.pop(c) for c in kids_of.pop(pid)),
            )
        return built[root]

    for pid in sorted(roots):
        forest.append(assemble(pid))

    # whatever is left hangs off a parent cycle; break each cycle at its smallest pid
    for pid in sorted(by_pid):
        if pid in placed:
            continue
        trail: list[int] = []
        node = pid
        while node not in trail:
            trail.append(node)
            node = by_pid[node].parent_pid
        forest.append(assemble(min(trail[trail.index(node):])))

    forest.sort(key=lambda node: node.pid)
    return tuple(forest)


def select_top_processes(
    processes: Iterable[RawProcess],
    limit: int = TOP_PROCESS_COUNT,
) -> tuple[ProcessSample, ...]:
    """Highest CPU first; equal CPU keeps the order of the raw read."""
    ranked = sorted(_unique_processes(processes).values(), key=lambda p: -p.cpu_percent)
    return tuple(
        ProcessSample(
            pid=p.pid,
            name=p.name,
            cpu_percent=p.cpu_percent,
            memory_bytes=p.memory_bytes,
            status=p.status,
        )
        for p in ranked[:limit]
    )


def build_snapshot(raw: RawCounters, previous: Snapshot | None, now: int) -> Snapshot:
    """Build an immutable :class:`Snapshot` from *raw* captured at *now* (ms).

    *previous* is the snapshot of the preceding tick, used only for
    throughput. The function never raises for missing optional data; empty
    raw sequences simply produce empty snapshot sequences.
    """
    cores = tuple(float(pct) for pct in raw.cpu_per_core)
    cpu_total = sum(cores) / len(cores) if cores else 0.0
    load1, load5, load15 = raw.load_avg

    return Snapshot(
        captured_at=now,
        cpu_total_percent=cpu_total,
        cpu_per_core=cores,
        memory_used_bytes=min(raw.memory_used, raw.memory_total),
        memory_total_bytes=raw.memory_total,
        swap_used_bytes=min(raw.swap_used, raw.swap_total),
        swap_total_bytes=raw.swap_total,
        load_1m=max(0.0, load1),
        load_5m=max(0.0, load5),
        load_15m=max(0.0, load15),
        interfaces=build_interfaces(raw.interfaces, previous, now),
        volumes=build_volumes(raw.volumes),
        top_processes=select_top_processes(raw.processes),
        process_forest=build_process_forest(raw.processes),
        sensors=tuple(raw.sensors),
        batteries=tuple(raw.batteries),
        gpus=tuple(raw.gpus),
        connections=tuple(raw.connections),
        containers=tuple(raw.containers),
    )
