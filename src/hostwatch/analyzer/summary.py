"""Summary statistics over a sequence of snapshots."""

from __future__ import annotations

import json
import statistics
from dataclasses import asdict, dataclass, field
from pathlib import Path

from ..core.snapshot import Snapshot
from .trends import (
    Anomaly,
    TrendAnalysis,
    analyze_cpu_trend,
    analyze_memory_trend,
    detect_cpu_anomalies,
    detect_memory_anomalies,
)


@dataclass
class InterfacePeak:
    """Peak and mean throughput for one interface."""

    interface: str
    max_rx_bps: float = 0.0
    max_tx_bps: float = 0.0
    avg_rx_bps: float = 0.0
    avg_tx_bps: float = 0.0


@dataclass
class HistorySummary:
    """Summary statistics for a run of snapshots."""

    snapshot_count: int = 0
    start_time: int = 0
    end_time: int = 0
    duration_ms: int = 0
    avg_cpu_percent: float = 0.0
    p95_cpu_percent: float = 0.0
    max_cpu_percent: float = 0.0
    avg_memory_percent: float = 0.0
    max_memory_percent: float = 0.0
    max_swap_percent: float = 0.0
    max_load_1m: float = 0.0
    interfaces: list[InterfacePeak] = field(default_factory=list)
    busiest_processes: list[str] = field(default_factory=list)
    cpu_trend: TrendAnalysis = field(default_factory=lambda: TrendAnalysis("cpu_usage"))
    memory_trend: TrendAnalysis = field(default_factory=lambda: TrendAnalysis("memory_usage"))
    anomalies: list[Anomaly] = field(default_factory=list)


def _percentile(data: list[float], pct: float) -> float:
    if not data:
        return 0.0
    sorted_data = sorted(data)
    idx = (pct / 100.0) * (len(sorted_data) - 1)
    low = int(idx)
    high = min(low + 1, len(sorted_data) - 1)
    frac = idx - low
    return sorted_data[low] * (1 - frac) + sorted_data[high] * frac


def summarize_history(snapshots: list[Snapshot], *, top: int = 5) -> HistorySummary:
    """Compute summary statistics for chronologically ordered *snapshots*."""
    summary = HistorySummary()
    if not snapshots:
        return summary

    summary.snapshot_count = len(snapshots)
    summary.start_time = snapshots[0].captured_at
    summary.end_time = snapshots[-1].captured_at
    summary.duration_ms = summary.end_time - summary.start_time

    cpu_vals = [s.cpu_total_percent for s in snapshots]
    mem_vals = [s.memory_percent for s in snapshots]
    summary.avg_cpu_percent = statistics.mean(cpu_vals)
    summary.p95_cpu_percent = _percentile(cpu_vals, 95)
    summary.max_cpu_percent = max(cpu_vals)
    summary.avg_memory_percent = statistics.mean(mem_vals)
    summary.max_memory_percent = max(mem_vals)
    summary.max_swap_percent = max(s.swap_percent for s in snapshots)
    summary.max_load_1m = max(s.load_1m for s in snapshots)

    rx: dict[str, list[float]] = {}
    tx: dict[str, list[float]] = {}
    for snap in snapshots:
        for net in snap.interfaces:
            rx.setdefault(net.interface, []).append(net.rx_throughput_bps)
            tx.setdefault(net.interface, []).append(net.tx_throughput_bps)
    for name in sorted(rx):
        summary.interfaces.append(InterfacePeak(
            interface=name,
            max_rx_bps=max(rx[name]),
            max_tx_bps=max(tx[name]),
            avg_rx_bps=statistics.mean(rx[name]),
            avg_tx_bps=statistics.mean(tx[name]),
        ))

    # how often each process name made it into the top list
    appearances: dict[str, int] = {}
    for snap in snapshots:
        for proc in snap.top_processes:
            appearances[proc.name] = appearances.get(proc.name, 0) + 1
    ranked = sorted(appearances.items(), key=lambda kv: (-kv[1], kv[0]))
    summary.busiest_processes = [name for name, _ in ranked[:top]]

    summary.cpu_trend = analyze_cpu_trend(snapshots)
    summary.memory_trend = analyze_memory_trend(snapshots)
    summary.anomalies = detect_cpu_anomalies(snapshots) + detect_memory_anomalies(snapshots)

    return summary


def save_summary(summary: HistorySummary, path: str | Path) -> None:
    """Write summary to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(asdict(summary), fh, indent=2)
