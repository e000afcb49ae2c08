"""Terminal rendering of snapshots and history with Rich."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..core.snapshot import ProcessNode, Snapshot
from .summary import HistorySummary
from .trends import TrendAnalysis

if TYPE_CHECKING:
    from rich.console import Console


def format_bytes(size: float) -> str:
    """Format a byte count as a short human-readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(size) < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def format_rate(bps: float) -> str:
    return f"{format_bytes(bps)}/s"


def format_time(captured_at: int) -> str:
    return datetime.fromtimestamp(captured_at / 1000.0, tz=timezone.utc).strftime("%H:%M:%S.%f")[:-3]


def _console(console: Console | None) -> Console:
    if console is not None:
        return console
    from rich.console import Console
    return Console()


def print_snapshot(snapshot: Snapshot, *, console: Console | None = None, tree: bool = False) -> None:
    """Pretty-print one snapshot: host totals, interfaces, volumes, top processes."""
    from rich.table import Table

    console = _console(console)

    overview = Table(title=f"Host snapshot @ {format_time(snapshot.captured_at)} UTC", show_header=False)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right")
    overview.add_row("CPU", f"{snapshot.cpu_total_percent:.1f}% ({len(snapshot.cpu_per_core)} cores)")
    overview.add_row(
        "Memory",
        f"{format_bytes(snapshot.memory_used_bytes)} / {format_bytes(snapshot.memory_total_bytes)}"
        f" ({snapshot.memory_percent:.1f}%)",
    )
    overview.add_row(
        "Swap",
        f"{format_bytes(snapshot.swap_used_bytes)} / {format_bytes(snapshot.swap_total_bytes)}",
    )
    overview.add_row("Load", f"{snapshot.load_1m:.2f} {snapshot.load_5m:.2f} {snapshot.load_15m:.2f}")
    for sensor in snapshot.sensors:
        overview.add_row(sensor.label, f"{sensor.temperature_celsius:.1f} °C")
    for battery in snapshot.batteries:
        overview.add_row(battery.name, f"{battery.charge_percent:.0f}% ({battery.state})")
    for gpu in snapshot.gpus:
        overview.add_row(gpu.name, f"{gpu.usage_percent:.0f}% {gpu.temperature_celsius:.0f} °C")
    console.print(overview)

    if snapshot.interfaces:
        net = Table(title="Network")
        net.add_column("Interface", style="green")
        net.add_column("RX", justify="right")
        net.add_column("TX", justify="right")
        net.add_column("RX total", justify="right")
        net.add_column("TX total", justify="right")
        net.add_column("Errors", justify="right")
        for iface in snapshot.interfaces:
            errors = iface.rx_errors + iface.tx_errors
            net.add_row(
                iface.interface,
                format_rate(iface.rx_throughput_bps),
                format_rate(iface.tx_throughput_bps),
                format_bytes(iface.rx_bytes),
                format_bytes(iface.tx_bytes),
                f"[red]{errors}[/red]" if errors else "0",
            )
        console.print(net)

    if snapshot.volumes:
        disks = Table(title="Volumes")
        disks.add_column("Mount", style="green")
        disks.add_column("Device")
        disks.add_column("Used", justify="right")
        disks.add_column("Total", justify="right")
        disks.add_column("Use %", justify="right")
        for vol in snapshot.volumes:
            style = "red" if vol.usage_percent >= 90 else ""
            pct = f"{vol.usage_percent:.1f}"
            disks.add_row(
                vol.mount_point,
                vol.name,
                format_bytes(vol.used_bytes),
                format_bytes(vol.total_bytes),
                f"[{style}]{pct}[/{style}]" if style else pct,
            )
        console.print(disks)

    if snapshot.top_processes:
        procs = Table(title="Top processes")
        procs.add_column("PID", justify="right", style="cyan")
        procs.add_column("Name", style="green")
        procs.add_column("CPU %", justify="right")
        procs.add_column("RSS", justify="right")
        procs.add_column("Status")
        for proc in snapshot.top_processes:
            procs.add_row(
                str(proc.pid),
                proc.name,
                f"{proc.cpu_percent:.1f}",
                format_bytes(proc.memory_bytes),
                proc.status,
            )
        console.print(procs)

    if tree and snapshot.process_forest:
        console.print(_process_tree(snapshot.process_forest))


def _process_tree(forest: tuple[ProcessNode, ...]):
    from rich.tree import Tree

    root = Tree("processes")
    stack = [(root, node) for node in reversed(forest)]
    while stack:
        parent, node = stack.pop()
        branch = parent.add(f"[cyan]{node.pid}[/cyan] {node.name} ({node.cpu_percent:.1f}%)")
        stack.extend((branch, child) for child in reversed(node.children))
    return root


def print_history(
    snapshots: list[Snapshot],
    *,
    max_rows: int = 200,
    console: Console | None = None,
) -> None:
    """One row per snapshot with the headline figures."""
    from rich.table import Table

    console = _console(console)
    table = Table(title="Snapshot history")
    table.add_column("Time (UTC)", style="cyan", width=12)
    table.add_column("CPU %", justify="right", width=8)
    table.add_column("Mem %", justify="right", width=8)
    table.add_column("Load 1m", justify="right", width=8)
    table.add_column("RX", justify="right", width=12)
    table.add_column("TX", justify="right", width=12)
    table.add_column("Top process", width=24)

    rows = snapshots[-max_rows:]
    for snap in rows:
        rx = sum(n.rx_throughput_bps for n in snap.interfaces)
        tx = sum(n.tx_throughput_bps for n in snap.interfaces)
        top = snap.top_processes[0].name if snap.top_processes else ""
        table.add_row(
            format_time(snap.captured_at),
            f"{snap.cpu_total_percent:.1f}",
            f"{snap.memory_percent:.1f}",
            f"{snap.load_1m:.2f}",
            format_rate(rx),
            format_rate(tx),
            top,
        )

    console.print(table)
    if len(snapshots) > max_rows:
        console.print(f"  ... ({len(snapshots) - max_rows} earlier snapshots)")


def print_summary(summary: HistorySummary, *, console: Console | None = None) -> None:
    from rich.table import Table

    console = _console(console)
    table = Table(title="History summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Snapshots", str(summary.snapshot_count))
    table.add_row("Duration", f"{summary.duration_ms / 1000.0:.1f} s")
    table.add_row("CPU avg / p95 / max", (
        f"{summary.avg_cpu_percent:.1f} / {summary.p95_cpu_percent:.1f}"
        f" / {summary.max_cpu_percent:.1f} %"
    ))
    table.add_row("Memory avg / max", f"{summary.avg_memory_percent:.1f} / {summary.max_memory_percent:.1f} %")
    table.add_row("Max load 1m", f"{summary.max_load_1m:.2f}")
    for peak in summary.interfaces:
        table.add_row(
            f"{peak.interface} peak",
            f"rx {format_rate(peak.max_rx_bps)}  tx {format_rate(peak.max_tx_bps)}",
        )
    if summary.busiest_processes:
        table.add_row("Busiest", ", ".join(summary.busiest_processes))
    table.add_row("CPU trend", _format_trend(summary.cpu_trend))
    table.add_row("Memory trend", _format_trend(summary.memory_trend))
    counts: dict[str, int] = {}
    for anomaly in summary.anomalies:
        counts[anomaly.description] = counts.get(anomaly.description, 0) + 1
    for description, count in sorted(counts.items()):
        table.add_row(f"[red]{description}[/red]", f"{count} snapshots")
    console.print(table)


def _format_trend(analysis: TrendAnalysis) -> str:
    if analysis.prediction is None:
        return analysis.trend
    return f"{analysis.trend} (confidence {analysis.confidence:.0%}, next {analysis.prediction:.1f}%)"
