"""Trend and threshold-anomaly analysis over snapshot history.

Works on any chronologically ordered list of snapshots: the output of
:func:`hostwatch.analyzer.parser.load_snapshot_dir` or a live
``Supervisor.history_all()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..core.snapshot import Snapshot

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"
UNKNOWN = "unknown"

# percentage points between first and last value before a trend is called
TREND_THRESHOLD = 5.0
HIGH_CPU_PERCENT = 90.0
LOW_CPU_PERCENT = 5.0
HIGH_MEMORY_PERCENT = 90.0


@dataclass
class TrendAnalysis:
    """Direction of one metric over a window, with a naive next-value guess."""

    metric: str
    trend: str = UNKNOWN
    confidence: float = 0.0
    prediction: float | None = None


@dataclass
class Anomaly:
    """One snapshot whose value crossed a threshold."""

    metric: str
    value: float
    threshold: float
    captured_at: int
    description: str


def _trend(values: list[float]) -> str:
    diff = values[-1] - values[0]
    if diff > TREND_THRESHOLD:
        return INCREASING
    if diff < -TREND_THRESHOLD:
        return DECREASING
    return STABLE


def analyze_trend(
    snapshots: list[Snapshot],
    metric: str,
    value_of: Callable[[Snapshot], float],
) -> TrendAnalysis:
    """Compare the last value with the first.

    Confidence grows with the number of samples and saturates at ten.
    The prediction extends the last step once more.
    """
    if len(snapshots) < 2:
        return TrendAnalysis(metric=metric)
    values = [value_of(s) for s in snapshots]
    return TrendAnalysis(
        metric=metric,
        trend=_trend(values),
        confidence=min(len(values) / 10.0, 1.0),
        prediction=values[-1] + (values[-1] - values[-2]),
    )


def analyze_cpu_trend(snapshots: list[Snapshot]) -> TrendAnalysis:
    return analyze_trend(snapshots, "cpu_usage", lambda s: s.cpu_total_percent)


def analyze_memory_trend(snapshots: list[Snapshot]) -> TrendAnalysis:
    return analyze_trend(snapshots, "memory_usage", lambda s: s.memory_percent)


def detect_cpu_anomalies(
    snapshots: list[Snapshot],
    *,
    high: float = HIGH_CPU_PERCENT,
    low: float = LOW_CPU_PERCENT,
) -> list[Anomaly]:
    """Flag snapshots with CPU above *high* or below *low* percent."""
    anomalies: list[Anomaly] = []
    for snap in snapshots:
        cpu = snap.cpu_total_percent
        if cpu > high:
            anomalies.append(Anomaly("cpu_usage", cpu, high, snap.captured_at, "High CPU usage"))
        if cpu < low:
            anomalies.append(Anomaly("cpu_usage", cpu, low, snap.captured_at, "Very low CPU usage"))
    return anomalies


def detect_memory_anomalies(
    snapshots: list[Snapshot],
    *,
    high: float = HIGH_MEMORY_PERCENT,
) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    for snap in snapshots:
        mem = snap.memory_percent
        if mem > high:
            anomalies.append(Anomaly("memory_usage", mem, high, snap.captured_at, "High memory usage"))
    return anomalies
