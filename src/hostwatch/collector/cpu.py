"""CPU and load-average collectors."""

from __future__ import annotations

from typing import Any

import psutil

from .base import BaseCollector


class CpuCollector(BaseCollector):
    """Per-core busy percentages since the previous call."""

    required = True

    def __init__(self) -> None:
        # the first call only primes psutil's internal counters
        psutil.cpu_percent(interval=None, percpu=True)

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self) -> dict[str, Any]:
        per_cpu = psutil.cpu_percent(interval=None, percpu=True)
        if not per_cpu:
            raise RuntimeError("psutil reported no CPUs")
        return {"cpu_per_core": [float(pct) for pct in per_cpu]}


class LoadCollector(BaseCollector):
    """1, 5 and 15 minute load averages."""

    @property
    def name(self) -> str:
        return "load"

    def collect(self) -> dict[str, Any]:
        load1, load5, load15 = psutil.getloadavg()
        return {"load_avg": (max(0.0, load1), max(0.0, load5), max(0.0, load15))}
