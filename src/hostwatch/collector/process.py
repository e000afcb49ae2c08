"""Flat process list collector."""

from __future__ import annotations

import logging
from typing import Any

import psutil

from .base import BaseCollector, RawProcess

logger = logging.getLogger(__name__)

_ATTRS = ["pid", "name", "ppid", "cpu_percent", "memory_info", "status"]


def _cpu_count() -> int:
    return psutil.cpu_count() or 1


class ProcessCollector(BaseCollector):
    """Collects every visible process with its parent link.

    ``psutil.process_iter`` keeps ``Process`` instances between calls, so
    per-process CPU percentages are measured against the previous read.
    CPU is normalised to 0-100 across all cores.
    """

    def __init__(self) -> None:
        self._ncpu = _cpu_count()

    @property
    def name(self) -> str:
        return "process"

    def collect(self) -> dict[str, Any]:
        processes: list[RawProcess] = []
        for proc in psutil.process_iter(attrs=_ATTRS):
            try:
                info = proc.info
                pid = info.get("pid")
                if pid is None:
                    continue
                ppid = info.get("ppid")
                mem_info = info.get("memory_info")
                processes.append(RawProcess(
                    pid=pid,
                    name=info.get("name") or "",
                    parent_pid=ppid if ppid is not None and ppid != pid else None,
                    cpu_percent=(info.get("cpu_percent") or 0.0) / self._ncpu,
                    memory_bytes=mem_info.rss if mem_info else 0,
                    status=info.get("status") or "",
                ))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                # exited mid-iteration or not ours to inspect
                continue
        logger.debug("Read %d processes", len(processes))
        return {"processes": processes}
