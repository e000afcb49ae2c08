"""GPU collector backed by ``nvidia-smi``."""

from __future__ import annotations

import shutil
import subprocess
from typing import Any

from ..core.snapshot import GpuSample
from .base import BaseCollector

_QUERY = "name,utilization.gpu,memory.used,memory.total,temperature.gpu,fan.speed"
_MIB = 1024 * 1024


def _num(value: str) -> float:
    # nvidia-smi prints "[N/A]" or "[Not Supported]" for missing fields
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse_nvidia_smi(output: str) -> list[GpuSample]:
    """Parse ``--format=csv,noheader,nounits`` output into samples."""
    gpus: list[GpuSample] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = [x.strip() for x in line.split(",")]
        if len(parts) < 6:
            continue
        gpus.append(GpuSample(
            name=parts[0],
            usage_percent=_num(parts[1]),
            memory_used_bytes=int(_num(parts[2]) * _MIB),
            memory_total_bytes=int(_num(parts[3]) * _MIB),
            temperature_celsius=_num(parts[4]),
            fan_speed_percent=_num(parts[5]),
        ))
    return gpus


class GpuCollector(BaseCollector):
    """NVIDIA GPUs; hosts without the driver tools report no GPUs."""

    def __init__(self, timeout: float = 0.5) -> None:
        self._timeout = timeout
        self._binary = shutil.which("nvidia-smi")

    @property
    def name(self) -> str:
        return "gpu"

    def collect(self) -> dict[str, Any]:
        if self._binary is None:
            return {}
        out = subprocess.check_output(
            [self._binary, f"--query-gpu={_QUERY}", "--format=csv,noheader,nounits"],
            timeout=self._timeout,
        ).decode("utf-8")
        return {"gpus": parse_nvidia_smi(out)}
