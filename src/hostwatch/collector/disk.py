"""Mounted volume space collector."""

from __future__ import annotations

import logging
from typing import Any

import psutil

from .base import BaseCollector, RawVolume

logger = logging.getLogger(__name__)


class DiskCollector(BaseCollector):
    """Space figures for every physical partition psutil can stat."""

    @property
    def name(self) -> str:
        return "disk"

    def collect(self) -> dict[str, Any]:
        volumes: list[RawVolume] = []
        seen: set[str] = set()
        for part in psutil.disk_partitions(all=False):
            if part.mountpoint in seen:
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (PermissionError, OSError) as exc:
                # unmounted CD drives, stale network shares, etc.
                logger.debug("Skipping volume %s: %s", part.mountpoint, exc)
                continue
            seen.add(part.mountpoint)
            volumes.append(RawVolume(
                name=part.device,
                mount_point=part.mountpoint,
                total_bytes=int(usage.total),
                available_bytes=int(usage.free),
            ))
        return {"volumes": volumes}
