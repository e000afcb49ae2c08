"""Memory and swap collector."""

from __future__ import annotations

from typing import Any

import psutil

from .base import BaseCollector


class MemoryCollector(BaseCollector):
    """Collects physical memory and swap totals.

    Used memory is derived as ``total - available`` rather than psutil's
    ``used`` field, which excludes caches differently on every platform.
    """

    required = True

    @property
    def name(self) -> str:
        return "memory"

    def collect(self) -> dict[str, Any]:
        mem = psutil.virtual_memory()
        fields: dict[str, Any] = {
            "memory_total": int(mem.total),
            "memory_used": max(0, int(mem.total) - int(mem.available)),
        }
        try:
            swap = psutil.swap_memory()
        except (OSError, RuntimeError):
            # no swap accounting on this platform
            return fields
        fields["swap_total"] = int(swap.total)
        fields["swap_used"] = max(0, int(swap.total) - int(swap.free))
        return fields
