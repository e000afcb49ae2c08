"""Temperature sensor and battery collectors.

Both are platform-limited in psutil: the functions are missing entirely on
some systems and return nothing on machines without the hardware.
"""

from __future__ import annotations

from typing import Any

import psutil

from ..core.snapshot import BatterySample, SensorSample
from .base import BaseCollector


class SensorCollector(BaseCollector):
    """Temperature readings from ``psutil.sensors_temperatures``."""

    @property
    def name(self) -> str:
        return "sensors"

    def collect(self) -> dict[str, Any]:
        read = getattr(psutil, "sensors_temperatures", None)
        if read is None:
            return {}
        sensors: list[SensorSample] = []
        for chip, entries in sorted((read() or {}).items()):
            for idx, entry in enumerate(entries):
                label = entry.label or str(idx)
                sensors.append(SensorSample(
                    label=f"{chip}/{label}",
                    temperature_celsius=float(entry.current),
                    high=entry.high,
                    critical=entry.critical,
                ))
        return {"sensors": sensors}


def _battery_state(battery: Any) -> str:
    if battery.power_plugged is None:
        return "unknown"
    if battery.power_plugged:
        return "full" if battery.percent >= 100 else "charging"
    return "discharging"


class BatteryCollector(BaseCollector):
    """Battery charge from ``psutil.sensors_battery``."""

    @property
    def name(self) -> str:
        return "battery"

    def collect(self) -> dict[str, Any]:
        read = getattr(psutil, "sensors_battery", None)
        battery = read() if read is not None else None
        if battery is None:
            return {}
        secs = battery.secsleft
        if secs in (psutil.POWER_TIME_UNKNOWN, psutil.POWER_TIME_UNLIMITED):
            secs = None
        return {"batteries": [BatterySample(
            name="battery0",
            charge_percent=float(battery.percent),
            state=_battery_state(battery),
            seconds_left=int(secs) if secs is not None else None,
        )]}
