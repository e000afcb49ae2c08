"""Network interface counter collector."""

from __future__ import annotations

from typing import Any

import psutil

from .base import BaseCollector, RawInterface

_LOOPBACK_NAMES = {"lo", "lo0", "Loopback Pseudo-Interface 1"}


class NetworkCollector(BaseCollector):
    """Reads cumulative per-interface byte, packet and error counters.

    Rates are not computed here; the snapshot builder derives them from two
    consecutive reads.
    """

    def __init__(self, interface: str = "", include_loopback: bool = True) -> None:
        self._interface = interface
        self._include_loopback = include_loopback

    @property
    def name(self) -> str:
        return "network"

    def collect(self) -> dict[str, Any]:
        counters = psutil.net_io_counters(pernic=True)
        if self._interface and self._interface in counters:
            names = [self._interface]
        else:
            names = list(counters.keys())

        interfaces: list[RawInterface] = []
        for iface in names:
            if not self._include_loopback and iface in _LOOPBACK_NAMES:
                continue
            nio = counters.get(iface)
            if nio is None:
                continue
            interfaces.append(RawInterface(
                name=iface,
                rx_bytes=nio.bytes_recv,
                tx_bytes=nio.bytes_sent,
                rx_packets=nio.packets_recv,
                tx_packets=nio.packets_sent,
                rx_errors=nio.errin,
                tx_errors=nio.errout,
            ))
        return {"interfaces": interfaces}
