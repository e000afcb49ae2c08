"""Socket connection collector."""

from __future__ import annotations

import socket
from typing import Any

import psutil

from ..core.snapshot import ConnectionSample
from .base import BaseCollector


def _fmt_addr(addr: Any) -> str:
    if not addr:
        return ""
    return f"{addr.ip}:{addr.port}"


class ConnectionCollector(BaseCollector):
    """Open inet sockets from ``psutil.net_connections``.

    Needs elevated privileges on macOS; there the call raises AccessDenied
    and the reader records an empty list.
    """

    @property
    def name(self) -> str:
        return "connections"

    def collect(self) -> dict[str, Any]:
        connections: list[ConnectionSample] = []
        for conn in psutil.net_connections(kind="inet"):
            protocol = "tcp" if conn.type == socket.SOCK_STREAM else "udp"
            if conn.family == socket.AF_INET6:
                protocol += "6"
            connections.append(ConnectionSample(
                protocol=protocol,
                local_address=_fmt_addr(conn.laddr),
                remote_address=_fmt_addr(conn.raddr),
                state=conn.status if conn.status != psutil.CONN_NONE else "",
                pid=conn.pid,
            ))
        return {"connections": connections}
