"""Bounded in-memory history of recent snapshots."""

from __future__ import annotations

import threading
import time
from collections import deque
from datetime import timedelta
from typing import Callable

from ..errors import ConfigurationError
from .snapshot import Snapshot


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class HistoryStore:
    """Fixed-capacity FIFO of snapshots in chronological order.

    Appending to a full store evicts the oldest entry. All access goes
    through one lock that is held only while the deque is touched or
    copied; callers always get an independent list back.
    """

    def __init__(self, capacity: int, clock: Callable[[], int] | None = None) -> None:
        if capacity <= 0:
            raise ConfigurationError(f"history capacity must be > 0, got {capacity}")
        self._capacity = capacity
        self._clock = clock or wall_clock_ms
        self._lock = threading.Lock()
        self._items: deque[Snapshot] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def append(self, snapshot: Snapshot) -> None:
        with self._lock:
            # deque(maxlen) drops from the left when full
            self._items.append(snapshot)

    def query_all(self) -> list[Snapshot]:
        with self._lock:
            return list(self._items)

    def query_since(self, duration: timedelta | float, now: int | None = None) -> list[Snapshot]:
        """Return snapshots with ``captured_at >= now - duration``.

        *duration* is a :class:`~datetime.timedelta` or a number of
        milliseconds. *now* defaults to the store's clock.
        """
        if isinstance(duration, timedelta):
            duration_ms = duration.total_seconds() * 1000.0
        else:
            duration_ms = float(duration)
        if now is None:
            now = self._clock()
        cutoff = now - duration_ms

        with self._lock:
            items = list(self._items)
        # entries are chronological, so scan back from the newest
        start = len(items)
        while start > 0 and items[start - 1].captured_at >= cutoff:
            start -= 1
        return items[start:]

    def latest(self) -> Snapshot | None:
        with self._lock:
            return self._items[-1] if self._items else None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
