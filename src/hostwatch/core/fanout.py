"""Publish/subscribe fan-out of snapshots to independent consumers."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Iterator

from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class Subscription:
    """One consumer's private queue of published snapshots.

    The queue is bounded by *backlog* (``None`` for unbounded). When it is
    full, the oldest pending snapshot is dropped to make room; snapshots are
    full-state replacements, so a slow consumer only loses history, never
    correctness. Subscriptions are created by :meth:`Broadcaster.subscribe`.
    """

    def __init__(self, broadcaster: Broadcaster, backlog: int | None) -> None:
        self._broadcaster = broadcaster
        self._queue: deque[Snapshot] = deque(maxlen=backlog)
        self._cond = threading.Condition(threading.Lock())
        self._closed = False
        self._dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Snapshots discarded because this subscriber fell behind."""
        return self._dropped

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    def _offer(self, snapshot: Snapshot) -> None:
        with self._cond:
            if self._closed:
                return
            if self._queue.maxlen is not None and len(self._queue) == self._queue.maxlen:
                self._dropped += 1
            self._queue.append(snapshot)
            self._cond.notify_all()

    def get(self, timeout: float | None = None) -> Snapshot | None:
        """Next snapshot in publish order.

        Blocks until one is available. Returns None on timeout, or once the
        subscription is closed and its queue is drained.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._queue:
                if self._closed:
                    return None
                if deadline is None:
                    self._cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._cond.wait(remaining)
            return self._queue.popleft()

    def get_nowait(self) -> Snapshot | None:
        with self._cond:
            return self._queue.popleft() if self._queue else None

    def latest(self) -> Snapshot | None:
        """Drain everything pending and return only the newest snapshot."""
        with self._cond:
            if not self._queue:
                return None
            newest = self._queue[-1]
            self._queue.clear()
            return newest

    def close(self) -> None:
        """Unregister from the broadcaster and wake any blocked reader."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
        self._broadcaster._unregister(self)

    def __iter__(self) -> Iterator[Snapshot]:
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Broadcaster:
    """Delivers each published snapshot to every live subscription.

    :meth:`publish` never waits on a consumer: it appends to each
    subscriber's own queue and returns. The registry lock only guards the
    list of subscribers, not delivery.
    """

    def __init__(self, backlog: int | None = 64) -> None:
        self._backlog = backlog
        self._lock = threading.Lock()
        self._subscribers: list[Subscription] = []
        self._latest: Snapshot | None = None
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, backlog: int | None = None) -> Subscription:
        """Register a new subscriber; it sees every snapshot published from now on.

        *backlog* overrides the broadcaster default for this subscriber.
        """
        sub = Subscription(self, backlog if backlog is not None else self._backlog)
        with self._lock:
            if self._closed:
                sub._closed = True
                return sub
            self._subscribers.append(sub)
        return sub

    def _unregister(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    def publish(self, snapshot: Snapshot) -> int:
        """Offer *snapshot* to all subscribers. Returns how many received it."""
        with self._lock:
            self._latest = snapshot
            subscribers = list(self._subscribers)
        for sub in subscribers:
            sub._offer(snapshot)
        return len(subscribers)

    def latest(self) -> Snapshot | None:
        """The most recently published snapshot, if any."""
        with self._lock:
            return self._latest

    def close(self) -> None:
        """Close every subscription; blocked readers return None."""
        with self._lock:
            self._closed = True
            subscribers = list(self._subscribers)
        for sub in subscribers:
            sub.close()
        logger.debug("Broadcaster closed (%d subscribers)", len(subscribers))
