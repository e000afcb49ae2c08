"""Sampling supervisor that drives the snapshot pipeline."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import timedelta
from typing import Callable

from ..collector.base import RawCounters, RawReader
from ..config import SamplingConfig
from ..errors import SevereCollectionFailure
from .builder import build_snapshot
from .fanout import Broadcaster, Subscription
from .history import HistoryStore, wall_clock_ms
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class Supervisor:
    """Runs the read -> build -> store -> publish loop on a background thread.

    The supervisor is the only writer of the previous-snapshot slot and of
    the history store. Consumers use :meth:`subscribe`, :meth:`latest`,
    :meth:`history_since` and :meth:`history_all`, none of which ever block
    the sampling thread for longer than a lock-protected copy.

    Usage::

        sup = Supervisor(SamplingConfig(interval_ms=1000))
        sup.start()
        with sup.subscribe() as sub:
            for snapshot in sub:
                ...
        sup.stop()
    """

    def __init__(
        self,
        config: SamplingConfig | None = None,
        reader: RawReader | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._config = config or SamplingConfig()
        self._config.validate_buffers()
        if reader is None:
            from ..collector.reader import SystemReader
            reader = SystemReader()
        self._reader = reader
        self._clock = clock or wall_clock_ms
        self._history = HistoryStore(self._config.history_capacity, clock=self._clock)
        self._broadcaster = Broadcaster(backlog=self._config.subscriber_backlog)
        self._previous: Snapshot | None = None
        self._tick_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._pending_read: Future[RawCounters] | None = None
        self._ticks = 0
        self._skipped = 0

    @property
    def config(self) -> SamplingConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        """Ticks that produced and published a snapshot."""
        return self._ticks

    @property
    def skipped_ticks(self) -> int:
        """Ticks abandoned because the raw read failed."""
        return self._skipped

    # -- collaborator API -------------------------------------------------

    def subscribe(self, backlog: int | None = None) -> Subscription:
        return self._broadcaster.subscribe(backlog)

    def latest(self) -> Snapshot | None:
        return self._broadcaster.latest()

    def history_since(self, duration: timedelta | float) -> list[Snapshot]:
        return self._history.query_since(duration)

    def history_all(self) -> list[Snapshot]:
        return self._history.query_all()

    # -- sampling ---------------------------------------------------------

    def _read(self) -> RawCounters:
        timeout_ms = self._config.read_timeout_ms
        if timeout_ms is None:
            return self._reader.read()
        # a timed-out read keeps the only worker busy; never queue another behind it
        if self._pending_read is not None and not self._pending_read.done():
            raise SevereCollectionFailure("Previous raw read is still running")
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hostwatch-read")
        future = self._executor.submit(self._reader.read)
        self._pending_read = future
        try:
            return future.result(timeout=timeout_ms / 1000.0)
        except FutureTimeout as exc:
            future.cancel()
            raise SevereCollectionFailure(f"Raw read exceeded {timeout_ms} ms") from exc

    def _next_timestamp(self) -> int:
        now = self._clock()
        # keep captured_at strictly increasing even if the wall clock steps back
        if self._previous is not None and now <= self._previous.captured_at:
            now = self._previous.captured_at + 1
        return now

    def collect_once(self) -> Snapshot | None:
        """Run a single tick synchronously.

        Returns the published snapshot, or None when the raw read failed and
        the tick was skipped. Ticks never overlap.
        """
        with self._tick_lock:
            return self._tick()

    def _tick(self) -> Snapshot | None:
        try:
            raw = self._read()
        except SevereCollectionFailure as exc:
            self._skipped += 1
            logger.warning("Skipping tick: %s", exc)
            return None
        except Exception:
            self._skipped += 1
            logger.exception("Skipping tick: raw read failed")
            return None

        snapshot = build_snapshot(raw, self._previous, self._next_timestamp())
        self._previous = snapshot
        self._history.append(snapshot)
        delivered = self._broadcaster.publish(snapshot)
        self._ticks += 1
        logger.debug(
            "Published snapshot %d to %d subscribers (cpu=%.1f%%)",
            snapshot.captured_at,
            delivered,
            snapshot.cpu_total_percent,
        )
        return snapshot

    def _run(self) -> None:
        """Background thread loop."""
        interval = self._config.interval_seconds
        while not self._stop_event.is_set():
            with self._tick_lock:
                # stop may have landed while we waited for the lock
                if self._stop_event.is_set():
                    break
                self._tick()
            # measured from the end of the tick; missed ticks are not caught up
            self._stop_event.wait(interval)

    def start(self) -> None:
        """Validate the configuration and start sampling in the background.

        Raises :class:`~hostwatch.errors.ConfigurationError` before any tick
        runs if the interval or capacity is invalid.
        """
        self._config.validate()
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="hostwatch-supervisor")
        self._thread.start()
        logger.info(
            "Supervisor started (interval=%d ms, history=%d)",
            self._config.interval_ms,
            self._config.history_capacity,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop sampling. The in-flight tick, if any, completes first."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Supervisor thread did not stop within %s s", timeout)
            else:
                self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        logger.info("Supervisor stopped after %d ticks (%d skipped)", self._ticks, self._skipped)

    def close(self) -> None:
        """Stop sampling and close every subscription."""
        self.stop()
        self._broadcaster.close()
