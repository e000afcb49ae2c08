"""Tests for the bounded snapshot history."""

import threading
from datetime import timedelta

import pytest

from hostwatch.core.history import HistoryStore
from hostwatch.core.snapshot import Snapshot
from hostwatch.errors import ConfigurationError


def _snap(ts: int) -> Snapshot:
    return Snapshot(captured_at=ts, cpu_total_percent=float(ts % 100))


class TestHistoryStore:
    def test_invalid_capacity(self):
        with pytest.raises(ConfigurationError):
            HistoryStore(0)
        with pytest.raises(ConfigurationError):
            HistoryStore(-5)

    @pytest.mark.parametrize("extra", [0, 1, 7, 50])
    def test_keeps_most_recent_capacity_entries(self, extra):
        store = HistoryStore(10)
        for ts in range(10 + extra):
            store.append(_snap(ts))
        items = store.query_all()
        assert len(store) == 10
        assert [s.captured_at for s in items] == list(range(extra, 10 + extra))

    def test_partial_fill(self):
        store = HistoryStore(5)
        store.append(_snap(1))
        store.append(_snap(2))
        assert [s.captured_at for s in store.query_all()] == [1, 2]
        assert store.latest().captured_at == 2

    def test_empty(self):
        store = HistoryStore(3)
        assert store.query_all() == []
        assert store.query_since(1000, now=0) == []
        assert store.latest() is None

    def test_query_since_milliseconds(self):
        store = HistoryStore(100)
        for ts in range(0, 10_000, 1000):
            store.append(_snap(ts))
        recent = store.query_since(3000, now=9000)
        assert [s.captured_at for s in recent] == [6000, 7000, 8000, 9000]

    def test_query_since_timedelta_uses_clock(self):
        store = HistoryStore(100, clock=lambda: 60_000)
        for ts in (0, 30_000, 45_000, 59_999):
            store.append(_snap(ts))
        recent = store.query_since(timedelta(seconds=15))
        assert [s.captured_at for s in recent] == [45_000, 59_999]

    def test_results_are_independent_copies(self):
        store = HistoryStore(4)
        store.append(_snap(1))
        items = store.query_all()
        items.clear()
        items.append(_snap(99))
        assert [s.captured_at for s in store.query_all()] == [1]

    def test_clear(self):
        store = HistoryStore(4)
        store.append(_snap(1))
        store.clear()
        assert len(store) == 0
        assert store.capacity == 4

    def test_concurrent_readers_see_ordered_bounded_history(self):
        store = HistoryStore(50)
        errors = []
        done = threading.Event()

        def reader():
            while not done.is_set():
                items = store.query_all()
                stamps = [s.captured_at for s in items]
                if len(items) > 50 or stamps != sorted(stamps):
                    errors.append(stamps)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for ts in range(2000):
            store.append(_snap(ts))
        done.set()
        for t in threads:
            t.join()
        assert errors == []
        assert [s.captured_at for s in store.query_all()] == list(range(1950, 2000))
