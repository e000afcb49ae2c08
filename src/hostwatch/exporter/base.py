"""Base interface for snapshot exporters and the thread that feeds them."""

from __future__ import annotations

import abc
import logging
import threading

from ..core.fanout import Subscription
from ..core.snapshot import Snapshot

logger = logging.getLogger(__name__)


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive published snapshots."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abc.abstractmethod
    def export(self, snapshot: Snapshot) -> None:
        """Export one snapshot."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""


class ExporterRunner:
    """Feeds one exporter from its own subscription on its own thread.

    A slow or failing exporter therefore never delays the supervisor or the
    other exporters.
    """

    def __init__(self, exporter: BaseExporter, subscription: Subscription) -> None:
        self._exporter = exporter
        self._subscription = subscription
        self._thread: threading.Thread | None = None
        self.exported = 0
        self.failed = 0

    def _run(self) -> None:
        for snapshot in self._subscription:
            try:
                self._exporter.export(snapshot)
                self.exported += 1
            except Exception:
                self.failed += 1
                logger.exception("Exporter %s failed", self._exporter.name)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"hostwatch-export-{self._exporter.name}",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Export whatever is already queued, then shut the exporter down."""
        self._subscription.close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self._exporter.shutdown()
