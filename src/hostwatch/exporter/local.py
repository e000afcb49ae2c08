"""Local file exporter - writes snapshots to JSONL files."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ..config import LocalExporterConfig
from ..core.snapshot import Snapshot
from .base import BaseExporter
from .serialize import snapshot_to_dict

logger = logging.getLogger(__name__)


class LocalExporter(BaseExporter):
    """Writes one snapshot per line to JSONL files on disk.

    One file per UTC day is created inside the configured *output_dir*;
    the day is taken from the snapshot's own capture time.
    """

    def __init__(self, config: LocalExporterConfig) -> None:
        self._config = config
        self._output_dir = Path(config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._fh = None
        self._current_date: str | None = None
        logger.info("LocalExporter initialized → %s", self._output_dir)

    @property
    def name(self) -> str:
        return "local"

    def _ensure_file(self, captured_at: int) -> None:
        day = datetime.fromtimestamp(captured_at / 1000.0, tz=timezone.utc).strftime("%Y-%m-%d")
        if self._current_date != day or self._fh is None:
            if self._fh is not None:
                self._fh.close()
            filepath = self._output_dir / f"snapshots-{day}.jsonl"
            self._fh = open(filepath, "a", encoding="utf-8")  # noqa: SIM115
            self._current_date = day

    def export(self, snapshot: Snapshot) -> None:
        self._ensure_file(snapshot.captured_at)
        assert self._fh is not None
        self._fh.write(json.dumps(snapshot_to_dict(snapshot)) + "\n")
        self._fh.flush()

    def shutdown(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        logger.info("LocalExporter shut down")
