"""Parse snapshot JSONL files written by the local exporter."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..core.snapshot import Snapshot
from ..exporter.serialize import snapshot_from_dict

logger = logging.getLogger(__name__)


def parse_snapshot_file(path: str | Path) -> list[Snapshot]:
    """Parse one ``snapshots-*.jsonl`` file, skipping malformed lines."""
    snapshots: list[Snapshot] = []
    path = Path(path)
    if not path.exists():
        logger.warning("Snapshot file not found: %s", path)
        return snapshots

    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
                snapshots.append(snapshot_from_dict(obj))
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                logger.debug("Skipping %s:%d: %s", path, lineno, exc)
                continue
    return snapshots


def load_snapshot_dir(trace_dir: str | Path) -> list[Snapshot]:
    """Load every ``snapshots-*.jsonl`` file in *trace_dir*, oldest first."""
    trace_dir = Path(trace_dir)
    snapshots: list[Snapshot] = []

    if not trace_dir.exists():
        logger.warning("Snapshot directory does not exist: %s", trace_dir)
        return snapshots

    for fp in sorted(trace_dir.glob("snapshots-*.jsonl")):
        snapshots.extend(parse_snapshot_file(fp))

    snapshots.sort(key=lambda s: s.captured_at)
    return snapshots
