"""CLI interface for hostwatch."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path

from . import __version__
from .config import HostwatchConfig, load_config
from .errors import ConfigurationError


def _build_supervisor(cfg: HostwatchConfig):
    from .collector.reader import SystemReader
    from .core.supervisor import Supervisor

    return Supervisor(cfg.sampling, reader=SystemReader(cfg.collectors))


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run the supervisor and feed the configured exporters."""
    cfg = load_config(args.config)

    from .exporter.base import ExporterRunner
    from .exporter.local import LocalExporter

    supervisor = _build_supervisor(cfg)
    exporters = []

    if cfg.local_exporter.enabled:
        exporters.append(LocalExporter(cfg.local_exporter))

    if cfg.mode == "online":
        from .exporter.otel import OtelExporter
        exporters.append(OtelExporter(cfg.otel))

    runners = [ExporterRunner(exp, supervisor.subscribe()) for exp in exporters]

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    supervisor.start()
    for runner in runners:
        runner.start()
    previous_handlers = {
        sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    print(f"hostwatch collector running (mode={cfg.mode}, interval={cfg.sampling.interval_ms} ms)")
    print("Press Ctrl+C to stop.\n")
    deadline = time.monotonic() + args.duration if args.duration else None
    try:
        while not stop:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(0.5)
    finally:
        supervisor.stop()
        for runner in runners:
            runner.stop()
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
    print(f"\nCollection stopped after {supervisor.ticks} snapshots.")


def _cmd_snapshot(args: argparse.Namespace) -> None:
    """Sample the host and print the latest snapshot."""
    cfg = load_config(args.config)
    cfg.sampling.validate()
    supervisor = _build_supervisor(cfg)

    from .exporter.serialize import snapshot_to_dict

    # rates need two samples one interval apart
    samples = max(args.samples, 2)
    snapshot = None
    for idx in range(samples):
        snapshot = supervisor.collect_once() or snapshot
        if idx < samples - 1:
            time.sleep(cfg.sampling.interval_seconds)

    if snapshot is None:
        print("No snapshot could be collected", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(snapshot_to_dict(snapshot), indent=2))
        return

    from .analyzer.report import print_snapshot
    print_snapshot(snapshot, tree=args.tree)


def _cmd_analyze(args: argparse.Namespace) -> None:
    """Summarize exported snapshot files."""
    cfg = load_config(args.config)
    trace_dir = args.trace_dir or cfg.analyzer.trace_dir

    from .analyzer.parser import load_snapshot_dir
    from .analyzer.summary import save_summary, summarize_history

    snapshots = load_snapshot_dir(trace_dir)
    if not snapshots:
        print(f"No snapshot data found in {trace_dir}")
        return

    print(f"Loaded {len(snapshots)} snapshots\n")

    summary = summarize_history(snapshots)
    summary_path = Path(cfg.analyzer.summary_output) / "history_summary.json"
    save_summary(summary, summary_path)
    print(f"History summary saved to {summary_path}")

    if not args.no_table:
        from .analyzer.report import print_history, print_summary
        print()
        print_summary(summary)
        print()
        print_history(snapshots)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"hostwatch {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the hostwatch CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="hostwatch",
        description="Sample host metrics into consistent snapshots",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to hostwatch.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # collect
    collect_p = sub.add_parser("collect", help="Run the sampler and exporters")
    collect_p.add_argument("--duration", type=float, default=None, help="Stop after N seconds")
    collect_p.set_defaults(func=_cmd_collect)

    # snapshot
    snap_p = sub.add_parser("snapshot", help="Take a snapshot and print it")
    snap_p.add_argument("--samples", type=int, default=2, help="Ticks to run before printing")
    snap_p.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    snap_p.add_argument("--tree", action="store_true", help="Also print the process tree")
    snap_p.set_defaults(func=_cmd_snapshot)

    # analyze
    analyze_p = sub.add_parser("analyze", help="Summarize exported snapshot files")
    analyze_p.add_argument("--trace-dir", default=None, help="Directory with snapshot JSONL files")
    analyze_p.add_argument("--no-table", action="store_true", help="Skip rich table output")
    analyze_p.set_defaults(func=_cmd_analyze)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
