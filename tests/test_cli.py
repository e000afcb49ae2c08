"""Tests for the hostwatch command line."""

import json
import tempfile
from pathlib import Path

import pytest

from hostwatch import __version__
from hostwatch.cli import main
from hostwatch.core.snapshot import Snapshot
from hostwatch.exporter.serialize import snapshot_to_dict


def test_version(capsys):
    main(["version"])
    assert __version__ in capsys.readouterr().out


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_snapshot_json(capsys, monkeypatch):
    monkeypatch.setenv("HOSTWATCH_INTERVAL_MS", "50")
    main(["-c", "/tmp/nonexistent_hostwatch.yaml", "snapshot", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert data["memory_total_bytes"] > 0
    assert len(data["cpu_per_core"]) >= 1
    assert data["memory_used_bytes"] <= data["memory_total_bytes"]


def test_snapshot_rejects_zero_interval(monkeypatch):
    monkeypatch.setenv("HOSTWATCH_INTERVAL_MS", "0")
    with pytest.raises(SystemExit) as exc:
        main(["-c", "/tmp/nonexistent_hostwatch.yaml", "snapshot"])
    assert exc.value.code == 2


def test_collect_then_analyze(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        monkeypatch.setenv("HOSTWATCH_INTERVAL_MS", "100")
        monkeypatch.setenv("HOSTWATCH_LOCAL_OUTPUT_DIR", tmpdir)
        main(["-c", "/tmp/nonexistent_hostwatch.yaml", "collect", "--duration", "1"])
        files = list(Path(tmpdir).glob("snapshots-*.jsonl"))
        assert files

        main([
            "-c", "/tmp/nonexistent_hostwatch.yaml",
            "analyze", "--trace-dir", tmpdir, "--no-table",
        ])
        out = capsys.readouterr().out
        assert "Loaded" in out


def test_analyze_empty_dir(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        main(["-c", "/tmp/nonexistent_hostwatch.yaml", "analyze", "--trace-dir", tmpdir])
        assert "No snapshot data found" in capsys.readouterr().out


def test_analyze_with_tables(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        path = Path(tmpdir) / "snapshots-2024-03-01.jsonl"
        path.write_text(json.dumps(snapshot_to_dict(Snapshot(captured_at=1000, cpu_total_percent=12.0))) + "\n")
        main(["-c", "/tmp/nonexistent_hostwatch.yaml", "analyze", "--trace-dir", tmpdir])
        out = capsys.readouterr().out
        assert "Loaded 1 snapshots" in out


def test_non_numeric_interval_is_a_config_error(capsys):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "hostwatch.yaml"
        path.write_text("sampling:\n  interval_ms: 1000ms\n")
        with pytest.raises(SystemExit) as exc:
            main(["-c", str(path), "snapshot"])
    assert exc.value.code == 2
    assert "interval_ms" in capsys.readouterr().err


def test_negative_backlog_is_a_config_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "hostwatch.yaml"
        path.write_text("sampling:\n  subscriber_backlog: -1\n")
        with pytest.raises(SystemExit) as exc:
            main(["-c", str(path), "collect", "--duration", "0.1"])
    assert exc.value.code == 2
