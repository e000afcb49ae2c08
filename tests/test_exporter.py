"""Tests for snapshot serialization and exporters."""

import json
import tempfile
import time
from pathlib import Path

from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from hostwatch.config import LocalExporterConfig, OtelExporterConfig
from hostwatch.core.fanout import Broadcaster
from hostwatch.core.snapshot import (
    BatterySample,
    ContainerSample,
    DiskSample,
    NetworkSample,
    ProcessNode,
    ProcessSample,
    Snapshot,
)
from hostwatch.exporter.base import BaseExporter, ExporterRunner
from hostwatch.exporter.local import LocalExporter
from hostwatch.exporter.otel import OtelExporter
from hostwatch.exporter.serialize import snapshot_from_dict, snapshot_to_dict

# 2024-03-01T12:00:00Z
_TS = 1_709_294_400_000


def _snapshot(ts: int = _TS) -> Snapshot:
    child = ProcessNode(pid=20, name="bash", cpu_percent=1.5, memory_bytes=4096, parent_pid=1)
    return Snapshot(
        captured_at=ts,
        cpu_total_percent=25.0,
        cpu_per_core=(20.0, 30.0),
        memory_used_bytes=600,
        memory_total_bytes=1000,
        load_1m=0.5,
        interfaces=(NetworkSample("eth0", rx_bytes=2000, rx_throughput_bps=1000.0),),
        volumes=(DiskSample("/dev/sda1", "/", 100, 40, 60, 60.0),),
        top_processes=(ProcessSample(20, "bash", 1.5, 4096, "running"),),
        process_forest=(ProcessNode(pid=1, name="init", children=(child,)),),
        batteries=(BatterySample("battery0", 80.0, "discharging", 3600),),
    )


class TestSerialize:
    def test_round_trip_through_json(self):
        snap = _snapshot()
        data = json.loads(json.dumps(snapshot_to_dict(snap)))
        assert data["interfaces"][0]["rx_throughput_bps"] == 1000.0
        assert data["process_forest"][0]["children"][0]["pid"] == 20
        assert snapshot_from_dict(data) == snap

    def test_unknown_keys_ignored(self):
        data = snapshot_to_dict(_snapshot())
        data["future_field"] = 1
        data["interfaces"][0]["speed_mbps"] = 1000
        assert snapshot_from_dict(data) == _snapshot()

    def test_deep_process_chain(self):
        node = ProcessNode(pid=5000, name="p5000", parent_pid=4999)
        for pid in range(4999, 0, -1):
            node = ProcessNode(pid=pid, name=f"p{pid}", parent_pid=pid - 1 or None, children=(node,))
        snap = Snapshot(captured_at=_TS, process_forest=(node,))
        data = snapshot_to_dict(snap)
        depth, entry = 1, data["process_forest"][0]
        while entry["children"]:
            depth, entry = depth + 1, entry["children"][0]
        assert depth == 5000
        restored = snapshot_from_dict(data)
        assert [n.pid for n in restored.process_forest[0].walk()] == list(range(1, 5001))

    def test_container_counters_kept(self):
        container = ContainerSample(
            "abc123", "web", "running",
            network_rx_bytes=10, network_tx_bytes=20,
            disk_read_bytes=30, disk_write_bytes=40,
        )
        data = snapshot_to_dict(Snapshot(captured_at=_TS, containers=(container,)))
        assert data["containers"][0]["disk_write_bytes"] == 40
        assert snapshot_from_dict(data).containers == (container,)


class TestLocalExporter:
    def test_writes_daily_jsonl(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = LocalExporter(LocalExporterConfig(output_dir=tmpdir))
            exporter.export(_snapshot())
            exporter.export(_snapshot(_TS + 1000))
            exporter.shutdown()

            files = list(Path(tmpdir).glob("snapshots-*.jsonl"))
            assert [f.name for f in files] == ["snapshots-2024-03-01.jsonl"]
            lines = files[0].read_text().splitlines()
            assert len(lines) == 2
            assert json.loads(lines[1])["captured_at"] == _TS + 1000

    def test_rolls_over_at_midnight(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = LocalExporter(LocalExporterConfig(output_dir=tmpdir))
            exporter.export(_snapshot())
            exporter.export(_snapshot(_TS + 24 * 3600 * 1000))
            exporter.shutdown()
            names = sorted(f.name for f in Path(tmpdir).glob("*.jsonl"))
            assert names == ["snapshots-2024-03-01.jsonl", "snapshots-2024-03-02.jsonl"]


class _Recording(BaseExporter):
    def __init__(self, fail_on=()):
        self.seen = []
        self.fail_on = set(fail_on)
        self.closed = False

    def export(self, snapshot):
        if snapshot.captured_at in self.fail_on:
            raise IOError("disk full")
        self.seen.append(snapshot.captured_at)

    def shutdown(self):
        self.closed = True


class TestExporterRunner:
    def test_feeds_exporter_and_survives_failures(self):
        hub = Broadcaster()
        exporter = _Recording(fail_on={2})
        runner = ExporterRunner(exporter, hub.subscribe())
        runner.start()
        for ts in (1, 2, 3):
            hub.publish(Snapshot(captured_at=ts))
        runner.stop()
        assert exporter.seen == [1, 3]
        assert runner.failed == 1
        assert runner.exported == 2
        assert exporter.closed

    def test_slow_exporter_does_not_block_publisher(self):
        class Slow(_Recording):
            def export(self, snapshot):
                time.sleep(0.2)
                super().export(snapshot)

        hub = Broadcaster()
        runner = ExporterRunner(Slow(), hub.subscribe())
        runner.start()
        start = time.monotonic()
        for ts in range(5):
            hub.publish(Snapshot(captured_at=ts))
        assert time.monotonic() - start < 0.2
        runner.stop()


class TestOtelExporter:
    def test_records_gauges(self):
        reader = InMemoryMetricReader()
        exporter = OtelExporter(OtelExporterConfig(service_name="test-host"), reader=reader)
        exporter.export(_snapshot())

        data = reader.get_metrics_data()
        metrics = {
            m.name: m
            for rm in data.resource_metrics
            for sm in rm.scope_metrics
            for m in sm.metrics
        }
        assert "system.cpu.usage_percent" in metrics
        assert "system.network.rx_throughput" in metrics
        assert "system.filesystem.usage_percent" in metrics
        rx_points = list(metrics["system.network.rx_throughput"].data.data_points)
        assert rx_points[0].value == 1000.0
        assert dict(rx_points[0].attributes) == {"interface": "eth0"}
        exporter.shutdown()
