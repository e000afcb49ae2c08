"""Tests for the raw sub-collectors and the system reader."""

import os

import pytest

from hostwatch.collector.base import BaseCollector, RawCounters
from hostwatch.collector.cpu import CpuCollector, LoadCollector
from hostwatch.collector.disk import DiskCollector
from hostwatch.collector.gpu import parse_nvidia_smi
from hostwatch.collector.memory import MemoryCollector
from hostwatch.collector.network import NetworkCollector
from hostwatch.collector.process import ProcessCollector
from hostwatch.collector.reader import SystemReader
from hostwatch.config import CollectorsConfig
from hostwatch.errors import SevereCollectionFailure


class _Static(BaseCollector):
    def __init__(self, name, fields=None, exc=None, required=False):
        self._name = name
        self._fields = fields or {}
        self._exc = exc
        self.required = required

    @property
    def name(self):
        return self._name

    def collect(self):
        if self._exc is not None:
            raise self._exc
        return self._fields


_BASE = _Static("base", {"cpu_per_core": [1.0], "memory_total": 10, "memory_used": 5}, required=True)


class TestSystemReaderComposition:
    def test_optional_failure_leaves_field_empty(self):
        reader = SystemReader(collectors=[
            _BASE,
            _Static("sensors", exc=NotImplementedError("no sensors here")),
            _Static("load", {"load_avg": (1.0, 2.0, 3.0)}),
        ])
        raw = reader.read()
        assert isinstance(raw, RawCounters)
        assert raw.sensors == []
        assert raw.load_avg == (1.0, 2.0, 3.0)

    def test_required_failure_is_severe(self):
        reader = SystemReader(collectors=[
            _Static("cpu", exc=RuntimeError("cannot enumerate CPUs"), required=True),
        ])
        with pytest.raises(SevereCollectionFailure):
            reader.read()

    def test_missing_base_is_severe(self):
        reader = SystemReader(collectors=[_Static("load", {"load_avg": (0.0, 0.0, 0.0)})])
        with pytest.raises(SevereCollectionFailure):
            reader.read()

    def test_config_selects_collectors(self):
        cfg = CollectorsConfig(
            load=False, network=True, disk=False, process=False, sensors=False,
            battery=False, connections=False, gpu=False,
        )
        assert SystemReader(cfg).collector_names == ["cpu", "memory", "network"]


class TestPsutilCollectors:
    """These read the real host through psutil."""

    def test_cpu(self):
        collector = CpuCollector()
        assert collector.required
        fields = collector.collect()
        assert len(fields["cpu_per_core"]) >= 1
        assert all(0.0 <= pct <= 100.0 for pct in fields["cpu_per_core"])

    def test_load(self):
        fields = LoadCollector().collect()
        assert len(fields["load_avg"]) == 3
        assert all(v >= 0 for v in fields["load_avg"])

    def test_memory(self):
        fields = MemoryCollector().collect()
        assert fields["memory_total"] > 0
        assert 0 <= fields["memory_used"] <= fields["memory_total"]

    def test_network_counters_are_cumulative(self):
        collector = NetworkCollector()
        first = {i.name: i for i in collector.collect()["interfaces"]}
        second = {i.name: i for i in collector.collect()["interfaces"]}
        for name, iface in second.items():
            if name in first:
                assert iface.rx_bytes >= first[name].rx_bytes

    def test_network_exclude_loopback(self):
        names = [i.name for i in NetworkCollector(include_loopback=False).collect()["interfaces"]]
        assert "lo" not in names

    def test_disk(self):
        volumes = DiskCollector().collect()["volumes"]
        mounts = [v.mount_point for v in volumes]
        assert len(mounts) == len(set(mounts))

    def test_process_includes_self(self):
        processes = ProcessCollector().collect()["processes"]
        me = [p for p in processes if p.pid == os.getpid()]
        assert len(me) == 1
        assert me[0].parent_pid == os.getppid()

    def test_default_reader(self):
        raw = SystemReader(CollectorsConfig(connections=False, gpu=False)).read()
        assert raw.cpu_per_core
        assert raw.memory_total > 0


def test_parse_nvidia_smi():
    out = (
        "NVIDIA GeForce RTX 3080, 37, 2048, 10240, 61, 45\n"
        "Tesla T4, 0, 0, 15360, 40, [N/A]\n"
        "\n"
        "garbage line\n"
    )
    gpus = parse_nvidia_smi(out)
    assert [g.name for g in gpus] == ["NVIDIA GeForce RTX 3080", "Tesla T4"]
    assert gpus[0].usage_percent == 37.0
    assert gpus[0].memory_used_bytes == 2048 * 1024 * 1024
    assert gpus[1].fan_speed_percent == 0.0
