"""Tests for the configuration module."""

import os
import tempfile

import pytest
import yaml

from hostwatch.config import HostwatchConfig, SamplingConfig, load_config
from hostwatch.errors import ConfigurationError


def _write_yaml(data) -> str:
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        return fh.name


def test_load_config_defaults():
    """Loading from a non-existent file returns defaults."""
    cfg = load_config("/tmp/nonexistent_hostwatch.yaml")
    assert isinstance(cfg, HostwatchConfig)
    assert cfg.mode == "local"
    assert cfg.sampling.interval_ms == 1000
    assert cfg.sampling.history_capacity == 3600
    assert cfg.sampling.subscriber_backlog == 64
    assert cfg.collectors.network is True
    assert cfg.otel.endpoint == "http://localhost:4318"
    assert cfg.local_exporter.enabled is True


def test_load_config_from_yaml():
    """Loading from a YAML file populates values and ignores unknown keys."""
    path = _write_yaml({
        "mode": "online",
        "sampling": {"interval_ms": 250, "history_capacity": 10, "bogus": 1},
        "collectors": {"gpu": False, "network_interface": "eth0"},
        "otel": {"endpoint": "http://otel:4318", "service_name": "my-host"},
    })
    try:
        cfg = load_config(path)
        assert cfg.mode == "online"
        assert cfg.sampling.interval_ms == 250
        assert cfg.sampling.interval_seconds == 0.25
        assert cfg.sampling.history_capacity == 10
        assert cfg.collectors.gpu is False
        assert cfg.collectors.network_interface == "eth0"
        assert cfg.otel.service_name == "my-host"
    finally:
        os.unlink(path)


def test_env_override(monkeypatch):
    """Environment variables override YAML values."""
    path = _write_yaml({"mode": "local", "sampling": {"interval_ms": 1000}})
    try:
        monkeypatch.setenv("HOSTWATCH_MODE", "online")
        monkeypatch.setenv("HOSTWATCH_INTERVAL_MS", "200")
        monkeypatch.setenv("HOSTWATCH_OTEL_ENDPOINT", "http://env-otel:4318")
        cfg = load_config(path)
        assert cfg.mode == "online"
        assert cfg.sampling.interval_ms == 200
        assert cfg.otel.endpoint == "http://env-otel:4318"
    finally:
        os.unlink(path)


def test_env_override_not_a_number(monkeypatch):
    monkeypatch.setenv("HOSTWATCH_HISTORY_CAPACITY", "lots")
    with pytest.raises(ConfigurationError):
        load_config("/tmp/nonexistent_hostwatch.yaml")


def test_malformed_yaml():
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        fh.write("sampling: [unclosed\n")
        path = fh.name
    try:
        with pytest.raises(ConfigurationError):
            load_config(path)
    finally:
        os.unlink(path)


@pytest.mark.parametrize("kwargs", [
    {"interval_ms": 0},
    {"interval_ms": -1},
    {"history_capacity": 0},
    {"subscriber_backlog": 0},
    {"read_timeout_ms": 0},
])
def test_sampling_validate_rejects(kwargs):
    with pytest.raises(ConfigurationError):
        SamplingConfig(**kwargs).validate()


def test_sampling_validate_accepts_unbounded_backlog():
    SamplingConfig(subscriber_backlog=None).validate()


@pytest.mark.parametrize("sampling", [
    {"interval_ms": "1000ms"},
    {"interval_ms": None},
    {"interval_ms": True},
    {"history_capacity": 12.5},
    {"subscriber_backlog": "many"},
])
def test_sampling_validate_rejects_wrong_types(sampling):
    path = _write_yaml({"sampling": sampling})
    try:
        cfg = load_config(path)
        with pytest.raises(ConfigurationError):
            cfg.sampling.validate()
    finally:
        os.unlink(path)


def test_validate_buffers_leaves_interval_range_to_start():
    SamplingConfig(interval_ms=0).validate_buffers()
    with pytest.raises(ConfigurationError):
        SamplingConfig(subscriber_backlog=-1).validate_buffers()
