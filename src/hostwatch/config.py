"""Configuration loading and validation for hostwatch."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError


@dataclass
class SamplingConfig:
    """Supervisor cadence and retention settings."""

    interval_ms: int = 1000
    history_capacity: int = 3600
    subscriber_backlog: int | None = 64
    read_timeout_ms: int | None = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    def validate_buffers(self) -> None:
        """Check everything needed to build the history and subscriber queues.

        The interval value itself is left to :meth:`validate`, which the
        supervisor runs on start.
        """
        _check_int("interval_ms", self.interval_ms)
        _check_positive_int("history_capacity", self.history_capacity)
        _check_positive_int("subscriber_backlog", self.subscriber_backlog, optional=True)
        _check_positive_int("read_timeout_ms", self.read_timeout_ms, optional=True)

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` for values the supervisor cannot run with."""
        self.validate_buffers()
        _check_positive_int("interval_ms", self.interval_ms)


def _check_int(name: str, value: Any, optional: bool = False) -> None:
    if value is None and optional:
        return
    # bool is an int subclass; "interval_ms: yes" is still a mistake
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _check_positive_int(name: str, value: Any, optional: bool = False) -> None:
    _check_int(name, value, optional)
    if value is not None and value <= 0:
        suffix = " or null" if optional else ""
        raise ConfigurationError(f"{name} must be > 0{suffix}, got {value}")


@dataclass
class CollectorsConfig:
    """Which raw sub-collectors the system reader runs."""

    load: bool = True
    network: bool = True
    network_interface: str = ""
    include_loopback: bool = True
    disk: bool = True
    process: bool = True
    sensors: bool = True
    battery: bool = True
    connections: bool = True
    gpu: bool = True


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "hostwatch"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class LocalExporterConfig:
    """Local JSONL exporter settings."""

    enabled: bool = True
    output_dir: str = "./hostwatch_data"


@dataclass
class AnalyzerConfig:
    """Analyzer settings."""

    trace_dir: str = "./hostwatch_data"
    summary_output: str = "./hostwatch_data/summary"


@dataclass
class HostwatchConfig:
    """Top-level hostwatch configuration."""

    mode: str = "local"
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    collectors: CollectorsConfig = field(default_factory=CollectorsConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)


_ENV_MAP: dict[str, tuple[str, ...]] = {
    "HOSTWATCH_MODE": ("mode",),
    "HOSTWATCH_INTERVAL_MS": ("sampling", "interval_ms"),
    "HOSTWATCH_HISTORY_CAPACITY": ("sampling", "history_capacity"),
    "HOSTWATCH_OTEL_ENDPOINT": ("otel", "endpoint"),
    "HOSTWATCH_OTEL_SERVICE_NAME": ("otel", "service_name"),
    "HOSTWATCH_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
}

_INT_KEYS = {"interval_ms", "history_capacity"}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the HOSTWATCH_ prefix."""
    for env_key, path in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        final_key = path[-1]
        if final_key in _INT_KEYS:
            try:
                obj[final_key] = int(value)
            except ValueError as exc:
                raise ConfigurationError(f"{env_key} must be an integer, got {value!r}") from exc
        else:
            obj[final_key] = value
    return data


def _section(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        return cls()
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> HostwatchConfig:
    """Convert a raw dictionary to a :class:`HostwatchConfig`."""
    return HostwatchConfig(
        mode=data.get("mode", "local"),
        sampling=_section(SamplingConfig, data.get("sampling", {})),
        collectors=_section(CollectorsConfig, data.get("collectors", {})),
        otel=_section(OtelExporterConfig, data.get("otel", {})),
        local_exporter=_section(LocalExporterConfig, data.get("local_exporter", {})),
        analyzer=_section(AnalyzerConfig, data.get("analyzer", {})),
    )


def load_config(path: str | Path | None = None) -> HostwatchConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``hostwatch.yaml`` in the current directory if *path* is None.
    The sampling section is not validated here; the supervisor checks it
    when it is built and again when it starts.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("hostwatch.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            try:
                loaded = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
