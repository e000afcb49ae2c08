"""Plain-dict conversion of snapshots for JSON output."""

from __future__ import annotations

from dataclasses import asdict, fields, replace
from typing import Any

from ..core.snapshot import (
    BatterySample,
    ConnectionSample,
    ContainerSample,
    DiskSample,
    GpuSample,
    NetworkSample,
    ProcessNode,
    ProcessSample,
    SensorSample,
    Snapshot,
)

_SEQUENCES: dict[str, type] = {
    "interfaces": NetworkSample,
    "volumes": DiskSample,
    "top_processes": ProcessSample,
    "sensors": SensorSample,
    "batteries": BatterySample,
    "gpus": GpuSample,
    "connections": ConnectionSample,
    "containers": ContainerSample,
}

_NODE_FIELDS = tuple(f.name for f in fields(ProcessNode) if f.name != "children")


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Convert a snapshot, including nested process trees, to JSON-safe data."""
    data = asdict(replace(snapshot, process_forest=()))
    data["cpu_per_core"] = list(snapshot.cpu_per_core)
    data["process_forest"] = _forest_to_dicts(snapshot.process_forest)
    return data


def _forest_to_dicts(forest: tuple[ProcessNode, ...]) -> list[dict[str, Any]]:
    # explicit stack: process chains can be deeper than the recursion limit
    out: list[dict[str, Any]] = []
    stack = [(node, out) for node in reversed(forest)]
    while stack:
        node, siblings = stack.pop()
        entry = {name: getattr(node, name) for name in _NODE_FIELDS}
        entry["children"] = []
        siblings.append(entry)
        stack.extend((child, entry["children"]) for child in reversed(node.children))
    return out


def _forest_from_dicts(items: list[dict[str, Any]]) -> tuple[ProcessNode, ...]:
    # post-order so every child exists before its frozen parent is built
    built: dict[int, ProcessNode] = {}
    stack = [(item, False) for item in reversed(items)]
    while stack:
        item, expanded = stack.pop()
        kids = item.get("children", ())
        if not expanded:
            stack.append((item, True))
            stack.extend((child, False) for child in reversed(kids))
            continue
        built[id(item)] = ProcessNode(
            pid=item["pid"],
            name=item.get("name", ""),
            cpu_percent=item.get("cpu_percent", 0.0),
            memory_bytes=item.get("memory_bytes", 0),
            parent_pid=item.get("parent_pid"),
            children=tuple(built.pop(id(child)) for child in kids),
        )
    return tuple(built.pop(id(item)) for item in items)


def _build(cls: type, item: dict[str, Any]) -> Any:
    return cls(**{k: v for k, v in item.items() if k in cls.__dataclass_fields__})


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    """Inverse of :func:`snapshot_to_dict`; unknown keys are ignored."""
    values: dict[str, Any] = {
        k: v for k, v in data.items()
        if k in Snapshot.__dataclass_fields__ and k not in _SEQUENCES
    }
    values["cpu_per_core"] = tuple(data.get("cpu_per_core", ()))
    for key, cls in _SEQUENCES.items():
        values[key] = tuple(_build(cls, item) for item in data.get(key, ()))
    values["process_forest"] = _forest_from_dicts(data.get("process_forest", []))
    return Snapshot(**values)
