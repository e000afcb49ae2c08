"""Raw OS counter collection."""

from .base import BaseCollector, RawCounters, RawInterface, RawProcess, RawReader, RawVolume
from .reader import SystemReader

__all__ = [
    "BaseCollector",
    "RawCounters",
    "RawInterface",
    "RawProcess",
    "RawReader",
    "RawVolume",
    "SystemReader",
]
