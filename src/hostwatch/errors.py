"""Exception types raised by hostwatch."""

from __future__ import annotations


class HostwatchError(Exception):
    """Base class for hostwatch errors."""


class ConfigurationError(HostwatchError):
    """Invalid sampling interval, history capacity or other setting.

    Raised before the first tick runs.
    """


class SevereCollectionFailure(HostwatchError):
    """The raw read could not produce the CPU/memory base for a tick."""
