"""hostwatch - host metrics sampler with history and live fan-out."""

__version__ = "0.3.0"
