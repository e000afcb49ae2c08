"""Snapshot consumers that write or push metrics elsewhere."""
