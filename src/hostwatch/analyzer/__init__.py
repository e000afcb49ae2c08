"""Offline analysis of exported snapshot files."""
