"""Snapshot pipeline: builder, history, fan-out and supervisor."""
