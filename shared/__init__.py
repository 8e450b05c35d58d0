"""Schemas shared across TrancheReady components."""
