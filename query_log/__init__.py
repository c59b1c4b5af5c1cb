"""Reconstruct, rank, and render per-request traces from query logs."""

__version__ = "0.1.0"
