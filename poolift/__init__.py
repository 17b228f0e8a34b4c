"""Poolift: pooled gifts for school groups and direct collections."""

__version__ = "0.1.0"
