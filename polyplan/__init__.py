"""Polyhouse planner: greedy module placement on irregular land parcels."""

__version__ = "0.1.0"
