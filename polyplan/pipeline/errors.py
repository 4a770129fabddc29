"""Errors surfaced to callers of the optimizer.

Validator rejections are never errors; these cover the failures that
abort a run before any module is placed.
"""

from __future__ import annotations


class OptimizerError(Exception):
    """Base class for fatal optimizer failures."""


class ConfigError(OptimizerError, ValueError):
    """Raised for an inconsistent or malformed optimizer configuration."""


class InvalidGeometry(OptimizerError):
    """Raised when a boundary or zone ring is degenerate."""

    def __init__(self, what: str, reason: str) -> None:
        self.what = what
        self.reason = reason
        super().__init__(f"Invalid geometry for {what}: {reason}")


class InsufficientBuildableArea(OptimizerError):
    """Raised when the buildable polygon is empty or too small to use."""

    def __init__(self, buildable_area: float, boundary_area: float,
                 min_fraction: float) -> None:
        self.buildable_area = buildable_area
        self.boundary_area = boundary_area
        self.min_fraction = min_fraction
        pct = 100.0 * buildable_area / boundary_area if boundary_area else 0.0
        super().__init__(
            f"Buildable area {buildable_area:.0f} is {pct:.1f}% of the "
            f"{boundary_area:.0f} boundary (minimum {min_fraction * 100:.0f}%)")


class NoFeasibleSize(OptimizerError):
    """Raised when the sizing rules admit no module dimensions at all."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"No feasible module size: {reason}")
