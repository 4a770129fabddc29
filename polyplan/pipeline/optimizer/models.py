"""Optimizer dataclasses, run state and configuration constants."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from shapely.geometry.base import BaseGeometry

from polyplan.geometry.ops import Vertex, rectangle_corners
from polyplan.pipeline.errors import (
    OptimizerError, ConfigError, InvalidGeometry,
    InsufficientBuildableArea, NoFeasibleSize,
)


# ── Module geometry ────────────────────────────────────────────────


@dataclass(frozen=True)
class ModuleSize:
    """Outer dimensions of a module; width runs along the local X axis."""

    width: float
    depth: float

    @property
    def area(self) -> float:
        return self.width * self.depth

    def sub_blocks(self, unit_width: float, unit_depth: float) -> int:
        """Number of base-unit cells in the module's internal grid."""
        return self.columns(unit_width) * self.rows(unit_depth)

    def columns(self, unit_width: float) -> int:
        return int(round(self.width / unit_width))

    def rows(self, unit_depth: float) -> int:
        return int(round(self.depth / unit_depth))


@dataclass(frozen=True)
class PlacementCandidate:
    """A size at a centre and rotation, evaluated but not committed."""

    size: ModuleSize
    cx: float
    cy: float
    rotation: float             # degrees, counter-clockwise

    def corners(self) -> list[Vertex]:
        return rectangle_corners(
            self.cx, self.cy, self.size.width, self.size.depth, self.rotation)


@dataclass(frozen=True)
class SubBlock:
    """One base-unit cell of a placed module."""

    column: int                 # index along the module width
    row: int                    # index along the module depth
    local_x: float              # unrotated offset of the cell's min corner
    local_y: float              # from the module centre
    corners: tuple[Vertex, ...]


@dataclass(frozen=True)
class PlacedModule:
    """A committed module.  Immutable once created."""

    size: ModuleSize
    cx: float
    cy: float
    rotation: float
    corners: tuple[Vertex, ...]
    sub_blocks: tuple[SubBlock, ...]
    polygon: BaseGeometry = field(compare=False, repr=False)
    footprint: BaseGeometry = field(compare=False, repr=False)
    """Corner polygon grown by the corridor width."""
    pass_name: str = ""
    label: str = ""
    color: str = ""

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def depth(self) -> float:
        return self.size.depth

    @property
    def area(self) -> float:
        return self.size.area

    @property
    def center(self) -> Vertex:
        return (self.cx, self.cy)

    def labelled(self, label: str, color: str) -> "PlacedModule":
        return replace(self, label=label, color=color)


@dataclass(frozen=True)
class BuildableArea:
    """Where modules may legally go, plus the areas it was derived from."""

    polygon: BaseGeometry = field(repr=False)
    bounds: tuple[float, float, float, float]
    area: float
    boundary_area: float


# ── Run state ──────────────────────────────────────────────────────


class StopReason(str, Enum):
    EXHAUSTED = "exhausted"             # raster fully scanned
    COVERAGE = "coverage"               # coverage ceiling reached
    MODULE_CAP = "module_cap"           # per-pass module cap reached
    POSITION_LIMIT = "position_limit"   # per-pass raster position limit
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class OptimizationState:
    """Accumulated placements for one run.

    Append-only: :meth:`with_module` returns a new state, so each pass is
    a function ``state_in -> state_out``.
    """

    land_area: float
    modules: tuple[PlacedModule, ...] = ()
    footprints: tuple[BaseGeometry, ...] = ()

    @property
    def covered_area(self) -> float:
        return sum(m.area for m in self.modules)

    @property
    def coverage(self) -> float:
        """Covered area as a percentage of the land area."""
        if self.land_area <= 0:
            return 0.0
        return 100.0 * self.covered_area / self.land_area

    def with_module(self, module: PlacedModule) -> "OptimizationState":
        return replace(
            self,
            modules=self.modules + (module,),
            footprints=self.footprints + (module.footprint,),
        )


@dataclass
class PassReport:
    """What one placement pass did."""

    name: str
    added: int = 0
    visited: int = 0
    stop_reason: StopReason | None = None
    coverage: float = 0.0
    step: float = 0.0
    size_count: int = 0
    rotations: tuple[float, ...] = ()
    skipped: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass
class PlacementResult:
    """Final, labelled output of an optimisation run."""

    modules: list[PlacedModule]
    coverage: float                 # percent of land area
    land_area: float
    elapsed_s: float
    rotations: tuple[float, ...] = ()
    passes: list[PassReport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    buildable: BuildableArea | None = None
    cancelled: bool = False
    stop_reason: StopReason | None = None

    @property
    def module_count(self) -> int:
        return len(self.modules)

    @property
    def total_area(self) -> float:
        return sum(m.area for m in self.modules)


__all__ = [
    "ModuleSize", "PlacementCandidate", "SubBlock", "PlacedModule",
    "BuildableArea", "StopReason", "OptimizationState", "PassReport",
    "PlacementResult",
    "OptimizerError", "ConfigError", "InvalidGeometry",
    "InsufficientBuildableArea", "NoFeasibleSize",
]
