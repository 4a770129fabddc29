"""Grid-search placer: one greedy pass over a raster of the parcel.

The scan is split into three independent pieces:

  raster_points   Row-by-row iterator over the bounding box.
  StopPolicy      Decides when a pass is done (coverage, caps).
  run_grid_pass   Visits points, picks the best module per point and
                  commits it immediately (no backtracking).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence

from shapely.geometry.base import BaseGeometry

from polyplan.geometry.ops import rotation_terms, rotate_offset

from .cancel import CancelToken
from .models import (
    ModuleSize, PlacementCandidate, SubBlock, PlacedModule,
    OptimizationState, PassReport, StopReason,
)
from .validator import PlacementContext, meets_minimum_size, validate_placement

log = logging.getLogger(__name__)

# Slack when comparing a module's half-side against the centre's
# clearance to the buildable edge.
_FIT_EPS = 1e-9


# ── Raster iteration ───────────────────────────────────────────────


def raster_points(
    bounds: tuple[float, float, float, float],
    step: float,
) -> Iterator[tuple[float, float]]:
    """Yield raster points row by row (y outer, x inner).

    Coordinates are ``min + k * step`` so long scans do not accumulate
    rounding drift.
    """
    if step <= 0:
        raise ValueError(f"Raster step must be positive, got {step}")
    xmin, ymin, xmax, ymax = bounds
    cols = max(1, math.ceil((xmax - xmin) / step))
    rows = max(1, math.ceil((ymax - ymin) / step))
    for row in range(rows):
        y = ymin + row * step
        for col in range(cols):
            yield (xmin + col * step, y)


# ── Stopping policy ────────────────────────────────────────────────


@dataclass(frozen=True)
class StopPolicy:
    """When to end a pass.  ``None`` disables a limit."""

    coverage_ceiling: float | None = None   # percent
    max_added: int | None = None            # modules committed this pass
    max_positions: int | None = None        # raster points visited

    def check(
        self, state: OptimizationState, added: int, visited: int,
    ) -> StopReason | None:
        if self.coverage_ceiling is not None and state.coverage >= self.coverage_ceiling:
            return StopReason.COVERAGE
        if self.max_added is not None and added >= self.max_added:
            return StopReason.MODULE_CAP
        if self.max_positions is not None and visited >= self.max_positions:
            return StopReason.POSITION_LIMIT
        return None


@dataclass(frozen=True)
class PassPlan:
    """Inputs for one grid pass."""

    name: str
    sizes: tuple[ModuleSize, ...]       # largest first
    rotations: tuple[float, ...]
    step: float
    stop: StopPolicy


# ── Module construction ────────────────────────────────────────────


def make_sub_blocks(
    size: ModuleSize,
    cx: float, cy: float,
    rotation: float,
    unit_width: float, unit_depth: float,
) -> tuple[SubBlock, ...]:
    """Subdivide a module into its base-unit grid, in world coordinates."""
    cos_r, sin_r = rotation_terms(rotation)
    hw, hd = size.width / 2, size.depth / 2
    blocks = []
    for col in range(size.columns(unit_width)):
        lx = -hw + col * unit_width
        for row in range(size.rows(unit_depth)):
            ly = -hd + row * unit_depth
            corners = []
            for ox, oy in ((lx, ly), (lx + unit_width, ly),
                           (lx + unit_width, ly + unit_depth), (lx, ly + unit_depth)):
                rx, ry = rotate_offset(ox, oy, cos_r, sin_r)
                corners.append((cx + rx, cy + ry))
            blocks.append(SubBlock(
                column=col, row=row,
                local_x=lx, local_y=ly,
                corners=tuple(corners),
            ))
    return tuple(blocks)


def build_module(
    candidate: PlacementCandidate,
    polygon: BaseGeometry,
    context: PlacementContext,
    pass_name: str,
) -> PlacedModule:
    """Freeze a validated candidate into a PlacedModule."""
    ops = context.ops
    footprint = ops.prepare(ops.grow(polygon, context.corridor_width))
    return PlacedModule(
        size=candidate.size,
        cx=candidate.cx,
        cy=candidate.cy,
        rotation=candidate.rotation,
        corners=tuple(candidate.corners()),
        sub_blocks=make_sub_blocks(
            candidate.size, candidate.cx, candidate.cy, candidate.rotation,
            context.unit_width, context.unit_depth,
        ),
        polygon=polygon,
        footprint=footprint,
        pass_name=pass_name,
    )


# ── Per-point search ───────────────────────────────────────────────


def best_candidate_at(
    x: float, y: float,
    plan: PassPlan,
    context: PlacementContext,
    footprints: Sequence[BaseGeometry],
) -> tuple[PlacementCandidate, BaseGeometry] | None:
    """Largest valid module centred on (x, y), across all rotations.

    For each rotation only the first (largest) size that validates is
    considered; across rotations the largest area wins, ties going to the
    earlier rotation.
    """
    ops = context.ops
    # A rectangle centred here can only fit if its shorter half-side
    # clears the nearest buildable edge.
    clearance = math.inf
    if context.edges is not None:
        clearance = ops.point_distance(context.edges, x, y)

    best: tuple[PlacementCandidate, BaseGeometry] | None = None
    for rotation in plan.rotations:
        for size in plan.sizes:
            if min(size.width, size.depth) / 2 > clearance + _FIT_EPS:
                continue
            if not meets_minimum_size(size, context):
                continue
            poly = ops.rectangle(x, y, size.width, size.depth, rotation)
            if not validate_placement(poly, size, context, footprints):
                continue
            if best is None or size.area > best[0].size.area:
                best = (PlacementCandidate(size, x, y, rotation), poly)
            break
    return best


# ── Pass driver ────────────────────────────────────────────────────


def run_grid_pass(
    state: OptimizationState,
    plan: PassPlan,
    context: PlacementContext,
    cancel: CancelToken | None = None,
) -> tuple[OptimizationState, PassReport]:
    """Scan the raster once, greedily committing modules.

    Returns the new state and a report; the input state is not modified.
    """
    report = PassReport(
        name=plan.name,
        step=plan.step,
        size_count=len(plan.sizes),
        rotations=plan.rotations,
    )
    ops = context.ops
    region = context.buildable.polygon
    added = 0
    visited = 0
    stop: StopReason | None = None

    for x, y in raster_points(context.buildable.bounds, plan.step):
        stop = plan.stop.check(state, added, visited)
        if stop is None and cancel is not None:
            stop = cancel.reason
        if stop is not None:
            break
        visited += 1

        if not ops.contains_point(region, x, y):
            continue

        found = best_candidate_at(x, y, plan, context, state.footprints)
        if found is None:
            continue

        candidate, poly = found
        module = build_module(candidate, poly, context, plan.name)
        state = state.with_module(module)
        added += 1
        log.debug(
            "[%s] %g×%g = %.0f at (%.1f, %.1f) rot=%.0f° (coverage %.1f%%)",
            plan.name, module.width, module.depth, module.area,
            module.cx, module.cy, module.rotation, state.coverage,
        )
    else:
        stop = StopReason.EXHAUSTED

    report.added = added
    report.visited = visited
    report.stop_reason = stop
    report.coverage = state.coverage
    log.info("[%s] +%d module(s), %d position(s) visited, stop=%s, coverage %.1f%%",
             plan.name, added, visited, stop.value, state.coverage)
    return state, report
