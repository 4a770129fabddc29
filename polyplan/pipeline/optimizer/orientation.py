"""Rotation selection: which angles the grid search tries."""

from __future__ import annotations

import logging
from typing import Sequence

from .models import BuildableArea, ModuleSize
from .validator import PlacementContext, validate_placement

log = logging.getLogger(__name__)

ANGLE_STEP_DEG = 10
CANDIDATE_ANGLES: tuple[float, ...] = tuple(
    float(a) for a in range(0, 180, ANGLE_STEP_DEG))
SAMPLE_GRID_SIZE = 5

# Pass names understood by gap_fill_rotations().
PRIMARY = "primary"
GAP_FILL_MEDIUM = "gap_fill_medium"
GAP_FILL_SMALL = "gap_fill_small"


def sample_points(
    buildable: BuildableArea,
    context: PlacementContext,
    n: int = SAMPLE_GRID_SIZE,
) -> list[tuple[float, float]]:
    """An n × n lattice spanning the bounding box, filtered to points
    strictly inside the buildable polygon."""
    xmin, ymin, xmax, ymax = buildable.bounds
    pts = []
    for i in range(n):
        y = ymin + (ymax - ymin) * i / (n - 1) if n > 1 else (ymin + ymax) / 2
        for j in range(n):
            x = xmin + (xmax - xmin) * j / (n - 1) if n > 1 else (xmin + xmax) / 2
            if context.ops.contains_point(buildable.polygon, x, y):
                pts.append((x, y))
    return pts


def score_rotation(
    angle: float,
    points: Sequence[tuple[float, float]],
    size: ModuleSize,
    context: PlacementContext,
) -> int:
    """Number of sample points where *size* fits at *angle* on an
    empty parcel."""
    hits = 0
    for x, y in points:
        poly = context.ops.rectangle(x, y, size.width, size.depth, angle)
        if validate_placement(poly, size, context):
            hits += 1
    return hits


def select_uniform_rotation(
    buildable: BuildableArea,
    sizes: Sequence[ModuleSize],
    context: PlacementContext,
    angles: Sequence[float] = CANDIDATE_ANGLES,
    grid_size: int = SAMPLE_GRID_SIZE,
) -> tuple[float, dict[float, int]]:
    """Pick the single angle under which the largest size fits most often.

    Returns (best_angle, {angle: hit_count}).  Ties go to the angle seen
    first; with no hits at all the first angle is returned.
    """
    points = sample_points(buildable, context, grid_size)
    largest = sizes[0]
    scores: dict[float, int] = {}
    best_angle = angles[0]
    best_hits = -1
    for angle in angles:
        hits = score_rotation(angle, points, largest, context)
        scores[angle] = hits
        if hits > best_hits:
            best_hits = hits
            best_angle = angle

    log.info("Uniform orientation: %.0f° (%d/%d sample points fit %g×%g)",
             best_angle, best_hits, len(points), largest.width, largest.depth)
    return best_angle, scores


def select_rotations(
    buildable: BuildableArea,
    sizes: Sequence[ModuleSize],
    context: PlacementContext,
    multi_orientation: bool,
) -> tuple[float, ...]:
    """Active rotation set for the run.

    Uniform: one angle shared by every module.  Multi-orientation: every
    candidate angle, chosen independently per placement.
    """
    if multi_orientation:
        log.info("Multi-orientation: testing %d angles per position",
                 len(CANDIDATE_ANGLES))
        return CANDIDATE_ANGLES
    best, _ = select_uniform_rotation(buildable, sizes, context)
    return (best,)


def gap_fill_rotations(
    rotations: Sequence[float], pass_name: str,
) -> tuple[float, ...]:
    """Reduced rotation set for the gap-fill passes.

    The medium pass tests the first and middle angle when more than three
    are active; the small pass only the first.
    """
    rotations = tuple(rotations)
    if pass_name == GAP_FILL_MEDIUM and len(rotations) > 3:
        return (rotations[0], rotations[len(rotations) // 2])
    if pass_name == GAP_FILL_SMALL and len(rotations) > 1:
        return (rotations[0],)
    return rotations
