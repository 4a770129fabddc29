"""Placement validity predicates.

All functions here are pure: they read the candidate polygon, the
buildable area, the prohibited zones and the occupied footprints, and
return a verdict.  A rejection is the normal outcome of the search and
is never raised as an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from shapely.geometry.base import BaseGeometry

from polyplan.geometry.ops import GeometryOps, GeometryError, DEFAULT_OPS
from polyplan.pipeline.config import OptimizerConfig
from polyplan.pipeline.land.models import RestrictedZone

from .models import BuildableArea, ModuleSize

log = logging.getLogger(__name__)


class Rejection(str, Enum):
    TOO_FEW_SUB_BLOCKS = "too_few_sub_blocks"
    OUTSIDE_BUILDABLE = "outside_buildable"
    PROHIBITED_ZONE = "prohibited_zone"
    SPACING = "spacing"
    GEOMETRY_ERROR = "geometry_error"


@dataclass(frozen=True)
class PlacementContext:
    """Everything the validator needs that stays fixed for a whole run."""

    buildable: BuildableArea
    prohibited: tuple[BaseGeometry, ...]
    unit_width: float
    unit_depth: float
    min_sub_blocks: int
    corridor_width: float
    edges: BaseGeometry | None = None
    """Boundary of the buildable polygon, for clearance pre-checks."""
    ops: GeometryOps = DEFAULT_OPS

    @classmethod
    def build(
        cls,
        buildable: BuildableArea,
        restricted_zones: Sequence[RestrictedZone],
        config: OptimizerConfig,
        ops: GeometryOps = DEFAULT_OPS,
    ) -> "PlacementContext":
        """Collect and prepare the ``prohibited`` zone polygons.

        Advisory zones (``warning``, ``challenging``) are dropped here and
        never reach the predicates.
        """
        prohibited = []
        for rz in restricted_zones:
            if not rz.is_prohibited:
                continue
            try:
                prohibited.append(ops.prepare(ops.polygon(rz.vertices)))
            except GeometryError:
                log.debug("Skipping degenerate %s zone", rz.classification)
        return cls(
            buildable=buildable,
            prohibited=tuple(prohibited),
            unit_width=config.unit_width,
            unit_depth=config.unit_depth,
            min_sub_blocks=config.min_sub_blocks,
            corridor_width=config.corridor_width,
            edges=ops.edges(buildable.polygon),
            ops=ops,
        )


def meets_minimum_size(size: ModuleSize, context: PlacementContext) -> bool:
    """Cheap pre-check: enough sub-blocks to be worth building."""
    n = size.sub_blocks(context.unit_width, context.unit_depth)
    return n >= context.min_sub_blocks


def check_placement(
    polygon: BaseGeometry,
    size: ModuleSize,
    context: PlacementContext,
    footprints: Sequence[BaseGeometry] = (),
) -> Rejection | None:
    """Return the first rule *polygon* breaks, or None if it is valid.

    Rules, cheapest first:
      1. sub-block count ≥ the configured minimum
      2. fully inside the buildable area
      3. no overlap with a prohibited zone
      4. its own corridor-grown footprint overlaps no occupied footprint

    Rule 4 keeps footprints pairwise disjoint, so module bodies end up
    at least two corridor widths apart.
    """
    if not meets_minimum_size(size, context):
        return Rejection.TOO_FEW_SUB_BLOCKS

    ops = context.ops
    try:
        if not ops.contains(context.buildable.polygon, polygon):
            return Rejection.OUTSIDE_BUILDABLE

        for zone in context.prohibited:
            if ops.interiors_intersect(zone, polygon):
                return Rejection.PROHIBITED_ZONE

        for fp in footprints:
            if ops.interiors_intersect(fp, polygon):
                return Rejection.SPACING
        if footprints:
            own = ops.grow(polygon, context.corridor_width)
            for fp in footprints:
                if ops.interiors_intersect(fp, own):
                    return Rejection.SPACING
    except GeometryError as exc:
        log.debug("Geometry error during validation: %s", exc)
        return Rejection.GEOMETRY_ERROR

    return None


def validate_placement(
    polygon: BaseGeometry,
    size: ModuleSize,
    context: PlacementContext,
    footprints: Sequence[BaseGeometry] = (),
) -> bool:
    """Boolean form of :func:`check_placement`."""
    return check_placement(polygon, size, context, footprints) is None
