"""Buildable-area construction from boundary, zones and safety buffer."""

from __future__ import annotations

import logging
from typing import Sequence

from polyplan.geometry.ops import GeometryOps, GeometryError, DEFAULT_OPS
from polyplan.pipeline.land.models import LandAreaSpec, RestrictedZone

from .models import BuildableArea, InvalidGeometry, InsufficientBuildableArea

log = logging.getLogger(__name__)

# Buildable areas below this fraction of the boundary are not worth planning.
MIN_USABLE_FRACTION = 0.10


def build_buildable_area(
    land: LandAreaSpec,
    restricted_zones: Sequence[RestrictedZone] = (),
    *,
    safety_buffer: float = 1.0,
    ops: GeometryOps = DEFAULT_OPS,
    min_usable_fraction: float = MIN_USABLE_FRACTION,
) -> BuildableArea:
    """Derive the polygon modules may be placed in.

    1. Union the inclusion zones, or use the boundary when there are none.
    2. Subtract every exclusion zone and every ``prohibited`` restricted
       zone.
    3. Shrink the result inward by *safety_buffer*.

    Raises
    ------
    InvalidGeometry
        If the boundary or a zone ring is degenerate.
    InsufficientBuildableArea
        If nothing usable is left (empty, or below *min_usable_fraction*
        of the boundary area).
    """
    boundary = _ring(ops, land.boundary, "boundary")
    boundary_area = ops.area(boundary)

    inclusions = land.inclusion_zones
    if inclusions:
        region = ops.union(
            _ring(ops, z.vertices, f"inclusion zone '{z.name}'")
            for z in inclusions
        )
        log.info("Buildable base: union of %d inclusion zone(s)", len(inclusions))
    else:
        region = boundary

    blockers = [
        _ring(ops, z.vertices, f"exclusion zone '{z.name}'")
        for z in land.exclusion_zones
    ]
    prohibited = [z for z in restricted_zones if z.is_prohibited]
    for i, rz in enumerate(prohibited):
        try:
            blockers.append(ops.polygon(rz.vertices))
        except GeometryError as exc:
            # Terrain detection occasionally emits slivers; they block nothing.
            log.warning("Ignoring degenerate %s zone %d: %s",
                        rz.classification, i + 1, exc)
    if blockers:
        region = ops.difference(region, ops.union(blockers))
        log.info("Subtracted %d exclusion / %d prohibited zone(s)",
                 len(land.exclusion_zones), len(prohibited))

    if safety_buffer > 0 and not ops.is_empty(region):
        region = ops.offset(region, -safety_buffer)
        log.info("Applied %.2f safety buffer", safety_buffer)

    area = 0.0 if ops.is_empty(region) else ops.area(region)
    if area <= 0 or area < min_usable_fraction * boundary_area:
        raise InsufficientBuildableArea(area, boundary_area, min_usable_fraction)

    ops.prepare(region)
    return BuildableArea(
        polygon=region,
        bounds=ops.bounds(region),
        area=area,
        boundary_area=boundary_area,
    )


def _ring(ops: GeometryOps, vertices, what: str):
    try:
        return ops.polygon(vertices)
    except GeometryError as exc:
        raise InvalidGeometry(what, str(exc)) from exc
