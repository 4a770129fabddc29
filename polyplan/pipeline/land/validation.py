"""Land spec validation: sanity checks before the optimizer runs."""

from __future__ import annotations

from shapely.geometry import Polygon

from .models import LandAreaSpec, RestrictedZone, SEVERITIES


def validate_land_spec(
    spec: LandAreaSpec,
    restricted_zones: list[RestrictedZone] | None = None,
) -> list[str]:
    """Validate a LandAreaSpec. Returns error messages (empty = valid)."""
    errors: list[str] = []

    # ── Boundary ring ──
    boundary = _distinct(spec.boundary)
    if len(boundary) < 3:
        errors.append(
            f"Boundary needs at least 3 distinct vertices, got {len(boundary)}")
        return errors

    outline = Polygon(boundary)
    if outline.area <= 0:
        errors.append("Boundary encloses zero area")
        return errors
    if not outline.is_valid:
        errors.append("Boundary is self-intersecting")

    if spec.land_area is not None and spec.land_area <= 0:
        errors.append(f"land_area must be positive, got {spec.land_area:g}")

    # ── Zones ──
    seen: set[str] = set()
    for zone in spec.zones:
        if zone.name in seen:
            errors.append(f"Duplicate zone name '{zone.name}'")
        seen.add(zone.name)

        pts = _distinct(zone.vertices)
        if len(pts) < 3:
            errors.append(f"Zone '{zone.name}': needs at least 3 distinct vertices")
            continue
        poly = Polygon(pts)
        if poly.area <= 0:
            errors.append(f"Zone '{zone.name}': encloses zero area")
        elif outline.is_valid and not poly.intersects(outline):
            errors.append(f"Zone '{zone.name}': lies entirely outside the boundary")

    # ── Restricted zones ──
    for i, rz in enumerate(restricted_zones or []):
        if rz.severity not in SEVERITIES:
            errors.append(
                f"Restricted zone {i + 1} ({rz.classification}): unknown "
                f"severity '{rz.severity}'")
        if len(_distinct(rz.vertices)) < 3:
            errors.append(
                f"Restricted zone {i + 1} ({rz.classification}): needs at "
                f"least 3 distinct vertices")

    return errors


def _distinct(ring) -> list[tuple[float, float]]:
    pts: list[tuple[float, float]] = []
    for x, y in ring:
        if not pts or pts[-1] != (x, y):
            pts.append((x, y))
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts.pop()
    return pts
