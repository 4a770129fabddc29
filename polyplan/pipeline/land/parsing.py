"""Land input parsing: convert raw dicts/JSON into LandAreaSpec and
RestrictedZone lists."""

from __future__ import annotations

from typing import Any

from .models import LandAreaSpec, LandZone, RestrictedZone, ZONE_KINDS, PROHIBITED
from .projection import LocalProjection, projection_for


class LandParseError(ValueError):
    """Raised when a land / zone payload cannot be interpreted."""


def parse_land_spec(data: dict) -> LandAreaSpec:
    """Parse a raw dict into a LandAreaSpec.

    Two boundary formats are accepted:

    Planar:
        {"boundary": [[0, 0], [200, 0], [200, 100], [0, 100]]}

    Geographic (projected into a local metre frame):
        {"coordinates": [{"lat": 12.97, "lng": 77.59}, ...]}

    Optional keys: ``zones`` (named inclusion/exclusion rings in the same
    coordinate format as the boundary) and ``area`` / ``land_area``.
    """
    if not isinstance(data, dict):
        raise LandParseError("Land spec must be a JSON object")

    projection: LocalProjection | None = None
    if "boundary" in data:
        boundary = _parse_planar_ring(data["boundary"], "boundary")
    elif "coordinates" in data:
        geo = _parse_geo_ring(data["coordinates"], "coordinates")
        if not geo:
            raise LandParseError("coordinates: expected at least one point")
        projection = projection_for(geo)
        boundary = projection.ring_to_local(geo)
    else:
        raise LandParseError("Land spec needs 'boundary' or 'coordinates'")

    raw_zones = data.get("zones") or []
    if not isinstance(raw_zones, list):
        raise LandParseError("zones: expected a list")
    zones = tuple(
        _parse_zone(z, i, projection) for i, z in enumerate(raw_zones)
    )

    land_area = _parse_area(data.get("land_area", data.get("area")), "area")

    return LandAreaSpec(
        boundary=boundary,
        zones=zones,
        land_area=land_area,
        projection=projection,
    )


def parse_restricted_zones(
    data: Any,
    projection: LocalProjection | None = None,
) -> list[RestrictedZone]:
    """Parse restricted zones from a list or a terrain-analysis result.

    Accepts ``[{"type": "water", "severity": "prohibited",
    "coordinates": [...]}, ...]`` or ``{"restrictedAreas": [...]}``.
    Coordinates are geographic when *projection* is given, planar
    otherwise.
    """
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("restrictedAreas", data.get("restricted_zones", []))
    if not isinstance(data, list):
        raise LandParseError("Restricted zones must be a list")

    zones = []
    for i, z in enumerate(data):
        label = f"restricted zone {i + 1}"
        if not isinstance(z, dict):
            raise LandParseError(f"{label}: expected an object")
        raw = z.get("vertices", z.get("coordinates"))
        if raw is None:
            raise LandParseError(f"{label}: missing coordinates")
        vertices = _parse_ring(raw, label, projection)
        area = _parse_area(z.get("area"), label)
        zones.append(RestrictedZone(
            vertices=vertices,
            classification=str(z.get("classification", z.get("type", "unknown"))),
            severity=str(z.get("severity", PROHIBITED)).lower(),
            reason=str(z.get("reason", "")),
            area=area,
        ))
    return zones


# ── Helpers ────────────────────────────────────────────────────────


def _parse_zone(
    z: dict, index: int, projection: LocalProjection | None,
) -> LandZone:
    if not isinstance(z, dict):
        raise LandParseError(f"Zone {index + 1}: expected an object")
    name = str(z.get("name") or f"Zone {index + 1}")
    kind = str(z.get("zone_type", z.get("kind", ""))).lower()
    if kind not in ZONE_KINDS:
        raise LandParseError(
            f"Zone '{name}': zone_type must be one of {', '.join(ZONE_KINDS)}")
    raw = z.get("vertices", z.get("coordinates"))
    if raw is None:
        raise LandParseError(f"Zone '{name}': missing coordinates")
    return LandZone(
        name=name,
        kind=kind,
        vertices=_parse_ring(raw, f"zone '{name}'", projection),
    )


def _parse_ring(
    raw: Any, label: str, projection: LocalProjection | None,
) -> tuple[tuple[float, float], ...]:
    if projection is None:
        return _parse_planar_ring(raw, label)
    return projection.ring_to_local(_parse_geo_ring(raw, label))


def _parse_planar_ring(raw: Any, label: str) -> tuple[tuple[float, float], ...]:
    """Parse ``[[x, y], ...]`` or ``[{"x": .., "y": ..}, ...]``."""
    if not isinstance(raw, (list, tuple)):
        raise LandParseError(f"{label}: expected a list of points")
    pts = []
    for p in raw:
        try:
            if isinstance(p, dict):
                pts.append((float(p["x"]), float(p["y"])))
            else:
                pts.append((float(p[0]), float(p[1])))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise LandParseError(f"{label}: invalid point {p!r}") from exc
    return tuple(pts)


def _parse_geo_ring(raw: Any, label: str) -> list[tuple[float, float]]:
    """Parse ``[{"lat": .., "lng": ..}, ...]`` into (lng, lat) pairs."""
    if not isinstance(raw, (list, tuple)):
        raise LandParseError(f"{label}: expected a list of coordinates")
    pts = []
    for p in raw:
        try:
            lng = float(p["lng"])
            lat = float(p["lat"])
        except (KeyError, TypeError, ValueError) as exc:
            raise LandParseError(f"{label}: invalid coordinate {p!r}") from exc
        pts.append((lng, lat))
    return pts


def _parse_area(raw: Any, label: str) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise LandParseError(f"{label}: area must be a number")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise LandParseError(f"{label}: area must be a number, got {raw!r}") from exc
