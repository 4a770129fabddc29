"""KML import: extract zone rings from Google Earth placemarks."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from polyplan.geometry.ops import DEFAULT_OPS, GeometryError

from .projection import projection_for

log = logging.getLogger(__name__)


@dataclass
class KmlZone:
    name: str
    coordinates: list[dict[str, float]]     # [{"lat": .., "lng": ..}, ...]
    area: float = 0.0                       # m²


@dataclass
class KmlParseResult:
    zones: list[KmlZone] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _find_all(elem: ET.Element, name: str) -> list[ET.Element]:
    return [e for e in elem.iter() if _local(e.tag) == name]


def _find_first(elem: ET.Element, name: str) -> ET.Element | None:
    for e in elem.iter():
        if _local(e.tag) == name:
            return e
    return None


def parse_coordinates(text: str) -> list[dict[str, float]]:
    """Parse a KML ``lng,lat[,alt] lng,lat[,alt] ...`` string.

    Points that fail to parse or fall outside valid lat/lng ranges are
    dropped.  A closing point equal to the first is removed.
    """
    coords: list[dict[str, float]] = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lng, lat = float(parts[0]), float(parts[1])
        except ValueError:
            continue
        if -90 <= lat <= 90 and -180 <= lng <= 180:
            coords.append({"lat": lat, "lng": lng})
    if len(coords) > 1 and coords[0] == coords[-1]:
        coords.pop()
    return coords


def ring_area(coords: list[dict[str, float]]) -> float:
    """Planar area in m² of a lat/lng ring, 0 when the ring is degenerate."""
    geo = [(c["lng"], c["lat"]) for c in coords]
    local = projection_for(geo).ring_to_local(geo)
    try:
        return DEFAULT_OPS.area(DEFAULT_OPS.polygon(local))
    except GeometryError:
        return 0.0


def parse_kml(content: str) -> KmlParseResult:
    """Extract every placemark's polygon (or line string) as a zone.

    Never raises for bad input; problems are collected in ``errors``.
    """
    result = KmlParseResult()
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        result.errors.append(f"Invalid XML structure in KML file: {exc}")
        return result

    placemarks = _find_all(root, "Placemark")
    if not placemarks:
        result.errors.append("No Placemark elements found in KML file")
        return result

    for i, pm in enumerate(placemarks):
        name_el = next(
            (c for c in pm if _local(c.tag) == "name"), None)
        name = (name_el.text or "").strip() if name_el is not None else ""
        name = name or f"Zone {i + 1}"

        text = None
        for geom_tag in ("Polygon", "LineString"):
            geom = _find_first(pm, geom_tag)
            if geom is None:
                continue
            coords_el = _find_first(geom, "coordinates")
            if coords_el is not None and (coords_el.text or "").strip():
                text = coords_el.text
                break

        if text is None:
            result.errors.append(f"No coordinates found in placemark: {name}")
            continue

        coords = parse_coordinates(text)
        if len(coords) < 3:
            result.errors.append(
                f"Insufficient coordinates ({len(coords)}) in placemark: "
                f"{name}. Need at least 3 points.")
            continue

        result.zones.append(
            KmlZone(name=name, coordinates=coords, area=ring_area(coords)))

    if not result.zones and not result.errors:
        result.errors.append("No valid zones could be extracted from KML file")

    log.info("KML: %d zone(s), %d error(s)", len(result.zones), len(result.errors))
    return result
