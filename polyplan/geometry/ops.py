"""Narrow geometry interface used by the optimizer.

Every union / difference / offset / containment / overlap question the
optimizer asks goes through :class:`GeometryOps`.  The default
implementation is backed by Shapely; nothing outside this module builds
Shapely predicates directly.

All coordinates are planar distance units (metres for projected
geographic input), origin bottom-left.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterable, Iterator, Sequence

import shapely
from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import make_valid

Vertex = tuple[float, float]

# Trig values closer than this to 0 / ±1 are snapped so axis-aligned
# rotations produce exact corner coordinates.
_TRIG_SNAP = 1e-12


def rotation_terms(angle_deg: float) -> tuple[float, float]:
    """Return (cos, sin) of *angle_deg*, snapped for right angles."""
    rad = math.radians(angle_deg)
    c, s = math.cos(rad), math.sin(rad)
    if abs(c) < _TRIG_SNAP:
        c = 0.0
    if abs(s) < _TRIG_SNAP:
        s = 0.0
    return c, s


def rotate_offset(
    dx: float, dy: float, cos_r: float, sin_r: float,
) -> tuple[float, float]:
    """Rotate a local offset by a precomputed (cos, sin) pair."""
    return (dx * cos_r - dy * sin_r, dx * sin_r + dy * cos_r)


def rectangle_corners(
    cx: float, cy: float,
    width: float, depth: float,
    angle_deg: float,
) -> list[Vertex]:
    """Corners of a width × depth rectangle centred on (cx, cy).

    *width* runs along the local X axis before rotation, *depth* along
    local Y.  Order: bottom-left, bottom-right, top-right, top-left
    (counter-clockwise for positive width/depth).
    """
    cos_r, sin_r = rotation_terms(angle_deg)
    hw, hd = width / 2, depth / 2
    corners = []
    for lx, ly in ((-hw, -hd), (hw, -hd), (hw, hd), (-hw, hd)):
        ox, oy = rotate_offset(lx, ly, cos_r, sin_r)
        corners.append((cx + ox, cy + oy))
    return corners


def _distinct_vertices(vertices: Sequence[Sequence[float]]) -> list[Vertex]:
    """Drop a closing duplicate and consecutive repeats."""
    pts: list[Vertex] = []
    for v in vertices:
        p = (float(v[0]), float(v[1]))
        if not pts or pts[-1] != p:
            pts.append(p)
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts.pop()
    return pts


class GeometryError(ValueError):
    """Raised when a ring cannot be turned into a usable polygon, or when
    GEOS fails on a predicate or buffer."""


@contextmanager
def _geos(what: str) -> Iterator[None]:
    try:
        yield
    except GEOSException as exc:
        raise GeometryError(f"{what} failed: {exc}") from exc


class GeometryOps:
    """Shapely-backed polygon operations.

    The optimizer receives an instance of this class rather than calling
    Shapely itself, so an alternative backend only has to provide the
    same methods.
    """

    # ── Construction ───────────────────────────────────────────────

    def polygon(self, vertices: Sequence[Sequence[float]]) -> BaseGeometry:
        """Build a polygon from an (implicitly closed) ring.

        Self-intersecting rings are repaired; the result may then be a
        MultiPolygon.  Raises GeometryError for degenerate rings.
        """
        pts = _distinct_vertices(vertices)
        if len(pts) < 3:
            raise GeometryError(
                f"Ring needs at least 3 distinct vertices, got {len(pts)}")
        poly = Polygon(pts)
        if not poly.is_valid:
            poly = self.make_valid(poly)
        if poly.is_empty or poly.area <= 0:
            raise GeometryError("Ring encloses zero area")
        return poly

    def rectangle(
        self, cx: float, cy: float,
        width: float, depth: float,
        angle_deg: float,
    ) -> Polygon:
        return Polygon(rectangle_corners(cx, cy, width, depth, angle_deg))

    def make_valid(self, geom: BaseGeometry) -> BaseGeometry:
        """Repair *geom*, keeping only its areal parts."""
        fixed = make_valid(geom)
        if isinstance(fixed, (Polygon, MultiPolygon)):
            return fixed
        parts = [
            g for g in getattr(fixed, "geoms", [])
            if isinstance(g, (Polygon, MultiPolygon)) and not g.is_empty
        ]
        return unary_union(parts) if parts else Polygon()

    # ── Boolean operations ─────────────────────────────────────────

    def union(self, geoms: Iterable[BaseGeometry]) -> BaseGeometry:
        geoms = [g for g in geoms if g is not None and not g.is_empty]
        if not geoms:
            return Polygon()
        return unary_union(geoms)

    def difference(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        if b is None or b.is_empty:
            return a
        return a.difference(b)

    def offset(self, geom: BaseGeometry, distance: float) -> BaseGeometry:
        """Offset a polygon; negative distances shrink it.

        Mitre joins keep the corners of rectilinear parcels square.
        """
        if distance == 0:
            return geom
        return geom.buffer(distance, join_style="mitre")

    def grow(self, geom: BaseGeometry, distance: float) -> BaseGeometry:
        """Grow *geom* outward by *distance* with rounded corners.

        Used for corridor footprints: every point of the grown shape lies
        within *distance* of the original.
        """
        if distance <= 0:
            return geom
        with _geos("grow"):
            return geom.buffer(distance)

    # ── Predicates ─────────────────────────────────────────────────

    def prepare(self, geom: BaseGeometry) -> BaseGeometry:
        """Prepare *geom* in place for repeated predicate calls."""
        shapely.prepare(geom)
        return geom

    def contains_point(self, geom: BaseGeometry, x: float, y: float) -> bool:
        return geom.contains(Point(x, y))

    def edges(self, geom: BaseGeometry) -> BaseGeometry:
        """The boundary line work of a polygon."""
        return geom.boundary

    def point_distance(self, geom: BaseGeometry, x: float, y: float) -> float:
        return float(geom.distance(Point(x, y)))

    def contains(self, outer: BaseGeometry, inner: BaseGeometry) -> bool:
        """True if *inner* lies entirely inside *outer*.

        Falls back to the inverse ``within`` test when the primary
        predicate says no; boundary-sharing edges occasionally disagree
        between the two.
        """
        with _geos("contains"):
            if outer.contains(inner):
                return True
            return inner.within(outer)

    def interiors_intersect(self, a: BaseGeometry, b: BaseGeometry) -> bool:
        """True if *a* and *b* overlap, one contains the other, or they
        are equal.  Shapes that only touch along an edge do not count.
        """
        with _geos("interiors_intersect"):
            if not a.intersects(b):
                return False
            return not a.touches(b)

    # ── Measurements ───────────────────────────────────────────────

    def area(self, geom: BaseGeometry) -> float:
        return float(geom.area)

    def bounds(self, geom: BaseGeometry) -> tuple[float, float, float, float]:
        xmin, ymin, xmax, ymax = geom.bounds
        return (float(xmin), float(ymin), float(xmax), float(ymax))

    def is_empty(self, geom: BaseGeometry) -> bool:
        return geom is None or geom.is_empty


DEFAULT_OPS = GeometryOps()
