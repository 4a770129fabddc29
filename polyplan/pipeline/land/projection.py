"""Local planar frame for parcels given in latitude / longitude.

Parcels are small (a few hectares to a few km²), so an equirectangular
projection about the parcel centroid is accurate to well under a metre.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

METRES_PER_DEGREE = 111_320.0


@dataclass(frozen=True)
class LocalProjection:
    """Maps (lng, lat) degrees to (x, y) metres around an origin."""

    origin_lng: float
    origin_lat: float

    @property
    def _metres_per_lng(self) -> float:
        return METRES_PER_DEGREE * math.cos(math.radians(self.origin_lat))

    def to_local(self, lng: float, lat: float) -> tuple[float, float]:
        return (
            (lng - self.origin_lng) * self._metres_per_lng,
            (lat - self.origin_lat) * METRES_PER_DEGREE,
        )

    def to_geo(self, x: float, y: float) -> tuple[float, float]:
        """Inverse of :meth:`to_local`; returns (lng, lat)."""
        return (
            self.origin_lng + x / self._metres_per_lng,
            self.origin_lat + y / METRES_PER_DEGREE,
        )

    def ring_to_local(
        self, ring: Iterable[Sequence[float]],
    ) -> tuple[tuple[float, float], ...]:
        """Project a ring of (lng, lat) pairs."""
        return tuple(self.to_local(p[0], p[1]) for p in ring)


def projection_for(ring: Sequence[Sequence[float]]) -> LocalProjection:
    """Projection centred on the vertex mean of a (lng, lat) ring."""
    if not ring:
        raise ValueError("Cannot centre a projection on an empty ring")
    n = len(ring)
    return LocalProjection(
        origin_lng=sum(p[0] for p in ring) / n,
        origin_lat=sum(p[1] for p in ring) / n,
    )
