"""Shared parcels for the optimizer tests.

  - 200×100 open rectangle (the reference parcel)
  - irregular pentagon
  - rectangle with a prohibited pond in one corner
"""

from __future__ import annotations

from polyplan.pipeline.land.models import LandAreaSpec, LandZone, RestrictedZone


def box_ring(x0: float, y0: float, x1: float, y1: float) -> tuple:
    return ((x0, y0), (x1, y0), (x1, y1), (x0, y1))


def make_rectangle_land(width: float = 200.0, height: float = 100.0) -> LandAreaSpec:
    return LandAreaSpec(boundary=box_ring(0, 0, width, height))


def make_irregular_land() -> LandAreaSpec:
    """A five-sided parcel with no right angles on the north side."""
    return LandAreaSpec(boundary=(
        (0.0, 0.0), (260.0, 0.0), (300.0, 120.0), (150.0, 220.0), (0.0, 160.0),
    ))


def make_zoned_land() -> LandAreaSpec:
    """200×100 rectangle with the western quarter excluded by the user."""
    return LandAreaSpec(
        boundary=box_ring(0, 0, 200, 100),
        zones=(LandZone("access road", "exclusion", box_ring(0, 0, 50, 100)),),
    )


def make_pond(severity: str = "prohibited") -> RestrictedZone:
    """A 60×40 water body in the north-east corner of the 200×100 parcel."""
    return RestrictedZone(
        vertices=box_ring(140, 60, 200, 100),
        classification="water",
        severity=severity,
        reason="Permanent water",
    )
