"""Land parcel dataclasses: the optimizer's input structure."""

from __future__ import annotations

from dataclasses import dataclass, field

from .projection import LocalProjection


INCLUSION = "inclusion"
EXCLUSION = "exclusion"
ZONE_KINDS = (INCLUSION, EXCLUSION)

PROHIBITED = "prohibited"
CHALLENGING = "challenging"
WARNING = "warning"
SEVERITIES = (PROHIBITED, CHALLENGING, WARNING)


@dataclass(frozen=True)
class LandZone:
    """A named inclusion or exclusion ring drawn by the user."""

    name: str
    kind: str                               # "inclusion" | "exclusion"
    vertices: tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class RestrictedZone:
    """A terrain hazard supplied by the terrain-analysis service.

    Only ``prohibited`` zones constrain placement; ``challenging`` and
    ``warning`` zones are advisory context.
    """

    vertices: tuple[tuple[float, float], ...]
    classification: str                     # water, forest, road, ...
    severity: str = PROHIBITED
    reason: str = ""
    area: float | None = None

    @property
    def is_prohibited(self) -> bool:
        return self.severity == PROHIBITED


@dataclass(frozen=True)
class LandAreaSpec:
    """The parcel to plan.

    ``boundary`` is an implicitly closed ring in planar units.  When the
    parcel came in as lat/lng, ``projection`` maps those planar units
    back to geographic coordinates.
    """

    boundary: tuple[tuple[float, float], ...]
    zones: tuple[LandZone, ...] = ()
    land_area: float | None = None
    projection: LocalProjection | None = field(default=None, compare=False)

    @property
    def inclusion_zones(self) -> list[LandZone]:
        return [z for z in self.zones if z.kind == INCLUSION]

    @property
    def exclusion_zones(self) -> list[LandZone]:
        return [z for z in self.zones if z.kind == EXCLUSION]
