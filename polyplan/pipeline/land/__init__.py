"""Land parcel input: boundary, user zones, terrain restrictions.

Submodules:
  models      LandAreaSpec, LandZone, RestrictedZone dataclasses.
  projection  Local metre frame for lat/lng parcels.
  parsing     JSON conversion (parse_land_spec, parse_restricted_zones).
  validation  Pre-flight checks returning human-readable errors.
  kml         Zone import from KML placemarks.
"""

from .models import (
    LandAreaSpec, LandZone, RestrictedZone,
    INCLUSION, EXCLUSION, PROHIBITED, CHALLENGING, WARNING,
)
from .projection import LocalProjection, projection_for
from .parsing import parse_land_spec, parse_restricted_zones, LandParseError
from .validation import validate_land_spec
from .kml import parse_kml, KmlParseResult, KmlZone

__all__ = [
    # Models
    "LandAreaSpec", "LandZone", "RestrictedZone",
    "INCLUSION", "EXCLUSION", "PROHIBITED", "CHALLENGING", "WARNING",
    # Projection
    "LocalProjection", "projection_for",
    # Parsing / validation
    "parse_land_spec", "parse_restricted_zones", "LandParseError",
    "validate_land_spec",
    # KML
    "parse_kml", "KmlParseResult", "KmlZone",
]
