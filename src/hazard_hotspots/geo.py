"""Geographic utilities: Haversine distance and coordinate checks."""

from __future__ import annotations

import math

from hazard_hotspots.models import Location

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate the great-circle distance in metres between two points on Earth.

    NaN inputs propagate to a NaN result; callers validate coordinates first.
    """
    lat1, lng1, lat2, lng2 = map(math.radians, [lat1, lng1, lat2, lng2])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: Location, b: Location) -> float:
    """Haversine distance in metres between two locations."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """True for finite coordinates within the WGS84 lat/lng ranges."""
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0
