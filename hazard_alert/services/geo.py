"""
geo.py — Great-circle distance between two WGS84 coordinates.

Everything proximity-related in the backend goes through distance() so the
route correlator and the alert dispatcher agree on what "near" means.
"""

import math
from typing import NamedTuple

# Mean Earth radius in metres
EARTH_RADIUS_M = 6_371_000.0


class Coordinate(NamedTuple):
    """A (latitude, longitude) pair in degrees."""

    lat: float
    lon: float


def distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    """
    Haversine distance in metres between two (lat, lon) points.

    Symmetric and exactly 0.0 for identical points. Non-numeric input is not
    coerced; it fails with the TypeError math raises.
    """
    lat1, lon1 = a
    lat2, lon2 = b
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))
