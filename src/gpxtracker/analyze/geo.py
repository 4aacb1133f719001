# gpxtracker/analyze/geo.py
"""
Great-circle helpers shared by segments, the session and the erase filter.
"""

from __future__ import annotations

import math
import numbers

from haversine import haversine, Unit

Coordinate = tuple[float, float]


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """True if (lat, lon) are real numbers forming a finite WGS84 position."""
    # Strings such as "45" are not positions, even though float() accepts them.
    for v in (lat, lon):
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in meters between two (lat, lon) pairs."""
    return haversine(a, b, unit=Unit.METERS)
