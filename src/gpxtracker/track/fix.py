# gpxtracker/track/fix.py
"""
Point samples recorded by a tracking session.

Fix       - one location sample belonging to a track segment
Waypoint  - a user-placed point of interest

Both validate at construction: NaN/infinite numbers never reach the
distance and elevation accumulators.
"""

from __future__ import annotations

import datetime as dt
import math
import numbers
from dataclasses import dataclass
from typing import Optional

from gpxtracker.analyze.geo import Coordinate, is_valid_coordinate
from gpxtracker.errors import InvalidFixError


def _check_position(lat: Optional[float], lon: Optional[float], *,
                    required: bool) -> tuple[Optional[float], Optional[float]]:
    """Validate a position and return it as floats (None, None when absent)."""
    if lat is None and lon is None:
        if required:
            raise InvalidFixError("latitude/longitude are required")
        return None, None
    if lat is None or lon is None:
        raise InvalidFixError(f"incomplete coordinate: lat={lat!r} lon={lon!r}")
    if not is_valid_coordinate(lat, lon):
        raise InvalidFixError(f"invalid coordinate: lat={lat!r} lon={lon!r}")
    return float(lat), float(lon)


def _check_elevation(ele: Optional[float]) -> Optional[float]:
    if ele is None:
        return None
    if isinstance(ele, bool) or not isinstance(ele, numbers.Real) or not math.isfinite(ele):
        raise InvalidFixError(f"invalid elevation: {ele!r}")
    return float(ele)


def _as_utc(t: Optional[dt.datetime]) -> Optional[dt.datetime]:
    # Naive timestamps are taken as UTC, same as GPX <time> parsing.
    if t is None:
        return None
    if t.tzinfo is None:
        return t.replace(tzinfo=dt.timezone.utc)
    return t


@dataclass(frozen=True)
class Fix:
    """
    A single location sample.

    Coordinates are optional only for data loaded from storage. Live
    tracking (TrackSession.add_fix) and TrackSegment.append refuse fixes
    without them.
    """

    latitude: Optional[float]
    longitude: Optional[float]
    elevation: Optional[float] = None
    time: Optional[dt.datetime] = None

    def __post_init__(self) -> None:
        lat, lon = _check_position(self.latitude, self.longitude, required=False)
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)
        object.__setattr__(self, "elevation", _check_elevation(self.elevation))
        object.__setattr__(self, "time", _as_utc(self.time))

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if not self.has_coordinates:
            return None
        return (self.latitude, self.longitude)


@dataclass(eq=False)
class Waypoint:
    """
    A point-of-interest marker.

    Compared by identity: two markers dropped on the same spot are still two
    markers, and removing one must not remove the other.
    """

    latitude: float
    longitude: float
    elevation: Optional[float] = None
    time: Optional[dt.datetime] = None
    name: Optional[str] = None
    desc: Optional[str] = None

    def __post_init__(self) -> None:
        self.latitude, self.longitude = _check_position(self.latitude, self.longitude, required=True)
        self.elevation = _check_elevation(self.elevation)
        self.time = _as_utc(self.time)

    @property
    def coordinate(self) -> Coordinate:
        return (self.latitude, self.longitude)
