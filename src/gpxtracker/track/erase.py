# gpxtracker/track/erase.py
"""
Spatial erase

Removes every fix within a radius of a target coordinate and splits the
affected segments at the gaps left behind. Fix order is preserved and fixes
from different input segments are never merged.

A fix without coordinates cannot be inside the circle, so it is kept.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from gpxtracker.analyze.geo import Coordinate, distance_m, is_valid_coordinate
from gpxtracker.track.fix import Fix
from gpxtracker.track.segment import TrackSegment


@dataclass(frozen=True)
class EraseResult:
    segments: list[TrackSegment]
    removed: int


def is_degenerate(center: Coordinate, radius_m: float) -> bool:
    """True when the erase request cannot match anything (it keeps all points)."""
    try:
        r = float(radius_m)
    except (TypeError, ValueError):
        return True
    if not math.isfinite(r) or r < 0:
        return True
    try:
        lat, lon = center
    except (TypeError, ValueError):
        return True
    return not is_valid_coordinate(lat, lon)


def _is_erased(fx: Fix, center: Coordinate, radius_m: float) -> bool:
    here = fx.coordinate
    if here is None:
        return False
    return distance_m(here, center) <= radius_m


def split_segment(segment: TrackSegment, center: Coordinate, radius_m: float) -> EraseResult:
    """
    Filter one segment into zero or more runs of surviving fixes.

    A degenerate request (negative/non-finite radius, invalid center)
    returns the segment unchanged.
    """
    if is_degenerate(center, radius_m):
        return EraseResult(segments=[segment] if len(segment) else [], removed=0)

    out: list[TrackSegment] = []
    run: list[Fix] = []
    removed = 0
    for fx in segment:
        if not _is_erased(fx, center, radius_m):
            run.append(fx)
            continue
        removed += 1
        if run:
            out.append(TrackSegment(run))
            run = []
    if run:
        out.append(TrackSegment(run))

    # Nothing removed: keep the original object.
    if removed == 0 and len(out) == 1:
        out = [segment]
    return EraseResult(segments=out, removed=removed)


def split_segments(segments: Iterable[TrackSegment], center: Coordinate, radius_m: float) -> EraseResult:
    """Apply split_segment to each input and flatten the runs in order."""
    out: list[TrackSegment] = []
    removed = 0
    for seg in segments:
        res = split_segment(seg, center, radius_m)
        out.extend(res.segments)
        removed += res.removed
    return EraseResult(segments=out, removed=removed)
