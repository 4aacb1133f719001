# gpxtracker/analyze/stats.py
"""
Statistics aggregation for gpxtracker

Stats is a plain value: one per segment from TrackSegment.calculate_stats(),
folded together with combine(). reduce_all() is the authoritative summary;
the running totals kept by TrackSession are only caches of it.

Absent values (no elevation, no timestamps) stay absent. They are never
treated as zero when combining.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Iterable, Optional, TypeVar

# Pairs of fixes slower than this are considered stationary.
MOVING_SPEED_THRESHOLD_MPS = 0.5

_T = TypeVar("_T", float, _dt.datetime)


@dataclass
class Stats:
    total_distance: float = 0.0
    total_elevation_gain: float = 0.0
    total_elevation_loss: float = 0.0
    min_elevation: Optional[float] = None
    max_elevation: Optional[float] = None
    start_time: Optional[_dt.datetime] = None
    end_time: Optional[_dt.datetime] = None
    moving_time: float = 0.0  # seconds

    @property
    def duration_s(self) -> float:
        """Wall-clock span between start and end, 0 if either is unknown."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return max(0.0, (self.end_time - self.start_time).total_seconds())

    @property
    def average_speed_mps(self) -> float:
        """Distance over moving time."""
        if self.moving_time <= 0:
            return 0.0
        return self.total_distance / self.moving_time


def _min_defined(a: Optional[_T], b: Optional[_T]) -> Optional[_T]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max_defined(a: Optional[_T], b: Optional[_T]) -> Optional[_T]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def combine(a: Stats, b: Stats) -> Stats:
    """Merge two summaries into a new one. Neither input is modified."""
    return Stats(
        total_distance=a.total_distance + b.total_distance,
        total_elevation_gain=a.total_elevation_gain + b.total_elevation_gain,
        total_elevation_loss=a.total_elevation_loss + b.total_elevation_loss,
        min_elevation=_min_defined(a.min_elevation, b.min_elevation),
        max_elevation=_max_defined(a.max_elevation, b.max_elevation),
        start_time=_min_defined(a.start_time, b.start_time),
        end_time=_max_defined(a.end_time, b.end_time),
        moving_time=a.moving_time + b.moving_time,
    )


def reduce_all(segments: Iterable, *, moving_speed_mps: float = MOVING_SPEED_THRESHOLD_MPS) -> Stats:
    """
    Fold calculate_stats() of every segment through combine(), left to right.

    An empty iterable yields Stats() (zero distance/moving time, all optional
    fields absent).
    """
    total = Stats()
    for seg in segments:
        total = combine(total, seg.calculate_stats(moving_speed_mps=moving_speed_mps))
    return total
