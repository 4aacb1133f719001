# gpxtracker/track/segment.py
"""
Track segments and tracks

A TrackSegment is an ordered run of fixes. Insertion order is chronological
order and is never changed. All geometry here is computed over the whole
segment on demand; the O(1) per-fix path lives in TrackSession.add_fix.

Elevation rule used throughout: the comparison baseline is the *last fix
that reported an elevation*, not the immediately preceding fix. Fixes
without elevation are skipped and do not reset the baseline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from gpxtracker.analyze.geo import Coordinate, distance_m
from gpxtracker.analyze.stats import MOVING_SPEED_THRESHOLD_MPS, Stats
from gpxtracker.errors import InvalidFixError
from gpxtracker.track.fix import Fix


class TrackSegment:
    """Ordered, append-only sequence of fixes."""

    def __init__(self, fixes: Optional[Iterable[Fix]] = None) -> None:
        # Storage and erase output may contain fixes without coordinates,
        # so the constructor takes fixes as-is. append() is stricter.
        self._fixes: list[Fix] = []
        self._last_elevation: Optional[float] = None
        for fx in fixes or ():
            self._push(fx)

    def _push(self, fx: Fix) -> None:
        self._fixes.append(fx)
        if fx.elevation is not None:
            self._last_elevation = fx.elevation

    def append(self, fx: Fix) -> None:
        """Add a fix at the end. Fixes without coordinates are refused."""
        if not fx.has_coordinates:
            raise InvalidFixError("cannot append a fix without coordinates")
        self._push(fx)

    @property
    def fixes(self) -> tuple[Fix, ...]:
        return tuple(self._fixes)

    @property
    def last(self) -> Optional[Fix]:
        return self._fixes[-1] if self._fixes else None

    @property
    def last_elevation(self) -> Optional[float]:
        """Elevation of the last fix that had one (baseline for gain)."""
        return self._last_elevation

    def __len__(self) -> int:
        return len(self._fixes)

    def __iter__(self) -> Iterator[Fix]:
        return iter(self._fixes)

    def __getitem__(self, idx):
        return self._fixes[idx]

    def __repr__(self) -> str:
        return f"TrackSegment({len(self._fixes)} fixes)"

    def coordinates(self) -> list[Coordinate]:
        """Ordered (lat, lon) pairs for drawing; fixes without a position are left out."""
        return [fx.coordinate for fx in self._fixes if fx.has_coordinates]

    def length(self) -> float:
        """
        Length in meters: sum of distances between consecutive fixes that
        have coordinates. Fixes without coordinates are skipped, so the
        neighbours on either side are joined directly.
        """
        total = 0.0
        if len(self._fixes) < 2:
            return total
        prev: Optional[Coordinate] = None
        for fx in self._fixes:
            here = fx.coordinate
            if here is None:
                continue
            if prev is not None:
                total += distance_m(prev, here)
            prev = here
        return total

    def elevation_gain(self) -> float:
        """Sum of positive elevation deltas, in meters."""
        gain = 0.0
        if len(self._fixes) < 2:
            return gain
        baseline: Optional[float] = None
        for fx in self._fixes:
            if fx.elevation is None:
                continue
            if baseline is not None and fx.elevation > baseline:
                gain += fx.elevation - baseline
            baseline = fx.elevation
        return gain

    def calculate_stats(self, *, moving_speed_mps: float = MOVING_SPEED_THRESHOLD_MPS) -> Stats:
        """
        Single-pass summary of this segment.

        Moving time counts a pair of consecutive fixes only when both have
        coordinates and timestamps, time advances, and the speed between
        them exceeds moving_speed_mps. Other pairs add nothing but do not
        stop the scan.
        """
        stats = Stats(total_distance=self.length())
        if not self._fixes:
            return stats

        stats.start_time = self._fixes[0].time
        stats.end_time = self._fixes[-1].time

        baseline: Optional[float] = None
        prev: Optional[Fix] = None
        for fx in self._fixes:
            ele = fx.elevation
            if ele is not None:
                if stats.min_elevation is None or ele < stats.min_elevation:
                    stats.min_elevation = ele
                if stats.max_elevation is None or ele > stats.max_elevation:
                    stats.max_elevation = ele
                if baseline is not None:
                    diff = ele - baseline
                    if diff > 0:
                        stats.total_elevation_gain += diff
                    else:
                        stats.total_elevation_loss -= diff
                baseline = ele

            if (
                prev is not None
                and prev.time is not None and fx.time is not None
                and prev.has_coordinates and fx.has_coordinates
            ):
                dt_s = (fx.time - prev.time).total_seconds()
                if dt_s > 0:
                    d_m = distance_m(prev.coordinate, fx.coordinate)
                    if d_m / dt_s > moving_speed_mps:
                        stats.moving_time += dt_s
            prev = fx

        return stats


@dataclass
class Track:
    """An ordered list of segments, typically loaded from a saved session."""

    segments: list[TrackSegment] = field(default_factory=list)
    name: Optional[str] = None

    @property
    def point_count(self) -> int:
        return sum(len(s) for s in self.segments)
