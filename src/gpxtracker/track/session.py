# gpxtracker/track/session.py
"""
Track session: the aggregate root for a recording.

Holds waypoints, stored tracks, the segments closed during this session,
the open segment that receives live fixes, and four running totals.

The running totals are caches. add_fix() updates them in O(1) per fix;
every structural change (erase, load) rebuilds them with
recalculate_stats(). get_global_stats() never uses them.

Threading: one writer at a time. All mutators take the session lock;
display/export threads should read from snapshot().
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, Optional, Union

from gpxtracker.analyze.geo import Coordinate, distance_m
from gpxtracker.analyze.stats import MOVING_SPEED_THRESHOLD_MPS, Stats, reduce_all
from gpxtracker.config import DEFAULT_CREATOR, GpxTrackerConfig
from gpxtracker.errors import InvalidFixError
from gpxtracker.formats import gpx
from gpxtracker.track.erase import is_degenerate, split_segment, split_segments
from gpxtracker.track.fix import Fix, Waypoint
from gpxtracker.track.segment import Track, TrackSegment
from gpxtracker.util.logging import log


class TrackSession:

    def __init__(self, *,
                 creator: str = DEFAULT_CREATOR,
                 moving_speed_mps: float = MOVING_SPEED_THRESHOLD_MPS) -> None:
        self.creator = creator
        self.moving_speed_mps = moving_speed_mps
        self._lock = threading.RLock()

        self.waypoints: list[Waypoint] = []
        self.tracks: list[Track] = []
        self.track_segments: list[TrackSegment] = []
        self.current_segment = TrackSegment()

        # meters
        self.total_tracked_distance = 0.0
        self.total_elevation_gain = 0.0
        self.current_track_distance = 0.0
        self.current_segment_distance = 0.0

    @classmethod
    def from_config(cls, cfg: GpxTrackerConfig) -> "TrackSession":
        return cls(creator=cfg.gpx.creator, moving_speed_mps=cfg.tracking.moving_speed_mps)

    @property
    def lock(self) -> threading.RLock:
        """Hold this to run several operations as one."""
        return self._lock

    # ------------------------------------------------------------------
    # Waypoints
    # ------------------------------------------------------------------
    def add_waypoint(self, waypoint: Waypoint) -> None:
        with self._lock:
            self.waypoints.append(waypoint)

    def remove_waypoint(self, waypoint: Waypoint) -> bool:
        """Remove a waypoint. Returns False (and logs) if it is not in the session."""
        with self._lock:
            try:
                self.waypoints.remove(waypoint)
            except ValueError:
                log("Waypoint not found")
                return False
        return True

    # ------------------------------------------------------------------
    # Live tracking
    # ------------------------------------------------------------------
    def add_fix(self, fix: Fix) -> None:
        """
        Append a live fix to the open segment and update the running totals.

        O(1): only the new fix, the previous fix and the segment's
        last-elevation cursor are looked at.
        """
        if not fix.has_coordinates:
            raise InvalidFixError("live fixes must have coordinates")

        with self._lock:
            seg = self.current_segment

            if len(seg) and fix.elevation is not None:
                baseline = seg.last_elevation
                if baseline is not None and fix.elevation > baseline:
                    self.total_elevation_gain += fix.elevation - baseline

            prev = seg.last
            seg.append(fix)

            # A previous fix without a position breaks the chain for this update.
            if prev is not None and prev.has_coordinates:
                d = distance_m(prev.coordinate, fix.coordinate)
                self.current_track_distance += d
                self.total_tracked_distance += d
                self.current_segment_distance += d

    def add_location(self, latitude: float, longitude: float, elevation: Optional[float] = None,
                     time=None) -> Fix:
        """Build a Fix from raw sensor values and add it."""
        fix = Fix(latitude=latitude, longitude=longitude, elevation=elevation, time=time)
        self.add_fix(fix)
        return fix

    def start_new_segment(self) -> None:
        """Close the open segment if it has points. Empty segments are never stored."""
        with self._lock:
            if len(self.current_segment) > 0:
                self.track_segments.append(self.current_segment)
                self.current_segment = TrackSegment()
                self.current_segment_distance = 0.0

    def reset(self) -> None:
        """Discard everything held by this session."""
        with self._lock:
            self.track_segments = []
            self.tracks = []
            self.current_segment = TrackSegment()
            self.waypoints = []

            self.total_tracked_distance = 0.0
            self.total_elevation_gain = 0.0
            self.current_track_distance = 0.0
            self.current_segment_distance = 0.0

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------
    def erase_points(self, at: Coordinate, radius_m: float) -> int:
        """
        Remove all fixes within radius_m of `at`, splitting segments at the gaps.

        Returns the number of fixes removed. A negative/non-finite radius or
        an invalid coordinate erases nothing.
        """
        if is_degenerate(at, radius_m):
            log(f"Erase ignored: invalid target {at!r} / radius {radius_m!r}")
            return 0

        with self._lock:
            closed = split_segments(self.track_segments, at, radius_m)
            current = split_segment(self.current_segment, at, radius_m)
            removed = closed.removed + current.removed

            self.track_segments = closed.segments
            if current.segments:
                # Only the last piece stays open; earlier pieces are closed.
                self.track_segments.extend(current.segments[:-1])
                self.current_segment = current.segments[-1]
            else:
                self.current_segment = TrackSegment()

            for track in self.tracks:
                res = split_segments(track.segments, at, radius_m)
                track.segments = res.segments
                removed += res.removed

            self.recalculate_stats()

        log(f"Erased {removed} point(s) within {radius_m} m of {at[0]:.6f},{at[1]:.6f}")
        return removed

    def recalculate_stats(self) -> None:
        """Rebuild the four running totals from every segment."""
        with self._lock:
            total_distance = 0.0
            total_gain = 0.0
            track_distance = 0.0

            for track in self.tracks:
                for seg in track.segments:
                    total_distance += seg.length()
                    total_gain += seg.elevation_gain()
            for seg in self.track_segments:
                d = seg.length()
                total_distance += d
                total_gain += seg.elevation_gain()
                track_distance += d

            segment_distance = self.current_segment.length()
            self.current_segment_distance = segment_distance
            self.current_track_distance = track_distance + segment_distance
            self.total_tracked_distance = total_distance + segment_distance
            self.total_elevation_gain = total_gain + self.current_segment.elevation_gain()

    def load_from(self, tracks: Iterable[Track], waypoints: Iterable[Waypoint] = ()) -> None:
        """
        Continue a stored session.

        The last track's segments become this session's closed segments of
        the current track; earlier tracks are kept as history. Totals are
        rebuilt from scratch afterwards so nothing is counted twice.
        """
        with self._lock:
            # Own copies: erase replaces segment lists on these tracks.
            tracks = [Track(segments=list(t.segments), name=t.name) for t in tracks]
            last = tracks.pop() if tracks else Track()
            self.tracks = tracks
            self.track_segments = list(last.segments)
            self.waypoints.extend(waypoints)
            self.recalculate_stats()

    def continue_from_gpx(self, source: Union[gpx.GpxDocument, str, Path]) -> None:
        """load_from() a parsed document, a GPX string, or a GPX file path."""
        if isinstance(source, Path):
            doc = gpx.load_gpx(source)
        elif isinstance(source, str):
            doc = gpx.parse_gpx_string(source)
        else:
            doc = source
        self.load_from(doc.tracks, doc.waypoints)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def all_segments(self) -> list[TrackSegment]:
        """Stored tracks' segments, then closed segments, then the open one.

        The list is taken under the session lock.
        """
        with self._lock:
            segs = [seg for track in self.tracks for seg in track.segments]
            segs.extend(self.track_segments)
            segs.append(self.current_segment)
            return segs

    def get_global_stats(self) -> Stats:
        """Full recomputation over every segment; independent of the running totals."""
        with self._lock:
            return reduce_all(self.all_segments(), moving_speed_mps=self.moving_speed_mps)

    def snapshot(self) -> "TrackSession":
        """A copy that other threads can read while this session keeps recording."""
        with self._lock:
            snap = TrackSession(creator=self.creator, moving_speed_mps=self.moving_speed_mps)
            snap.waypoints = list(self.waypoints)
            snap.tracks = [Track(segments=list(t.segments), name=t.name) for t in self.tracks]
            snap.track_segments = list(self.track_segments)
            snap.current_segment = TrackSegment(self.current_segment)
            snap.total_tracked_distance = self.total_tracked_distance
            snap.total_elevation_gain = self.total_elevation_gain
            snap.current_track_distance = self.current_track_distance
            snap.current_segment_distance = self.current_segment_distance
            return snap

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def _export_segments(self) -> list[TrackSegment]:
        segs = list(self.track_segments)
        if len(self.current_segment) > 0:
            segs.append(self.current_segment)
        return segs

    def to_gpx(self):
        with self._lock:
            return gpx.build_gpx(self.waypoints, self._export_segments(), self.tracks, creator=self.creator)

    def export_to_gpx_string(self) -> str:
        log("Exporting session data into GPX string")
        return gpx.to_gpx_string(self.to_gpx())

    def export_to_file(self, out_path: Path) -> Path:
        log(f"Writing session to {out_path}")
        gpx.write_gpx(self.to_gpx(), out_path)
        return out_path
