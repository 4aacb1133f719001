# gpxtracker/analyze/track.py
"""
Track analysis functions for gpxtracker
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from gpxtracker.analyze.geo import distance_m
from gpxtracker.analyze.stats import MOVING_SPEED_THRESHOLD_MPS
from gpxtracker.config import DEFAULT_CREATOR
from gpxtracker.track.segment import TrackSegment
from gpxtracker.track.session import TrackSession


def compute_step_metrics(segments: Iterable[TrackSegment]):
    """Return per-step dt (s), distance (m), speed (m/s) within each segment.

    Steps never cross a segment boundary. Pairs without positions or
    timestamps, or where time does not advance, are left out.
    """
    dts = []
    ds = []
    vs = []

    for seg in segments:
        for p0, p1 in zip(seg, seg[1:]):
            if not (p0.has_coordinates and p1.has_coordinates):
                continue
            if p0.time is None or p1.time is None:
                continue
            dt_s = (p1.time - p0.time).total_seconds()
            if dt_s <= 0:
                continue

            d_m = distance_m(p0.coordinate, p1.coordinate)
            dts.append(dt_s)
            ds.append(d_m)
            vs.append(d_m / dt_s)

    return dts, ds, vs


def load_session(gpx_path: Path, *,
                 creator: str = DEFAULT_CREATOR,
                 moving_speed_mps: float = MOVING_SPEED_THRESHOLD_MPS) -> TrackSession:
    """Open a stored GPX file as a session that could continue recording."""
    session = TrackSession(creator=creator, moving_speed_mps=moving_speed_mps)
    session.continue_from_gpx(Path(gpx_path))
    return session


def summarize(session: TrackSession) -> dict[str, Any]:
    """Flat report of a session's global statistics."""
    snap = session.snapshot()
    segments = [s for s in snap.all_segments() if len(s)]
    stats = snap.get_global_stats()
    _, _, vs = compute_step_metrics(segments)

    return {
        "points": sum(len(s) for s in segments),
        "segments": len(segments),
        "waypoints": len(snap.waypoints),
        "distance_m": stats.total_distance,
        "elevation_gain_m": stats.total_elevation_gain,
        "elevation_loss_m": stats.total_elevation_loss,
        "min_elevation_m": stats.min_elevation,
        "max_elevation_m": stats.max_elevation,
        "moving_time_s": stats.moving_time,
        "duration_s": stats.duration_s,
        "avg_speed_mps": stats.average_speed_mps,
        "max_speed_mps": max(vs) if vs else 0.0,
        "start_time": stats.start_time,
        "end_time": stats.end_time,
    }


def analyze_track(gpx_path: Path, *, moving_speed_mps: Optional[float] = None) -> dict[str, Any]:
    if moving_speed_mps is None:
        moving_speed_mps = MOVING_SPEED_THRESHOLD_MPS
    return summarize(load_session(gpx_path, moving_speed_mps=moving_speed_mps))
