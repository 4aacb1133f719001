# gpxtracker/visualize/plot.py
"""
Plotting routines for gpxtracker

Segments are drawn as separate polylines so that the gaps left by erasing
or by starting a new segment stay visible.
"""

from typing import Iterable, Optional

import matplotlib.pyplot as plt

from gpxtracker.track.fix import Waypoint
from gpxtracker.track.segment import TrackSegment


def plot_segments(segments: Iterable[TrackSegment], *,
                  waypoints: Iterable[Waypoint] = (),
                  title: Optional[str] = None,
                  show: bool = True):
    """Draw each segment's coordinates; returns the matplotlib Axes."""
    fig, ax = plt.subplots(figsize=(8, 6))

    for i, seg in enumerate(segments):
        coords = seg.coordinates()
        if not coords:
            continue
        lats = [c[0] for c in coords]
        lons = [c[1] for c in coords]
        ax.plot(lons, lats, linewidth=1.5, label=f"segment {i + 1}")

    wps = list(waypoints)
    if wps:
        ax.scatter([w.longitude for w in wps], [w.latitude for w in wps],
                   marker="^", color="black", zorder=3, label="waypoints")

    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title(title or "Track segments")
    if ax.lines or wps:
        ax.legend(loc="best", fontsize="small")
    if show:
        plt.show()
    return ax
