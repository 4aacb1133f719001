#!/usr/bin/env python3
"""
gpx_analyze.py: report statistics for stored GPX sessions

Each file is opened as a session (the last track becomes the open track),
optionally edited with --erase, then summarized from a full recomputation.

Examples:
  gpxtracker-analyze ride.gpx --imperial
  gpxtracker-analyze ride.gpx --erase 45.5017,-73.5673,50 --out ~/GPS/_edited
  gpxtracker-analyze trail.gpx --erase -41.2865,174.7762,25
  gpxtracker-analyze --tsv            # pick files with fzf under the work root
"""

from __future__ import annotations

import argparse
import datetime as dt
import sys
from pathlib import Path
from typing import Any, Optional

from gpxtracker.analyze.track import load_session, summarize
from gpxtracker.config import load_config
from gpxtracker.errors import GpxTrackerError
from gpxtracker.util.fzf import fzf_select_sessions, list_gpx_candidates
from gpxtracker.util.paths import ensure_dir, slugify

M_PER_MILE = 1609.344
FT_PER_M = 3.280839895


# ---------------------------
# Unit-aware formatting
# ---------------------------
def format_distance(m: float, *, imperial: bool) -> str:
    if imperial:
        miles = m / M_PER_MILE
        return f"{miles:.2f} mi" if miles >= 0.1 else f"{m * FT_PER_M:.0f} ft"
    return f"{m / 1000:.2f} km" if m >= 1000 else f"{m:.0f} m"


def format_altitude(m: Optional[float], *, imperial: bool) -> str:
    if m is None:
        return "-"
    return f"{m * FT_PER_M:.0f} ft" if imperial else f"{m:.0f} m"


def format_speed(mps: float, *, imperial: bool) -> str:
    if imperial:
        return f"{mps * 3600 / M_PER_MILE:.1f} mph"
    return f"{mps * 3.6:.1f} km/h"


def format_pace(mps: float, *, imperial: bool) -> str:
    if mps <= 0:
        return "-"
    per = M_PER_MILE if imperial else 1000.0
    secs = int(round(per / mps))
    return f"{secs // 60}:{secs % 60:02d} /{'mi' if imperial else 'km'}"


def format_duration(seconds: float) -> str:
    s = int(seconds)
    hours, minutes, secs = s // 3600, s // 60 % 60, s % 60
    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def _format_time(t: Optional[dt.datetime]) -> str:
    return t.isoformat() if t is not None else "-"


TSV_HEADER = (
    "file\tpoints\tsegments\tdistance_m\televation_gain_m\televation_loss_m"
    "\tmoving_time_s\tduration_s\tavg_speed_mps\tmax_speed_mps"
)


def print_report(path: Path, stats: dict[str, Any], *, tsv: bool, imperial: bool = False) -> None:
    if tsv:
        print(
            f"{path}\t"
            f"{stats['points']}\t"
            f"{stats['segments']}\t"
            f"{stats['distance_m']:.2f}\t"
            f"{stats['elevation_gain_m']:.1f}\t"
            f"{stats['elevation_loss_m']:.1f}\t"
            f"{stats['moving_time_s']:.1f}\t"
            f"{stats['duration_s']:.1f}\t"
            f"{stats['avg_speed_mps']:.3f}\t"
            f"{stats['max_speed_mps']:.3f}"
        )
        return

    u = {"imperial": imperial}
    print(f"\n{path}")
    print(f"  points         : {stats['points']}")
    print(f"  segments       : {stats['segments']}")
    print(f"  waypoints      : {stats['waypoints']}")
    print(f"  distance       : {format_distance(stats['distance_m'], **u)}")
    print(f"  moving time    : {format_duration(stats['moving_time_s'])}")
    print(f"  avg speed      : {format_speed(stats['avg_speed_mps'], **u)}")
    print(f"  avg pace       : {format_pace(stats['avg_speed_mps'], **u)}")
    print(f"  max speed      : {format_speed(stats['max_speed_mps'], **u)}")
    print(f"  elevation gain : {format_altitude(stats['elevation_gain_m'], **u)}")
    print(f"  elevation loss : {format_altitude(stats['elevation_loss_m'], **u)}")
    print(f"  max elevation  : {format_altitude(stats['max_elevation_m'], **u)}")
    print(f"  min elevation  : {format_altitude(stats['min_elevation_m'], **u)}")
    print(f"  start          : {_format_time(stats['start_time'])}")
    print(f"  end            : {_format_time(stats['end_time'])}")


def _erase_arg(text: str) -> tuple[float, float, float]:
    parts = text.split(",")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError("expected LAT,LON,RADIUS_M")
    try:
        lat, lon, radius = (float(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not numeric: {text!r}") from None
    return lat, lon, radius


def _attach_erase_values(argv: list[str]) -> list[str]:
    """Rewrite `--erase VALUE` as `--erase=VALUE`.

    argparse takes "-45.5,-73.5,50" for an option, so a southern latitude
    would otherwise need the `=` form.
    """
    out: list[str] = []
    it = iter(argv)
    for arg in it:
        if arg == "--":
            out.append(arg)
            out.extend(it)
            break
        if arg == "--erase":
            value = next(it, None)
            if value is not None:
                out.append(f"--erase={value}")
                continue
        out.append(arg)
    return out


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="gpxtracker: Analyze GPX session file(s).")
    ap.add_argument("gpx", nargs="*",
                    help="One or more GPX files. If omitted, use fzf selection under the work root.")
    ap.add_argument("--work-root", default=None,
                    help="Where to look for GPX files (default: from config or ~/GPS/_work)")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    units = ap.add_mutually_exclusive_group()
    units.add_argument("--imperial", dest="imperial", action="store_true", default=None,
                       help="Miles/feet (default: display.units from config)")
    units.add_argument("--metric", dest="imperial", action="store_false",
                       help="Kilometres/metres")
    ap.set_defaults(imperial=None)
    ap.add_argument("--erase", type=_erase_arg, action="append", default=[], metavar="LAT,LON,R",
                    help="Erase points within R meters of LAT,LON before reporting (repeatable).")
    ap.add_argument("--out", default=None,
                    help="Directory to write the (edited) sessions to as GPX.")
    ap.add_argument("--plot", action="store_true",
                    help="Plot the segments of each file.")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = build_parser().parse_args(_attach_erase_values(argv))
    cfg = load_config()
    imperial = cfg.display.imperial if args.imperial is None else args.imperial

    if args.gpx:
        selected = [Path(p).expanduser() for p in args.gpx]
    else:
        work_root = Path(args.work_root).expanduser() if args.work_root else cfg.paths.work_root
        candidates = list_gpx_candidates(work_root)
        if not candidates:
            raise SystemExit(f"No GPX files found under {work_root}")
        selected = fzf_select_sessions(candidates, header="Select GPX file(s) to analyze:")

    out_dir = ensure_dir(Path(args.out).expanduser()) if args.out else None

    if args.tsv:
        print(TSV_HEADER)

    failures = 0
    for path in selected:
        if not path.is_file():
            print(f"Skipping (not a file): {path}", file=sys.stderr)
            failures += 1
            continue
        try:
            session = load_session(path, creator=cfg.gpx.creator,
                                   moving_speed_mps=cfg.tracking.moving_speed_mps)
        except GpxTrackerError as e:
            print(f"Skipping ({e})", file=sys.stderr)
            failures += 1
            continue

        for lat, lon, radius in args.erase:
            session.erase_points((lat, lon), radius)

        print_report(path, summarize(session), tsv=args.tsv, imperial=imperial)

        if out_dir is not None:
            session.export_to_file(out_dir / f"{slugify(path.stem)}.gpx")

        if args.plot:
            from gpxtracker.visualize.plot import plot_segments
            plot_segments(list(session.all_segments()), waypoints=session.waypoints, title=path.name)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
