# gpxtracker/formats/gpx.py
"""
GPX helpers for gpxtracker

This module is intentionally format-focused:
- GPX namespace handling
- safely reading and writing ElementTree
- converting between GPX XML and the session structures
  (waypoints, tracks, track segments, fixes)

Key design principle:
  Keep session logic (running totals, erase, segmentation) in
  gpxtracker.track, separate from GPX parsing and writing (here).
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union
from xml.etree import ElementTree as ET

from gpxtracker.errors import InvalidGpxError
from gpxtracker.track.fix import Fix, Waypoint
from gpxtracker.track.segment import Track, TrackSegment

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}
GPX_VERSION = "1.1"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ET.register_namespace("", GPX_NS["gpx"])


def qn(tag: str, ns: Optional[str] = None) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    An empty ns yields the bare tag (documents without a namespace).
    """
    uri = GPX_NS["gpx"] if ns is None else ns
    return f"{{{uri}}}{tag}" if uri else tag


def _namespace_of(root: ET.Element) -> str:
    """Namespace URI of the document root ('' if none). Covers GPX 1.0 and 1.1."""
    if root.tag.startswith("{"):
        return root.tag[1:].split("}", 1)[0]
    return ""


def _parse_gpx_time(text: str) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp commonly found in GPX <time> nodes.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+00:00"
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    # ElementTree GPX times commonly use Z for UTC.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    # Ensure tz-aware; if naive, assume UTC (conservative for GPX sources)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def _format_gpx_time(dt: _dt.datetime) -> str:
    """
    Format a tz-aware datetime as GPX time (UTC with Z).

    Whole seconds are written without a fraction; sub-second samples keep
    their microseconds so a save/load cycle does not change moving time.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    dt_utc = dt.astimezone(_dt.timezone.utc)
    spec = "microseconds" if dt_utc.microsecond else "seconds"
    return dt_utc.isoformat(timespec=spec).replace("+00:00", "Z")


def _format_number(v: float) -> str:
    # repr() round-trips floats exactly.
    return repr(float(v))


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output. Eliminates double blank-line
    issues by explicitly controlling .text/.tail.
    """
    i = "\n" + level * indent
    j = "\n" + (level -1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------
@dataclass
class GpxDocument:
    """Structures recovered from a GPX file, ready for TrackSession.load_from()."""

    creator: Optional[str] = None
    waypoints: list[Waypoint] = field(default_factory=list)
    tracks: list[Track] = field(default_factory=list)

    @property
    def point_count(self) -> int:
        return sum(t.point_count for t in self.tracks)


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError, OSError
    """
    try:
        return ET.parse(path)
    except ET.ParseError as e:
        raise InvalidGpxError(f"Failed to parse GPX: {path} ({e})") from e


def _text(el: ET.Element, tag: str, ns: str) -> Optional[str]:
    t = el.findtext(qn(tag, ns))
    if t is None:
        return None
    t = t.strip()
    return t or None


def _float_or_none(s: Optional[str]) -> Optional[float]:
    return float(s) if s is not None else None


def _parse_point(el: ET.Element, ns: str) -> Fix:
    lat = el.get("lat")
    lon = el.get("lon")
    return Fix(
        latitude=_float_or_none(lat),
        longitude=_float_or_none(lon),
        elevation=_float_or_none(_text(el, "ele", ns)),
        time=_parse_gpx_time(_text(el, "time", ns) or ""),
    )


def _parse_waypoint(el: ET.Element, ns: str) -> Waypoint:
    return Waypoint(
        latitude=_float_or_none(el.get("lat")),
        longitude=_float_or_none(el.get("lon")),
        elevation=_float_or_none(_text(el, "ele", ns)),
        time=_parse_gpx_time(_text(el, "time", ns) or ""),
        name=_text(el, "name", ns),
        desc=_text(el, "desc", ns),
    )


def parse_gpx(root: Union[ET.Element, ET.ElementTree]) -> GpxDocument:
    """
    Extract waypoints and tracks (with their segments) from a GPX tree.

    Track and point order follow document order.
    """
    if isinstance(root, ET.ElementTree):
        root = root.getroot()
    ns = _namespace_of(root)
    if root.tag != qn("gpx", ns):
        raise InvalidGpxError(f"Not a GPX document (root element {root.tag!r})")

    doc = GpxDocument(creator=root.get("creator"))
    try:
        for wpt in root.findall(qn("wpt", ns)):
            doc.waypoints.append(_parse_waypoint(wpt, ns))

        for trk in root.findall(qn("trk", ns)):
            track = Track(name=_text(trk, "name", ns))
            for seg in trk.findall(qn("trkseg", ns)):
                track.segments.append(
                    TrackSegment(_parse_point(pt, ns) for pt in seg.findall(qn("trkpt", ns)))
                )
            doc.tracks.append(track)
    except ValueError as e:
        # bad numbers, out of range coordinates, missing waypoint positions
        raise InvalidGpxError(f"Invalid GPX content: {e}") from e

    return doc


def parse_gpx_string(text: str) -> GpxDocument:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise InvalidGpxError(f"Failed to parse GPX string ({e})") from e
    return parse_gpx(root)


def load_gpx(path: Path) -> GpxDocument:
    return parse_gpx(read_gpx(path))


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------
def _point_children(el: ET.Element, elevation: Optional[float], time: Optional[_dt.datetime]) -> None:
    if elevation is not None:
        ET.SubElement(el, qn("ele")).text = _format_number(elevation)
    if time is not None:
        ET.SubElement(el, qn("time")).text = _format_gpx_time(time)


def _add_segment(trk: ET.Element, segment: TrackSegment) -> None:
    seg_el = ET.SubElement(trk, qn("trkseg"))
    for fx in segment:
        pt = ET.SubElement(seg_el, qn("trkpt"))
        if fx.has_coordinates:
            pt.set("lat", _format_number(fx.latitude))
            pt.set("lon", _format_number(fx.longitude))
        _point_children(pt, fx.elevation, fx.time)


def _add_track(root: ET.Element, segments: Iterable[TrackSegment], name: Optional[str] = None) -> None:
    trk = ET.SubElement(root, qn("trk"))
    if name:
        ET.SubElement(trk, qn("name")).text = name
    for seg in segments:
        _add_segment(trk, seg)


def build_gpx(
        waypoints: Iterable[Waypoint],
        track_segments: Iterable[TrackSegment],
        tracks: Iterable[Track], *,
        creator: str,
        created: Optional[_dt.datetime] = None,
) -> ET.Element:
    """
    Build a GPX root element for a session.

    Layout:
      - metadata with the export time (`created`, default now)
      - waypoints
      - each previously stored track, in order
      - one final track holding `track_segments` (callers append the open
        segment themselves when it has points)

    The final track is always written, even when empty, so that reading
    the document back puts exactly these segments in the open track.
    """
    root = ET.Element(qn("gpx"), {"version": GPX_VERSION, "creator": creator})
    md = ET.SubElement(root, qn("metadata"))
    ET.SubElement(md, qn("time")).text = _format_gpx_time(created or _dt.datetime.now(_dt.timezone.utc))

    for wp in waypoints:
        el = ET.SubElement(root, qn("wpt"), {
            "lat": _format_number(wp.latitude),
            "lon": _format_number(wp.longitude),
        })
        _point_children(el, wp.elevation, wp.time)
        if wp.name:
            ET.SubElement(el, qn("name")).text = wp.name
        if wp.desc:
            ET.SubElement(el, qn("desc")).text = wp.desc

    for track in tracks:
        _add_track(root, track.segments, track.name)
    _add_track(root, track_segments)
    return root


def to_gpx_string(root: ET.Element, *, pretty: bool = True) -> str:
    """Serialize a GPX tree to a string with an XML declaration."""
    if pretty:
        _indent(root)
    # Written by hand: with encoding="unicode" ElementTree would declare the locale encoding.
    return XML_DECLARATION + ET.tostring(root, encoding="unicode")


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration
    """
    if pretty:
        _indent(root)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)
