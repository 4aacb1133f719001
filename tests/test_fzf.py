import datetime as dt
import os
from pathlib import Path
from types import SimpleNamespace

import pytest

import gpxtracker.util.fzf as fz
from gpxtracker.errors import FzfNotFoundError, SelectionError
from gpxtracker.util.fileinfo import GpxFileInfo


def _touch(path: Path, when: dt.datetime) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("<gpx/>", encoding="utf-8")
    os.utime(path, (when.timestamp(), when.timestamp()))
    return path


def test_candidates_newest_first(tmp_path):
    base = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    old = _touch(tmp_path / "a" / "old.gpx", base)
    new = _touch(tmp_path / "b" / "new.gpx", base + dt.timedelta(days=3))
    _touch(tmp_path / "notes.txt", base)

    assert [i.path for i in fz.list_gpx_candidates(tmp_path)] == [new, old]
    assert fz.list_gpx_candidates(tmp_path / "nope") == []


def test_candidate_line_carries_path():
    info = GpxFileInfo.prefetched(Path("/tmp/ride.gpx"), dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc), 2048)
    line = fz.format_candidate(info)
    shown, path = line.split("\t")
    assert shown.startswith("ride  2 KB")
    assert path == "/tmp/ride.gpx"


def test_missing_fzf(monkeypatch):
    monkeypatch.setattr(fz, "which", lambda _cmd: None)
    with pytest.raises(FzfNotFoundError):
        fz.fzf_select_sessions([], header="x")


def test_selection_maps_back_to_paths(monkeypatch):
    calls = []

    def fake_run(cmd, input, stdout, stderr):
        calls.append(cmd)
        return SimpleNamespace(returncode=0, stdout=b"ride  1 KB  2024-01-01 00:00\t/tmp/ride.gpx\n", stderr=b"")

    monkeypatch.setattr(fz, "which", lambda _cmd: "/usr/bin/fzf")
    monkeypatch.setattr(fz.subprocess, "run", fake_run)

    info = GpxFileInfo.prefetched(Path("/tmp/ride.gpx"), dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc), 1024)
    assert fz.fzf_select_sessions([info], header="Pick") == [Path("/tmp/ride.gpx")]
    assert "--multi" in calls[0]


def test_fzf_failure(monkeypatch):
    monkeypatch.setattr(fz, "which", lambda _cmd: "/usr/bin/fzf")
    monkeypatch.setattr(
        fz.subprocess, "run",
        lambda *a, **k: SimpleNamespace(returncode=2, stdout=b"", stderr=b"boom"),
    )
    with pytest.raises(SelectionError):
        fz.fzf_select_sessions([], header="x")


def test_cancelled_selection_is_empty(monkeypatch):
    monkeypatch.setattr(fz, "which", lambda _cmd: "/usr/bin/fzf")
    monkeypatch.setattr(
        fz.subprocess, "run",
        lambda *a, **k: SimpleNamespace(returncode=130, stdout=b"", stderr=b""),
    )
    assert fz.fzf_select_sessions([], header="x") == []
