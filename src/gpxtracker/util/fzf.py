# gpxtracker/util/fzf.py
"""
Picking stored GPX sessions with `fzf`

Each candidate is shown as "name  size  modified" (from GpxFileInfo), newest
first. The selected lines are mapped back to their real paths.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from shutil import which
from typing import Optional

from gpxtracker.errors import FzfNotFoundError, SelectionError
from gpxtracker.util.fileinfo import GpxFileInfo, UNKNOWN_SIZE


def list_gpx_candidates(root: Path) -> list[GpxFileInfo]:
    """All *.gpx files under root, most recently modified first."""
    if not root.is_dir():
        return []
    infos = [GpxFileInfo(p) for p in root.rglob("*.gpx") if p.is_file()]
    infos.sort(key=lambda i: (i.modified_date, str(i.path)), reverse=True)
    return infos


def _human_size(n: int) -> str:
    if n == UNKNOWN_SIZE:
        return "?"
    size = float(n)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def format_candidate(info: GpxFileInfo) -> str:
    """Display line for one file; the real path rides along after a tab."""
    modified = info.modified_date.astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{info.file_name}  {_human_size(info.file_size)}  {modified}\t{info.path}"


def fzf_select_sessions(
        infos: list[GpxFileInfo], *,
        header: str,
        multi: bool = True,
        preview: Optional[str] = None,
) -> list[Path]:
    """
    Let the user pick sessions. An empty list means nothing was chosen.

    The default preview prints a one-file report with the analyzer itself.
    """
    if not which("fzf"):
        raise FzfNotFoundError("fzf not found on PATH. Pass GPX files explicitly.")

    if preview is None:
        preview = f"{sys.executable} -m gpxtracker.analyze.gpx_analyze {{2}}"

    input_text = "\n".join(format_candidate(i) for i in infos) + "\n"
    cmd = [
        "fzf",
        "--delimiter=\t",
        "--with-nth=1",
        "--height=60%",
        "--layout=reverse",
        "--border",
        "--header", header,
        "--multi" if multi else "--no-multi",
        "--preview", preview,
        "--preview-window", "right:60%:wrap",
    ]

    proc = subprocess.run(
        cmd,
        input=input_text.encode("utf-8"),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

    # 1: no match, 130: cancelled
    if proc.returncode not in (0, 1, 130):
        raise SelectionError(f"fzf failed: {proc.stderr.decode('utf-8', errors='replace')}")

    selected: list[Path] = []
    for line in proc.stdout.decode("utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line:
            continue
        path_str = line.split("\t", 1)[1] if "\t" in line else line
        selected.append(Path(path_str).expanduser())
    return selected
