# gpxtracker/util/fileinfo.py
"""
File info for stored GPX sessions (name, modification date, size).

Values are read from the filesystem at most once and cached; the object is
meant to be short-lived (one listing of saved sessions).
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Optional

# Returned when the filesystem cannot tell us.
UNKNOWN_DATE = dt.datetime.min.replace(tzinfo=dt.timezone.utc)
UNKNOWN_SIZE = -1


class GpxFileInfo:

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._modified_date: Optional[dt.datetime] = None
        self._file_size: Optional[int] = None

    @classmethod
    def prefetched(cls, path: Path, modified_date: dt.datetime, file_size: int) -> "GpxFileInfo":
        """Build from values already known (e.g. from a directory listing)."""
        info = cls(path)
        info._modified_date = modified_date
        info._file_size = file_size
        return info

    @property
    def modified_date(self) -> dt.datetime:
        """Last modification time (UTC), or UNKNOWN_DATE."""
        if self._modified_date is not None:
            return self._modified_date
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return UNKNOWN_DATE
        self._modified_date = dt.datetime.fromtimestamp(mtime, tz=dt.timezone.utc)
        return self._modified_date

    @property
    def file_size(self) -> int:
        """Size in bytes, or UNKNOWN_SIZE."""
        if self._file_size is not None:
            return self._file_size
        try:
            size = self.path.stat().st_size
        except OSError:
            return UNKNOWN_SIZE
        self._file_size = size
        return size

    @property
    def file_name(self) -> str:
        """/path/to/file.gpx -> file"""
        return self.path.stem

    def __repr__(self) -> str:
        return f"GpxFileInfo({str(self.path)!r})"
