import datetime as dt
import os
from pathlib import Path

import pytest

# No display during tests.
os.environ.setdefault("MPLBACKEND", "Agg")

from gpxtracker.track.fix import Fix


T0 = dt.datetime(2025, 6, 1, 8, 0, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def t0() -> dt.datetime:
    return T0


@pytest.fixture
def make_fixes():
    """Fixes along the equator, `step` degrees of longitude and `dt_s` seconds apart."""

    def _make(n, *, start_lon=0.0, step=0.001, dt_s=10, elevations=None, start=T0):
        out = []
        for i in range(n):
            ele = elevations[i] if elevations is not None else None
            out.append(Fix(0.0, start_lon + i * step, elevation=ele,
                           time=start + dt.timedelta(seconds=i * dt_s)))
        return out

    return _make
