import datetime as dt
import itertools

import pytest

from gpxtracker.analyze.stats import Stats, combine, reduce_all
from gpxtracker.track.segment import TrackSegment


def test_combine_keeps_defined_side_of_optional_values(t0):
    a = Stats(total_distance=10, min_elevation=None, max_elevation=None,
              start_time=None, end_time=t0, moving_time=5)
    b = Stats(total_distance=5, total_elevation_gain=3, total_elevation_loss=1,
              min_elevation=-4.0, max_elevation=12.0, start_time=t0, end_time=None)

    c = combine(a, b)
    assert c.total_distance == 15
    assert c.total_elevation_gain == 3
    assert c.total_elevation_loss == 1
    assert c.moving_time == 5
    # absent is never zero
    assert c.min_elevation == -4.0
    assert c.max_elevation == 12.0
    assert c.start_time == t0
    assert c.end_time == t0


def test_combine_takes_extremes(t0):
    later = t0 + dt.timedelta(hours=1)
    a = Stats(min_elevation=5.0, max_elevation=50.0, start_time=later, end_time=later)
    b = Stats(min_elevation=7.0, max_elevation=40.0, start_time=t0, end_time=t0)
    c = combine(a, b)
    assert (c.min_elevation, c.max_elevation) == (5.0, 50.0)
    assert (c.start_time, c.end_time) == (t0, later)


def test_combine_does_not_modify_inputs():
    a = Stats(total_distance=1.0)
    b = Stats(total_distance=2.0)
    combine(a, b)
    assert a.total_distance == 1.0
    assert b.total_distance == 2.0


def test_reduce_all_of_nothing():
    stats = reduce_all([])
    assert stats == Stats()


def test_reduce_all_order_does_not_matter(make_fixes, t0):
    segs = [
        TrackSegment(make_fixes(4, elevations=[1.0, 3.0, 2.0, 8.0])),
        TrackSegment(make_fixes(3, start_lon=0.05, elevations=[20.0, 10.0, 15.0],
                                start=t0 + dt.timedelta(hours=2))),
        TrackSegment(make_fixes(2, start_lon=0.1, step=0.0001,
                                start=t0 - dt.timedelta(hours=1))),
    ]
    reference = reduce_all(segs)
    for perm in itertools.permutations(segs):
        s = reduce_all(perm)
        assert s.total_distance == pytest.approx(reference.total_distance)
        assert s.total_elevation_gain == pytest.approx(reference.total_elevation_gain)
        assert s.total_elevation_loss == pytest.approx(reference.total_elevation_loss)
        assert s.moving_time == pytest.approx(reference.moving_time)
        assert s.min_elevation == reference.min_elevation == 1.0
        assert s.max_elevation == reference.max_elevation == 20.0
        assert s.start_time == reference.start_time == t0 - dt.timedelta(hours=1)
        assert s.end_time == reference.end_time


def test_derived_speed_and_duration(t0):
    s = Stats(total_distance=100.0, moving_time=20.0,
              start_time=t0, end_time=t0 + dt.timedelta(seconds=50))
    assert s.average_speed_mps == pytest.approx(5.0)
    assert s.duration_s == 50
    assert Stats().average_speed_mps == 0.0
    assert Stats().duration_s == 0.0
