# tests/test_summary.py
import math
from datetime import datetime

import pytest

from crowdrel.grouping import group_reports
from crowdrel.models import DAMAGE_FIELDS
from crowdrel.summary import damage_types, hourly_damage_series, uncertainty_summary


def test_hourly_series_groups_by_clock_hour(rep):
    reports = [
        rep(10 / 60, values=(None, 2, None, None, None)),
        rep(50 / 60, values=(None, 4, None, None, None)),
        rep(1.5, values=(1, None, 1, 1, 1)),
        rep(2, values=(None, 6, None, None, None)),
        rep(None, values=(None, 9, None, None, None)),
    ]
    points = hourly_damage_series(reports, "power")
    assert [p.hour for p in points] == [
        datetime(2020, 4, 6, 0), datetime(2020, 4, 6, 1), datetime(2020, 4, 6, 2),
    ]
    assert points[0].mean == pytest.approx(3.0)
    assert points[0].uncertainty == pytest.approx(math.sqrt(2))
    assert points[0].count == 2
    assert (points[1].mean, points[1].count) == (0.0, 0)
    assert (points[2].mean, points[2].uncertainty, points[2].count) == (6.0, 0.0, 1)


def test_hourly_series_rejects_unknown_field(rep):
    with pytest.raises(ValueError):
        hourly_damage_series([rep(0)], "water")


def test_hourly_series_empty():
    assert hourly_damage_series([], "medical") == []


def test_uncertainty_summary(rep):
    groups = group_reports([
        rep(0, "1", (2,) * 5),
        rep(1, "1", (4,) * 5),
        rep(0, "2", (None, 3, None, None, None)),
    ])
    one, two = uncertainty_summary(groups)
    assert one.location == "1"
    assert one.completeness == 1.0
    # sample variance 2 on every field, divided by 10
    assert one.variance == pytest.approx(0.2)
    assert one.report_count == 2
    assert one.accuracy == pytest.approx(1 - math.sqrt(2) / 3)

    assert two.completeness == pytest.approx(0.2)
    assert two.variance == 0.0
    assert two.accuracy == pytest.approx(0.2)


def test_variance_is_capped(rep):
    groups = group_reports([rep(0, "1", (0,) * 5), rep(1, "1", (100,) * 5)])
    assert uncertainty_summary(groups)[0].variance == 1.0


def test_damage_types():
    assert damage_types() == DAMAGE_FIELDS
