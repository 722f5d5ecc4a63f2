"""
Pytest fixtures for crowdrel tests. Reports are built in memory; hour 0 is
2020-04-06 00:00 so every `hours` offset lands in a predictable clock hour.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from crowdrel.models import Report

T0 = datetime(2020, 4, 6, 0, 0)


def make_report(hours=0.0, location="1", values=(5, 5, 5, 5, 5)) -> Report:
    t = T0 + timedelta(hours=hours) if hours is not None else None
    return Report(location, t, *values)


@pytest.fixture
def rep():
    """Factory: rep(hours, location="1", values=(5, 5, 5, 5, 5))."""
    return make_report


@pytest.fixture
def city_reports():
    """Three neighborhoods with different reporting behaviour."""
    return [
        # 1: steady hourly reports, complete
        *[make_report(h, "1", (5, 5, 5, 5, 5)) for h in range(6)],
        # 2: sparse, partly missing
        make_report(0, "2", (3, None, 7, None, 2)),
        make_report(30, "2", (4, None, 6, None, 2)),
        # 3: single report
        make_report(1, "3", (1, 2, 3, 4, 5)),
        # 1 again, after other neighborhoods (grouping must collect it)
        make_report(6, "1", (5, 5, 5, 5, 5)),
    ]
