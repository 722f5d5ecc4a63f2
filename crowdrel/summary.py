"""
Secondary summaries
===================

Two views that sit next to the eight-axis profiles:

- `hourly_damage_series`: mean damage of one field per clock hour, with the
  sample standard deviation as an uncertainty band (temporal view).
- `uncertainty_summary`: per-neighborhood completeness / variance / count /
  accuracy, the values a choropleth map colours by.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .models import DAMAGE_FIELDS, Report
from .grouping import ReportGroups
from .metrics import EPOCH, field_values, hour_bucket, report_accuracy, report_detail
from .normalize import clamp, is_finite


def damage_types() -> Tuple[str, ...]:
    return DAMAGE_FIELDS


@dataclass(frozen=True)
class HourlyPoint:
    hour: datetime
    mean: float
    uncertainty: float
    count: int


def hourly_damage_series(reports: Sequence[Report], field: str) -> List[HourlyPoint]:
    """Average `field` per clock hour, sorted by hour.

    Reports with no valid time are skipped. An hour whose reports all lack
    the field still appears, with mean 0 and count 0.
    """
    if field not in DAMAGE_FIELDS:
        raise ValueError(f"field must be one of: {', '.join(DAMAGE_FIELDS)}")

    by_hour: Dict[int, List[float]] = {}
    for r in reports:
        if not isinstance(r.time, datetime):
            continue
        values = by_hour.setdefault(hour_bucket(r.time), [])
        v = r.damage(field)
        if is_finite(v):
            values.append(float(v))

    out: List[HourlyPoint] = []
    for h in sorted(by_hour):
        values = by_hour[h]
        arr = np.array(values, dtype=float)
        mean = float(arr.mean()) if arr.size else 0.0
        std = float(arr.std(ddof=1)) if arr.size > 1 else 0.0
        out.append(HourlyPoint(
            hour=EPOCH + timedelta(hours=h),
            mean=mean if np.isfinite(mean) else 0.0,
            uncertainty=std if np.isfinite(std) else 0.0,
            count=len(values),
        ))
    return out


@dataclass(frozen=True)
class UncertaintySummary:
    """Map-level view of one neighborhood's reporting quality."""
    location: str
    completeness: float
    variance: float
    report_count: int
    accuracy: float


def _mean_field_variance(reports: Sequence[Report]) -> float:
    total = 0.0
    with np.errstate(over="ignore", invalid="ignore"):
        for f in DAMAGE_FIELDS:
            v = field_values(reports, f)
            var = float(v.var(ddof=1)) if v.size > 1 else 0.0
            total += var if np.isfinite(var) else 0.0
    return total / len(DAMAGE_FIELDS)


def uncertainty_summary(groups: ReportGroups) -> List[UncertaintySummary]:
    """One summary per neighborhood, in grouping order.

    variance is the mean sample variance over the five fields divided by 10
    and capped at 1.
    """
    out: List[UncertaintySummary] = []
    for location, reports in groups.items():
        out.append(UncertaintySummary(
            location=location,
            completeness=report_detail(reports),
            variance=clamp(_mean_field_variance(reports) / 10.0),
            report_count=len(reports),
            accuracy=report_accuracy(reports),
        ))
    return out
