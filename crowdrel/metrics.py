"""
Metric calculators
==================

Eight independent, pure functions. Each takes one neighborhood's reports
and returns one float. None of them raises on degenerate input:

- empty group                      -> 0
- fewer than 2 valid timestamps    -> 0 for the time-based metrics
- a damage field with no values    -> that field contributes 0
- zero / non-finite intermediate   -> 0

Missing data is filtered out before any arithmetic, so NaN never enters
a mean. Everything that leaves this module is finite.

Time-based metrics bucket timestamps by clock hour (floor, no rounding).
"""

from __future__ import annotations
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .models import DAMAGE_FIELDS, Report
from .normalize import clamp, inverse_normalize, is_finite

HOUR_SECONDS = 3600.0
EPOCH = datetime(1970, 1, 1)


# -----------------------------
# Shared helpers
# -----------------------------

def _naive_utc(t: datetime) -> datetime:
    if t.tzinfo is not None:
        return t.astimezone(timezone.utc).replace(tzinfo=None)
    return t


def valid_times(reports: Sequence[Report]) -> List[datetime]:
    """Sorted timestamps of the reports whose time parsed."""
    out = [_naive_utc(r.time) for r in reports if isinstance(r.time, datetime)]
    out.sort()
    return out


def hour_bucket(t: datetime) -> int:
    """Index of the clock hour containing t (hours since the Unix epoch)."""
    return int((_naive_utc(t) - EPOCH).total_seconds() // HOUR_SECONDS)


def span_hours(times: Sequence[datetime]) -> float:
    if len(times) < 2:
        return 0.0
    return (times[-1] - times[0]).total_seconds() / HOUR_SECONDS


def field_values(reports: Sequence[Report], field: str) -> np.ndarray:
    """Finite values of one damage field across the group."""
    return np.array(
        [float(v) for v in (r.damage(field) for r in reports) if is_finite(v)],
        dtype=float,
    )


def _mean_or_zero(xs: Sequence[float]) -> float:
    if not xs:
        return 0.0
    return clamp(sum(xs) / len(xs))


# -----------------------------
# Frequency
# -----------------------------

def report_frequency(reports: Sequence[Report]) -> float:
    """Reports per hour between the earliest and latest valid timestamp.

    Only reports with a valid timestamp are counted. The span is floored at
    one hour, so a burst of reports at the same instant reads as n/hour.
    """
    times = valid_times(reports)
    if len(times) < 2:
        return 0.0
    hours = max(1.0, span_hours(times))
    return len(times) / hours


# -----------------------------
# Consistency
# -----------------------------

def report_consistency(reports: Sequence[Report]) -> float:
    """Mean over fields of 1 / (1 + mean absolute deviation from the field mean)."""
    scores: List[float] = []
    with np.errstate(over="ignore", invalid="ignore"):
        for f in DAMAGE_FIELDS:
            v = field_values(reports, f)
            if v.size == 0:
                scores.append(0.0)
                continue
            mad = float(np.mean(np.abs(v - v.mean())))
            scores.append(clamp(1.0 / (1.0 + mad)) if np.isfinite(mad) else 0.0)
    return _mean_or_zero(scores)


# -----------------------------
# Timeliness
# -----------------------------

def mean_gap_hours(reports: Sequence[Report]) -> Optional[float]:
    """Average hours between chronologically consecutive reports (None if < 2 times)."""
    times = valid_times(reports)
    if len(times) < 2:
        return None
    gaps = [(b - a).total_seconds() / HOUR_SECONDS for a, b in zip(times, times[1:])]
    return sum(gaps) / len(gaps)


def report_timeliness(reports: Sequence[Report], ceiling_hours: float = 24.0) -> float:
    """1 - mean_gap/ceiling, clamped. Zero gap is best; `ceiling_hours` or more is 0."""
    gap = mean_gap_hours(reports)
    if gap is None:
        return 0.0
    return inverse_normalize(gap, 0.0, ceiling_hours)


# -----------------------------
# Completeness
# -----------------------------

def report_completeness(reports: Sequence[Report]) -> float:
    """Average share of damage fields holding an in-range (0..10) score.

    A report missing its location or its (valid) time scores 0.
    """
    if not reports:
        return 0.0
    scores: List[float] = []
    for r in reports:
        if not r.location_key() or r.time is None:
            scores.append(0.0)
            continue
        ok = sum(1 for v in r.damage_values() if is_finite(v) and 0.0 <= float(v) <= 10.0)
        scores.append(ok / len(DAMAGE_FIELDS))
    return _mean_or_zero(scores)


# -----------------------------
# Coverage
# -----------------------------

def report_coverage(reports: Sequence[Report]) -> float:
    """Distinct clock hours holding a report / hours spanned (floored at 1), capped at 1."""
    times = valid_times(reports)
    if len(times) < 2:
        return 0.0
    total_hours = max(1.0, span_hours(times))
    hours_with_reports = len({hour_bucket(t) for t in times})
    return clamp(hours_with_reports / total_hours)


# -----------------------------
# Accuracy
# -----------------------------

def _field_accuracy(v: np.ndarray) -> float:
    if v.size == 0:
        return 0.0
    mean = float(v.mean())
    if not np.isfinite(mean) or mean <= 0.0:
        return 0.0
    # sample deviation; one value has none
    dev = float(v.std(ddof=1)) if v.size > 1 else 0.0
    if not np.isfinite(dev):
        return 0.0
    return clamp(1.0 - dev / mean)


def report_accuracy(reports: Sequence[Report]) -> float:
    """Mean over fields of max(0, 1 - stddev/mean)."""
    with np.errstate(over="ignore", invalid="ignore"):
        scores = [_field_accuracy(field_values(reports, f)) for f in DAMAGE_FIELDS]
    return _mean_or_zero(scores)


# -----------------------------
# Detail
# -----------------------------

def report_detail(reports: Sequence[Report]) -> float:
    """Average share of damage fields holding any finite number (range unchecked)."""
    if not reports:
        return 0.0
    scores = [
        sum(1 for v in r.damage_values() if is_finite(v)) / len(DAMAGE_FIELDS)
        for r in reports
    ]
    return _mean_or_zero(scores)


# -----------------------------
# Response rate
# -----------------------------

def report_response_rate(
    reports: Sequence[Report],
    weights: Tuple[float, float] = (0.7, 0.3),
) -> float:
    """Weighted mix of rate evenness and hour coverage over the report span.

    evenness = mean hourly count / max hourly count
    coverage = hours with >= 1 report / hours in span (inclusive buckets)

    Empty hours are counted arithmetically, not materialised, so a long span
    costs nothing extra.
    """
    times = valid_times(reports)
    if len(times) < 2:
        return 0.0
    counts = Counter(hour_bucket(t) for t in times)
    total_hours = max(counts) - min(counts) + 1
    max_rate = max(counts.values())
    if max_rate <= 0 or total_hours <= 0:
        return 0.0
    avg_rate = len(times) / total_hours
    evenness = avg_rate / max_rate
    coverage = len(counts) / total_hours
    w_even, w_cov = weights
    return clamp(w_even * evenness + w_cov * coverage)
