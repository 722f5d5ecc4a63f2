"""
Data model (Report, MetricResult, NeighborhoodProfile)
======================================================

Each row of a damage-report export is converted into a `Report` object.
All records are immutable (`frozen=True`) so that:
- reports cannot be accidentally modified after loading, and
- every metric calculator sees the same read-only view of a neighborhood.

Missing values are explicit: a damage field is either a float or `None`,
and an unparseable timestamp is `None` (never epoch zero).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

# The five damage-severity fields carried by every report (expected range 0-10).
DAMAGE_FIELDS: Tuple[str, ...] = (
    "sewer_and_water",
    "power",
    "roads_and_bridges",
    "medical",
    "buildings",
)

# Radar-chart axis order. Identical for every neighborhood in a run.
AXES: Tuple[str, ...] = (
    "Frequency",
    "Consistency",
    "Timeliness",
    "Completeness",
    "Coverage",
    "Accuracy",
    "Detail",
    "Response Rate",
)

UNKNOWN_LOCATION = "Unknown"


@dataclass(frozen=True)
class Report:
    """One citizen damage report."""
    # neighborhood id: text or a small integer code (0 is a real id)
    location: Union[str, int, None]
    time: Optional[datetime]
    sewer_and_water: Optional[float] = None
    power: Optional[float] = None
    roads_and_bridges: Optional[float] = None
    medical: Optional[float] = None
    buildings: Optional[float] = None

    def damage(self, field: str) -> Optional[float]:
        """Return the value of one damage field (None when missing)."""
        if field not in DAMAGE_FIELDS:
            raise ValueError(f"Unknown damage field: {field}")
        return getattr(self, field)

    def damage_values(self) -> Tuple[Optional[float], ...]:
        return tuple(getattr(self, f) for f in DAMAGE_FIELDS)

    def location_key(self) -> str:
        """Stripped location id, or "" when the report has none."""
        if self.location is None:
            return ""
        return str(self.location).strip()


@dataclass(frozen=True)
class MetricResult:
    """One radar axis: normalized value in [0, 1] plus the raw display value."""
    axis: str
    value: float
    raw_value: float


@dataclass(frozen=True)
class NeighborhoodProfile:
    """The eight-axis reliability vector of one neighborhood."""
    neighborhood: str
    values: Tuple[MetricResult, ...]
    report_count: int = 0
    placeholder: bool = False

    def value_of(self, axis: str) -> float:
        for m in self.values:
            if m.axis == axis:
                return m.value
        raise KeyError(f"Unknown axis: {axis}. Available={list(AXES)}")

    def raw_of(self, axis: str) -> float:
        for m in self.values:
            if m.axis == axis:
                return m.raw_value
        raise KeyError(f"Unknown axis: {axis}. Available={list(AXES)}")

    def as_dict(self) -> dict:
        return {
            "neighborhood": self.neighborhood,
            "report_count": self.report_count,
            "placeholder": self.placeholder,
            "values": [
                {"axis": m.axis, "value": m.value, "rawValue": m.raw_value}
                for m in self.values
            ],
        }


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition noticed while computing metrics.

    `code` is one of: empty_input, empty_group, unknown_location,
    invalid_time, missing_field, non_finite.
    """
    code: str
    message: str
    location: Optional[str] = None
