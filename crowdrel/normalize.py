"""
Normalizer
==========

Maps raw metric values onto [0, 1] so all radar axes are comparable.

    normalize(value, lo, hi) = clamp((value - lo) / (hi - lo), 0, 1)

Non-finite input returns 0 and records a `non_finite` diagnostic;
a zero-width range (lo == hi) returns 0.
"""

from __future__ import annotations
import logging
import math
from typing import List, Optional

from .models import Diagnostic

log = logging.getLogger(__name__)


def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp x into [lo, hi]; NaN collapses to lo."""
    if x != x:
        return lo
    return max(lo, min(hi, x))


def is_finite(x) -> bool:
    if x is None or isinstance(x, bool):
        return False
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def normalize(
    value: Optional[float],
    lo: float,
    hi: float,
    diagnostics: Optional[List[Diagnostic]] = None,
    location: Optional[str] = None,
) -> float:
    """Linear rescale of `value` from [lo, hi] onto [0, 1]."""
    if not is_finite(value):
        log.warning("Invalid value for normalization: %r", value)
        if diagnostics is not None:
            diagnostics.append(Diagnostic(
                code="non_finite",
                message=f"Invalid value for normalization: {value!r}",
                location=location,
            ))
        return 0.0
    if lo == hi:
        return 0.0
    return clamp((float(value) - lo) / (hi - lo))


def inverse_normalize(
    value: Optional[float],
    lo: float,
    hi: float,
    diagnostics: Optional[List[Diagnostic]] = None,
    location: Optional[str] = None,
) -> float:
    """`1 - normalize(...)` for lower-is-better quantities; invalid input still maps to 0."""
    if not is_finite(value) or lo == hi:
        return normalize(value, lo, hi, diagnostics, location)
    return 1.0 - normalize(value, lo, hi)
