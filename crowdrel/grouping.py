"""
Grouper (reports -> neighborhood groups)
========================================

Partitions the report list by neighborhood identifier, the same way the
lookup indices of an analytics engine map a value to the rows holding it.

Policy for reports without a location: they are kept and bucketed under
the `Unknown` sentinel, and a diagnostic says how many there were.

Groups are tuples (read-only) and keep the input order of their reports.
The mapping itself keeps first-appearance order of neighborhoods, so the
same input always yields the same grouping.
"""

from __future__ import annotations
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Diagnostic, Report, UNKNOWN_LOCATION

log = logging.getLogger(__name__)

ReportGroups = Dict[str, Tuple[Report, ...]]


def group_reports(
    reports: Optional[Iterable[Report]],
    diagnostics: Optional[List[Diagnostic]] = None,
    unknown_label: str = UNKNOWN_LOCATION,
) -> ReportGroups:
    """Build the neighborhood -> reports mapping.

    Empty or absent input returns an empty mapping (with an `empty_input`
    diagnostic) rather than raising.
    """
    buckets: Dict[str, List[Report]] = {}
    unknown = 0
    for r in reports or ():
        key = r.location_key()
        if not key:
            key = unknown_label
            unknown += 1
        buckets.setdefault(key, []).append(r)

    if not buckets:
        log.warning("No reports supplied; nothing to group")
        if diagnostics is not None:
            diagnostics.append(Diagnostic("empty_input", "Invalid or empty report data"))
        return {}

    if unknown:
        log.warning("%d report(s) without a location grouped under %r", unknown, unknown_label)
        if diagnostics is not None:
            diagnostics.append(Diagnostic(
                "unknown_location",
                f"{unknown} report(s) without a location grouped under '{unknown_label}'",
                location=unknown_label,
            ))

    log.debug("Found %d neighborhoods", len(buckets))
    return {k: tuple(v) for k, v in buckets.items()}


def _natural_key(s: str):
    # "2" < "10"; non-numeric parts compare as text
    return [(0, int(p), "") if p.isdigit() else (1, 0, p.lower()) for p in re.split(r"(\d+)", s) if p]


def sorted_locations(groups: Iterable[str]) -> List[str]:
    """Neighborhood ids in natural order ("1", "2", ..., "10")."""
    return sorted(groups, key=_natural_key)
