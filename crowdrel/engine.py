"""
Core engine (aggregator)
========================

This is the heart of the project. The engine works like a small batch
"analytics engine":

1) Take the full report list (already validated by the loader)
2) Group reports by neighborhood
3) Run the eight metric calculators on each group
4) Normalize Frequency / Timeliness onto [0, 1]
5) Assemble one NeighborhoodProfile per neighborhood, axes in fixed order

Nothing here keeps state between runs: the same input always produces the
same profiles. Neighborhoods are independent of each other, so they can
be computed on a thread pool (`EngineConfig.workers > 1`) without locking.

Zero-report neighborhoods are only emitted when the caller *declares* them;
each then gets a zero-filled placeholder profile and an `empty_group`
diagnostic.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple
import heapq
import logging

from .models import (
    AXES, DAMAGE_FIELDS, UNKNOWN_LOCATION,
    Diagnostic, MetricResult, NeighborhoodProfile, Report,
)
from .grouping import ReportGroups, group_reports
from .normalize import is_finite, normalize
from .metrics import (
    mean_gap_hours,
    report_accuracy,
    report_completeness,
    report_consistency,
    report_coverage,
    report_detail,
    report_frequency,
    report_response_rate,
    report_timeliness,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Calibration knobs for one run.

    The two ceilings are domain calibration choices, not laws:
    - frequency_ceiling: reports/hour that maps to a full Frequency axis
    - timeliness_ceiling_hours: mean gap at which Timeliness reaches 0
    """
    frequency_ceiling: float = 5.0
    timeliness_ceiling_hours: float = 24.0
    # (rate evenness, hour coverage)
    response_rate_weights: Tuple[float, float] = (0.7, 0.3)
    unknown_location: str = UNKNOWN_LOCATION
    workers: int = 1

    def __post_init__(self) -> None:
        if not (is_finite(self.frequency_ceiling) and self.frequency_ceiling > 0):
            raise ValueError("frequency_ceiling must be a positive number")
        if not (is_finite(self.timeliness_ceiling_hours) and self.timeliness_ceiling_hours > 0):
            raise ValueError("timeliness_ceiling_hours must be a positive number")
        w = tuple(self.response_rate_weights)
        if len(w) != 2 or any(not is_finite(x) or x < 0 for x in w) or abs(sum(w) - 1.0) > 1e-9:
            raise ValueError("response_rate_weights must be two non-negative numbers summing to 1")
        if int(self.workers) < 1:
            raise ValueError("workers must be >= 1")
        if not str(self.unknown_location).strip():
            raise ValueError("unknown_location must be a non-empty label")


@dataclass
class RunResult:
    """Profiles of one run plus the diagnostics noticed while computing them."""
    profiles: List[NeighborhoodProfile]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def neighborhoods(self) -> List[str]:
        return [p.neighborhood for p in self.profiles]

    def get(self, neighborhood: str) -> Optional[NeighborhoodProfile]:
        key = str(neighborhood).strip()
        for p in self.profiles:
            if p.neighborhood == key:
                return p
        return None

    def export_csv(self, path: str) -> None:
        """One row per neighborhood x axis."""
        import csv
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["neighborhood", "axis", "value", "raw_value", "report_count", "placeholder"])
            for p in self.profiles:
                for m in p.values:
                    w.writerow([p.neighborhood, m.axis, m.value, m.raw_value, p.report_count, p.placeholder])

    def export_json(self, path: str) -> None:
        """Export profiles and diagnostics. Field names follow the radar-chart consumer."""
        import json
        payload = {
            "axes": list(AXES),
            "profiles": [p.as_dict() for p in self.profiles],
            "diagnostics": [
                {"code": d.code, "message": d.message, "location": d.location}
                for d in self.diagnostics
            ],
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)


# ---------------- Profile assembly ----------------

def placeholder_profile(neighborhood: str) -> NeighborhoodProfile:
    """Zero-filled profile for a declared neighborhood with no reports."""
    return NeighborhoodProfile(
        neighborhood=str(neighborhood),
        values=tuple(MetricResult(axis=a, value=0.0, raw_value=0.0) for a in AXES),
        report_count=0,
        placeholder=True,
    )


def _group_diagnostics(neighborhood: str, reports: Sequence[Report]) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    bad_times = sum(1 for r in reports if r.time is None)
    if bad_times:
        out.append(Diagnostic(
            "invalid_time",
            f"{bad_times} of {len(reports)} report(s) have a missing or unparseable time",
            location=neighborhood,
        ))
    for f in DAMAGE_FIELDS:
        if not any(is_finite(r.damage(f)) for r in reports):
            out.append(Diagnostic(
                "missing_field",
                f"No valid '{f}' values; field contributes 0 to Consistency and Accuracy",
                location=neighborhood,
            ))
    return out


def build_profile(
    neighborhood: str,
    reports: Sequence[Report],
    config: Optional[EngineConfig] = None,
) -> Tuple[NeighborhoodProfile, List[Diagnostic]]:
    """Run all calculators on one neighborhood and assemble its profile."""
    cfg = config or EngineConfig()
    neighborhood = str(neighborhood)
    if not reports:
        log.warning("No reports for neighborhood %s; emitting placeholder", neighborhood)
        return placeholder_profile(neighborhood), [Diagnostic(
            "empty_group", "No reports; zero-filled placeholder emitted", location=neighborhood,
        )]

    diagnostics = _group_diagnostics(neighborhood, reports)

    frequency = report_frequency(reports)
    consistency = report_consistency(reports)
    timeliness = report_timeliness(reports, cfg.timeliness_ceiling_hours)
    gap = mean_gap_hours(reports)
    completeness = report_completeness(reports)
    coverage = report_coverage(reports)
    accuracy = report_accuracy(reports)
    detail = report_detail(reports)
    response_rate = report_response_rate(reports, cfg.response_rate_weights)

    log.debug(
        "Raw metrics for %s: frequency=%.2f/h consistency=%.3f gap=%sh completeness=%.3f "
        "coverage=%.3f accuracy=%.3f detail=%.3f response_rate=%.3f",
        neighborhood, frequency, consistency, "n/a" if gap is None else f"{gap:.1f}",
        completeness, coverage, accuracy, detail, response_rate,
    )

    values = (
        MetricResult("Frequency", normalize(frequency, 0.0, cfg.frequency_ceiling, diagnostics, neighborhood), frequency),
        MetricResult("Consistency", consistency, consistency),
        MetricResult("Timeliness", timeliness, gap if gap is not None else 0.0),
        MetricResult("Completeness", completeness, completeness),
        MetricResult("Coverage", coverage, coverage),
        MetricResult("Accuracy", accuracy, accuracy),
        MetricResult("Detail", detail, detail),
        MetricResult("Response Rate", response_rate, response_rate),
    )
    return NeighborhoodProfile(neighborhood, values, report_count=len(reports)), diagnostics


def _output_order(groups: ReportGroups, declared: Optional[Iterable[str]]) -> List[str]:
    order: List[str] = []
    seen = set()
    for nb in list(declared or []) + list(groups):
        key = str(nb).strip()
        if key and key not in seen:
            seen.add(key)
            order.append(key)
    return order


def profile_groups(
    groups: ReportGroups,
    config: Optional[EngineConfig] = None,
    declared: Optional[Iterable[str]] = None,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> RunResult:
    """Profile already-grouped reports.

    Output order: declared neighborhoods first (in the given order), then
    any other neighborhood in first-appearance order.
    """
    cfg = config or EngineConfig()
    diagnostics = diagnostics if diagnostics is not None else []
    jobs = [(nb, groups.get(nb, ())) for nb in _output_order(groups, declared)]

    if cfg.workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=cfg.workers) as pool:
            results = list(pool.map(lambda job: build_profile(job[0], job[1], cfg), jobs))
    else:
        results = [build_profile(nb, reps, cfg) for nb, reps in jobs]

    profiles: List[NeighborhoodProfile] = []
    for profile, diags in results:
        profiles.append(profile)
        diagnostics.extend(diags)
    return RunResult(profiles=profiles, diagnostics=diagnostics)


def compute_profiles(
    reports: Optional[Iterable[Report]],
    config: Optional[EngineConfig] = None,
    declared: Optional[Iterable[str]] = None,
) -> RunResult:
    """Full batch transform: reports in, one profile per neighborhood out.

    Never raises on bad data. Empty input gives an empty result (plus
    placeholders for any declared neighborhoods).
    """
    cfg = config or EngineConfig()
    diagnostics: List[Diagnostic] = []
    groups = group_reports(reports, diagnostics, cfg.unknown_location)
    return profile_groups(groups, cfg, declared, diagnostics)


# ---------------- Interactive engine ----------------

@dataclass
class ReliabilityEngine:
    """Reliability engine over one loaded dataset.

    The engine stores:
    - reports: all loaded Report records
    - groups: reports per neighborhood
    - result: profiles + diagnostics of the last run

    Used by the CLI and the report generator; the pure entry point is
    `compute_profiles`.
    """
    reports: List[Report]
    config: EngineConfig = field(default_factory=EngineConfig)
    declared: Optional[List[str]] = None
    dataset_path: Optional[str] = None
    # Stores CLI commands (for reproducibility in reports)
    command_log: List[str] = field(default_factory=list)
    groups: ReportGroups = field(init=False)
    result: RunResult = field(init=False)

    def __post_init__(self) -> None:
        self.run()

    def run(self) -> RunResult:
        diagnostics: List[Diagnostic] = []
        self.groups = group_reports(self.reports, diagnostics, self.config.unknown_location)
        self.result = profile_groups(self.groups, self.config, self.declared, diagnostics)
        return self.result

    def profile(self, neighborhood: str) -> NeighborhoodProfile:
        """Profile of one neighborhood; an id with no reports gets the placeholder."""
        p = self.result.get(neighborhood)
        if p is not None:
            return p
        return placeholder_profile(str(neighborhood).strip())

    def topk(self, k: int, axis: str) -> List[NeighborhoodProfile]:
        """Top-k neighborhoods by one normalized axis (ties keep run order)."""
        axis = resolve_axis(axis)
        heap: List[tuple] = []
        for i, p in enumerate(self.result.profiles):
            entry = (p.value_of(axis), -i)
            if len(heap) < k:
                heapq.heappush(heap, entry)
            elif entry > heap[0]:
                heapq.heapreplace(heap, entry)
        heap.sort(reverse=True)
        return [self.result.profiles[-neg_i] for _, neg_i in heap]


def resolve_axis(name: str) -> str:
    """Accept 'response_rate', 'Response Rate', 'coverage', ..."""
    wanted = name.replace("_", " ").replace("-", " ").strip().lower()
    for a in AXES:
        if a.lower() == wanted:
            return a
    raise ValueError(f"axis must be one of: {', '.join(AXES)}")
