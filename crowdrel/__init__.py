"""
crowdrel package
================

Reliability metrics for crowd-sourced disaster damage reports.

- The core engine (grouping, eight metrics, normalization, profiles) is in
  `crowdrel/engine.py`, `crowdrel/metrics.py` and `crowdrel/normalize.py`.
- Dataset loading is in `crowdrel/loader.py`.
- The CLI entry point is in `crowdrel/cli.py`.
"""

from .models import AXES, DAMAGE_FIELDS, Diagnostic, MetricResult, NeighborhoodProfile, Report
from .engine import EngineConfig, ReliabilityEngine, RunResult, compute_profiles, placeholder_profile
from .normalize import normalize

__version__ = '0.1.0'

__all__ = [
    "AXES",
    "DAMAGE_FIELDS",
    "Diagnostic",
    "EngineConfig",
    "MetricResult",
    "NeighborhoodProfile",
    "ReliabilityEngine",
    "Report",
    "RunResult",
    "compute_profiles",
    "normalize",
    "placeholder_profile",
]
