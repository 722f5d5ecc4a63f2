"""
Dataset loader (CSV / Excel -> Report list)
===========================================

This module reads a damage-report export and converts each row into a
`Report` object. It is the only place where raw cell values are parsed;
the metric calculators only ever see the validated shape.

Key ideas:
- We try multiple possible column names because exports may vary.
- Conversion helpers (_to_float/_to_time/_to_location) never raise: a bad
  cell becomes None, so one malformed value never aborts a load.
- Non-finite numbers (NaN, inf) are missing values, never zeros.
"""

from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional
import math
import re

import pandas as pd

from .models import DAMAGE_FIELDS, Report

LOCATION_COLUMNS = ("location", "neighborhood", "neighbourhood", "location_id", "loc")
TIME_COLUMNS = ("time", "timestamp", "datetime", "date", "reported_at")


def _missing(x: Any) -> bool:
    try:
        return x is None or bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _to_float(x) -> Optional[float]:
    """Convert a cell to a finite float, returning None if missing/invalid."""
    if _missing(x) or isinstance(x, bool):
        return None
    if isinstance(x, str):
        x = x.strip()
        if not x:
            return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _to_time(x) -> Optional[datetime]:
    """Parse a timestamp cell into a naive (UTC) datetime, or None."""
    if _missing(x):
        return None
    if isinstance(x, str):
        x = x.strip()
        # bare numbers are not timestamps
        if not x or re.fullmatch(r"[+-]?\d+(\.\d*)?", x):
            return None
    elif not isinstance(x, datetime):
        return None
    try:
        ts = pd.to_datetime(x, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def _to_location(x) -> str:
    """Canonical neighborhood id: '3', 3 and 3.0 all become '3'; blank -> ''."""
    if _missing(x):
        return ""
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    s = str(x).strip()
    if re.fullmatch(r"\d+\.0+", s):
        s = s.split(".")[0]
    return s


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")


def _optional_col(df: pd.DataFrame, *names: str) -> Optional[str]:
    try:
        return _col(df, *names)
    except KeyError:
        return None


def reports_from_frame(df: pd.DataFrame) -> List[Report]:
    """Convert a DataFrame (one row per report) into Report records.

    `location` and `time` columns are required; a damage column that is
    absent from the frame is treated as missing on every report.
    """
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    loc_col = _col(df, *LOCATION_COLUMNS)
    time_col = _col(df, *TIME_COLUMNS)
    dmg_cols = {f: _optional_col(df, f) for f in DAMAGE_FIELDS}

    reports: List[Report] = []
    for _, row in df.iterrows():
        reports.append(Report(
            location=_to_location(row[loc_col]),
            time=_to_time(row[time_col]),
            **{f: (_to_float(row[c]) if c else None) for f, c in dmg_cols.items()},
        ))
    return reports


def reports_from_records(rows: Iterable[Mapping[str, Any]]) -> List[Report]:
    """Convert in-memory dict rows (e.g. from csv.DictReader) into Report records."""
    rows = list(rows)
    if not rows:
        return []
    return reports_from_frame(pd.DataFrame.from_records(rows))


def load_reports(path: str) -> List[Report]:
    """Load reports from a .csv or .xlsx/.xlsm export.

    All columns are read as text so ids like '01' and free-form timestamps
    reach the converters untouched.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")
    if p.suffix.lower() == ".xls":
        raise ValueError(f"Legacy .xls is not supported (openpyxl reads .xlsx/.xlsm only); re-save {path} as .xlsx or .csv")
    if p.suffix.lower() in (".xlsx", ".xlsm"):
        df = pd.read_excel(p, engine="openpyxl", dtype=object)
    else:
        df = pd.read_csv(p, dtype=str, keep_default_na=False)
    return reports_from_frame(df)
