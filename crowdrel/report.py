from __future__ import annotations

"""
Reliability report generator
----------------------------
This module renders a finished RunResult into a DOCX report.

Design goals:
- Keep the engine usable even if report dependencies are missing (lazy imports).
- Rendering only: every number shown here comes from the profiles; nothing
  is recomputed except per-axis averages for the summary.
- Neighborhood names come from an injected lookup (`LocationNames`).
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple
import math
import os
import tempfile

from .models import AXES, NeighborhoodProfile
from .engine import RunResult
from .grouping import sorted_locations
from .locations import LocationNames
from .summary import UncertaintySummary


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Neighborhood Reporting Reliability"
    subtitle: str = "Crowd-sourced damage reports (batch run)"
    dataset_name: str = "Damage report export"

    # How many neighborhoods to show in the ranking tables
    top_n: int = 10

    # Radar small multiples: charts per row / per figure
    charts_per_row: int = 4
    charts_per_figure: int = 12

    # Optional: list of CLI commands used before the report
    command_log: Optional[List[str]] = None
    dataset_file: Optional[str] = None


# -----------------------------
# Display helpers
# -----------------------------

def format_raw(axis: str, raw: float) -> str:
    """Human-readable raw value: reports/hour, hours, or a percentage."""
    if raw is None or not math.isfinite(raw):
        return "n/a"
    if axis == "Frequency":
        return f"{raw:.2f} reports/hour"
    if axis == "Timeliness":
        return f"{raw:.1f} hours between reports"
    return f"{raw * 100:.1f}%"


def axis_means(profiles: Sequence[NeighborhoodProfile]) -> List[Tuple[str, float]]:
    """Average normalized value per axis over non-placeholder profiles."""
    real = [p for p in profiles if not p.placeholder]
    if not real:
        return [(a, 0.0) for a in AXES]
    return [(a, sum(p.value_of(a) for p in real) / len(real)) for a in AXES]


def _chunks(seq: Sequence, n: int) -> List[Sequence]:
    return [seq[i:i + n] for i in range(0, len(seq), max(1, n))]


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(
    result: RunResult,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    names: Optional[Callable[[str], str]] = None,
    uncertainty: Optional[Sequence[UncertaintySummary]] = None,
) -> str:
    """
    Generate a DOCX report with radar charts for every profile in `result`.
    """
    config = config or ReportConfig()
    names = names or LocationNames()

    # Lazy imports: only required when a report is written.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    profiles = list(result.profiles)
    if not profiles:
        raise ValueError("No profiles to report on (result set is empty).")

    # -----------------------------
    # 1) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="crowdrel_report_")
    chart_paths: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    angles = np.linspace(0, 2 * np.pi, len(AXES), endpoint=False).tolist()
    closed = angles + angles[:1]

    for page, chunk in enumerate(_chunks(profiles, config.charts_per_figure)):
        cols = max(1, min(config.charts_per_row, len(chunk)))
        rows = int(math.ceil(len(chunk) / cols))
        fig, axes = plt.subplots(
            rows, cols, subplot_kw={"projection": "polar"},
            figsize=(3.2 * cols, 3.4 * rows), squeeze=False,
        )
        for ax in axes.flat[len(chunk):]:
            ax.set_visible(False)
        for ax, p in zip(axes.flat, chunk):
            vals = [m.value for m in p.values]
            ax.plot(closed, vals + vals[:1], linewidth=1.2)
            ax.fill(closed, vals + vals[:1], alpha=0.25)
            ax.set_ylim(0, 1)
            ax.set_xticks(angles)
            ax.set_xticklabels(list(AXES), fontsize=6)
            ax.set_yticklabels([])
            label = names(p.neighborhood)
            ax.set_title(label + (" (no reports)" if p.placeholder else ""), fontsize=8)
        chart_paths.append((
            f"Reliability radar charts ({page + 1})",
            _save(f"radar_{page + 1}.png"),
        ))

    plt.figure()
    plt.bar([names(p.neighborhood) for p in profiles], [p.report_count for p in profiles])
    plt.xticks(rotation=45, ha="right")
    plt.title("Reports per neighborhood")
    plt.ylabel("Count")
    chart_paths.append(("Reports per neighborhood", _save("bar_counts.png")))

    # -----------------------------
    # 2) Build DOCX report
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    if config.dataset_file:
        _kv("Data file", config.dataset_file)
    _kv("Neighborhoods", str(len(profiles)))
    _kv("Reports", str(sum(p.report_count for p in profiles)))
    placeholders = [p for p in profiles if p.placeholder]
    if placeholders:
        _kv("Neighborhoods without reports", ", ".join(names(p.neighborhood) for p in placeholders))

    # Axis averages
    doc.add_heading("Average reliability per axis", level=1)
    t = doc.add_table(rows=1, cols=2)
    t.rows[0].cells[0].text = "Axis"
    t.rows[0].cells[1].text = "Mean normalized value"
    for axis, mean in axis_means(profiles):
        row = t.add_row().cells
        row[0].text = axis
        row[1].text = f"{mean:.2f}"

    # Full metric table
    doc.add_paragraph("")
    doc.add_heading("Metrics by neighborhood", level=1)
    doc.add_paragraph("Normalized values (0 = least reliable, 1 = most reliable).")
    t2 = doc.add_table(rows=1, cols=len(AXES) + 1)
    t2.rows[0].cells[0].text = "Neighborhood"
    for i, a in enumerate(AXES):
        t2.rows[0].cells[i + 1].text = a
    for p in profiles:
        row = t2.add_row().cells
        row[0].text = names(p.neighborhood)
        for i, m in enumerate(p.values):
            row[i + 1].text = f"{m.value:.2f}"

    # Raw values
    doc.add_paragraph("")
    doc.add_heading("Raw values", level=1)
    for p in profiles:
        doc.add_paragraph(f"{names(p.neighborhood)} ({p.report_count} reports)", style="List Bullet")
        doc.add_paragraph(
            "; ".join(f"{m.axis}: {format_raw(m.axis, m.raw_value)}" for m in p.values)
        )

    # Rankings on two headline axes
    for axis in ("Completeness", "Response Rate"):
        ranked = sorted(
            (p for p in profiles if not p.placeholder),
            key=lambda p: p.value_of(axis),
            reverse=True,
        )[:config.top_n]
        if ranked:
            doc.add_paragraph("")
            doc.add_paragraph(f"Top {len(ranked)} neighborhoods by {axis}")
            t3 = doc.add_table(rows=1, cols=3)
            h = t3.rows[0].cells
            h[0].text = "Neighborhood"
            h[1].text = axis
            h[2].text = "Reports"
            for p in ranked:
                r = t3.add_row().cells
                r[0].text = names(p.neighborhood)
                r[1].text = format_raw(axis, p.raw_of(axis))
                r[2].text = str(p.report_count)

    # Map view (uncertainty)
    if uncertainty:
        doc.add_paragraph("")
        doc.add_heading("Map view: report uncertainty", level=1)
        t4 = doc.add_table(rows=1, cols=5)
        h = t4.rows[0].cells
        h[0].text = "Neighborhood"
        h[1].text = "Completeness"
        h[2].text = "Variance"
        h[3].text = "Reports"
        h[4].text = "Accuracy"
        by_loc = {u.location: u for u in uncertainty}
        for loc in sorted_locations(by_loc):
            u = by_loc[loc]
            r = t4.add_row().cells
            r[0].text = names(u.location)
            r[1].text = f"{u.completeness * 100:.1f}%"
            r[2].text = f"{u.variance:.2f}"
            r[3].text = str(u.report_count)
            r[4].text = f"{u.accuracy * 100:.1f}%"

    # Visualizations
    doc.add_paragraph("")
    doc.add_heading("Visualizations", level=1)
    for title, path in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.5))
        doc.add_paragraph("")

    # Diagnostics
    if result.diagnostics:
        doc.add_heading("Data quality notes", level=1)
        for d in result.diagnostics:
            where = f"[{names(d.location)}] " if d.location else ""
            doc.add_paragraph(f"{where}{d.code}: {d.message}", style="List Bullet")

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    doc.add_paragraph("")
    doc.add_heading("Reproducibility footer", level=1)
    from . import __version__ as crowdrel_version
    from datetime import datetime as _dt
    doc.add_paragraph(f"crowdrel version: {crowdrel_version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    if config.command_log:
        doc.add_paragraph("Commands used (log):")
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
