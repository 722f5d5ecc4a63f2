"""
crowdrel Command Line Interface (CLI)
=====================================

Interactive terminal program you run like:

    python -m crowdrel.cli --data "path/to/reports.csv"

It loads the report export once, computes every neighborhood profile and
then answers commands about the result (inspect, rank, export, report).

The CLI DOES NOT modify your dataset file.
"""

from __future__ import annotations
import argparse, logging, shlex
from typing import List, Optional

from .loader import load_reports
from .engine import EngineConfig, ReliabilityEngine, resolve_axis
from .grouping import sorted_locations
from .locations import LocationNames
from .models import DAMAGE_FIELDS, NeighborhoodProfile
from .report import format_raw
from .summary import hourly_damage_series, uncertainty_summary

HELP = """
Commands:
  help
  stats
  show [n]                        profiles of the first n neighborhoods
  profile <id>                    (example: profile 3)
  rank <axis> [k]                 (example: rank completeness 5)
  uncertainty                     map-view summary per neighborhood
  series <id> <field>             (example: series 3 power)
  diagnostics
  export csv "<out.csv>"
  export json "<out.json>"
  report "<out.docx>"
  quit

Axes: Frequency, Consistency, Timeliness, Completeness, Coverage, Accuracy, Detail, Response Rate
Fields: sewer_and_water, power, roads_and_bridges, medical, buildings
"""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="crowdrel", description="Reliability metrics for damage reports")
    ap.add_argument("--data", required=True, help="Path to a .csv or .xlsx report export")
    ap.add_argument("--declare-all", action="store_true",
                    help="Emit a placeholder profile for every known neighborhood without reports")
    ap.add_argument("--frequency-ceiling", type=float, default=5.0, help="Reports/hour mapped to 1.0")
    ap.add_argument("--timeliness-ceiling", type=float, default=24.0, help="Mean gap (hours) mapped to 0.0")
    ap.add_argument("--workers", type=int, default=1)
    ap.add_argument("--log-level", default="WARNING")
    return ap


def main(argv: Optional[List[str]] = None):
    """Entry point for the crowdrel CLI.

    1) Load dataset
    2) Compute profiles
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
                        format="[%(levelname)s] %(name)s: %(message)s")

    names = LocationNames()
    print("Loading dataset...")
    reports = load_reports(args.data)
    engine = ReliabilityEngine(
        reports=reports,
        config=EngineConfig(
            frequency_ceiling=args.frequency_ceiling,
            timeliness_ceiling_hours=args.timeliness_ceiling,
            workers=args.workers,
        ),
        declared=names.known_ids() if args.declare_all else None,
        dataset_path=args.data,
    )

    print(f"Loaded {len(reports)} reports across {len(engine.result.profiles)} neighborhoods. Type 'help' for commands.")
    while True:
        try:
            line = input("crowdrel> ")
            stripped = line.strip()
            if stripped:
                cmd0 = stripped.split()[0].lower()
                if cmd0 not in ("help", "quit", "exit"):
                    engine.command_log.append(stripped)
        except EOFError:
            break
        if not line.strip():
            continue
        if line.strip().lower() in ("quit", "exit"):
            break
        try:
            handle(engine, line, names)
        except Exception as e:
            print(f"Error: {e}")


def handle(engine: ReliabilityEngine, line: str, names: Optional[LocationNames] = None) -> None:
    """Handle one CLI command line."""
    names = names or LocationNames()
    parts = shlex.split(line)
    if not parts:
        return
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        res = engine.result
        placeholders = sum(1 for p in res.profiles if p.placeholder)
        print(f"Reports: {len(engine.reports)} | Neighborhoods: {len(res.profiles)} "
              f"(placeholders: {placeholders}) | Diagnostics: {len(res.diagnostics)}")
        return

    if cmd == "show":
        n = int(parts[1]) if len(parts) >= 2 else 10
        for p in engine.result.profiles[:n]:
            _print_profile(p, names)
        return

    if cmd == "profile":
        if len(parts) < 2:
            raise ValueError("usage: profile <id>")
        _print_profile(engine.profile(parts[1]), names, raw=True)
        return

    if cmd == "rank":
        if len(parts) < 2:
            raise ValueError("usage: rank <axis> [k]")
        # axis names may contain a space ("response rate")
        k = 10
        axis_parts = parts[1:]
        if len(axis_parts) >= 2 and axis_parts[-1].isdigit():
            k = int(axis_parts[-1])
            axis_parts = axis_parts[:-1]
        axis = " ".join(axis_parts)
        a = resolve_axis(axis)
        out = engine.topk(k, a)
        print(f"Top {len(out)} by {a}:")
        for p in out:
            print(f"  {names(p.neighborhood)}: {p.value_of(a):.2f} ({format_raw(a, p.raw_of(a))})")
        return

    if cmd == "uncertainty":
        # map ids in natural order (1, 2, ..., 10)
        rows = {u.location: u for u in uncertainty_summary(engine.groups)}
        for loc in sorted_locations(rows):
            u = rows[loc]
            print(f"  {names(u.location)}: completeness={u.completeness * 100:.1f}% "
                  f"variance={u.variance:.2f} reports={u.report_count} accuracy={u.accuracy * 100:.1f}%")
        return

    if cmd == "series":
        if len(parts) < 3:
            raise ValueError("usage: series <id> <field>")
        field = parts[2].lower()
        if field not in DAMAGE_FIELDS:
            raise ValueError(f"field must be one of: {', '.join(DAMAGE_FIELDS)}")
        group = engine.groups.get(parts[1], ())
        points = hourly_damage_series(group, field)
        if not points:
            print(f"No timed reports for {names(parts[1])}.")
            return
        for pt in points:
            print(f"  {pt.hour:%Y-%m-%d %H:00} mean={pt.mean:.2f} +/-{pt.uncertainty:.2f} (n={pt.count})")
        return

    if cmd == "diagnostics":
        if not engine.result.diagnostics:
            print("No diagnostics.")
        for d in engine.result.diagnostics:
            where = f"[{names(d.location)}] " if d.location else ""
            print(f"  {where}{d.code}: {d.message}")
        return

    if cmd == "export":
        if len(parts) < 3:
            print('Usage: export csv "out.csv"  OR  export json "out.json"')
            return
        fmt, out_path = parts[1].lower(), parts[2]
        if not engine.result.profiles:
            print("Nothing to export: no profiles.")
            return
        if fmt == "csv":
            engine.result.export_csv(out_path)
            print(f"Exported CSV to {out_path}")
            return
        if fmt == "json":
            engine.result.export_json(out_path)
            print(f"Exported JSON to {out_path}")
            return
        print("Unknown export format. Use: csv or json")
        return

    if cmd == "report":
        from .report import generate_docx_report, ReportConfig
        if len(parts) < 2:
            raise ValueError('usage: report "<out.docx>"')
        path = parts[1]
        cfg = ReportConfig(
            dataset_file=engine.dataset_path,
            command_log=list(engine.command_log),
        )
        generate_docx_report(
            engine.result, path, config=cfg, names=names,
            uncertainty=uncertainty_summary(engine.groups),
        )
        print(f"Report written to {path}")
        return

    print("Unknown command. Type 'help'.")


def _print_profile(p: NeighborhoodProfile, names: LocationNames, raw: bool = False) -> None:
    tag = " (no reports)" if p.placeholder else ""
    print(f"[{p.neighborhood}] {names(p.neighborhood)}{tag} | reports={p.report_count}")
    for m in p.values:
        extra = f"  ({format_raw(m.axis, m.raw_value)})" if raw else ""
        print(f"    {m.axis:<14}{m.value:.2f}{extra}")


if __name__ == "__main__":
    main()
