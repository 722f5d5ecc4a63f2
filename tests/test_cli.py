# tests/test_cli.py
import json

import pytest

from crowdrel import cli
from crowdrel.engine import ReliabilityEngine


@pytest.fixture
def engine(city_reports):
    return ReliabilityEngine(reports=city_reports, declared=["19"])


def test_stats(engine, capsys):
    cli.handle(engine, "stats")
    out = capsys.readouterr().out
    assert "Neighborhoods: 4" in out
    assert "placeholders: 1" in out


def test_profile_uses_display_names(engine, capsys):
    cli.handle(engine, "profile 1")
    out = capsys.readouterr().out
    assert "Palace Hills" in out
    assert "Response Rate" in out
    assert "reports/hour" in out


def test_profile_of_unreported_neighborhood(engine, capsys):
    cli.handle(engine, "profile 19")
    assert "West Parton (no reports)" in capsys.readouterr().out


def test_rank_accepts_multiword_axis(engine, capsys):
    cli.handle(engine, "rank response rate 2")
    out = capsys.readouterr().out
    assert out.startswith("Top 2 by Response Rate:")


def test_rank_unknown_axis_raises(engine):
    with pytest.raises(ValueError):
        cli.handle(engine, "rank bogus")


def test_series_and_uncertainty(engine, capsys):
    cli.handle(engine, "series 1 power")
    assert "2020-04-06 00:00 mean=5.00" in capsys.readouterr().out
    cli.handle(engine, "uncertainty")
    assert "Old Town" in capsys.readouterr().out


def test_diagnostics(engine, capsys):
    cli.handle(engine, "diagnostics")
    out = capsys.readouterr().out
    assert "empty_group" in out
    assert "missing_field" in out


def test_export_json(engine, tmp_path, capsys):
    out_path = tmp_path / "out.json"
    cli.handle(engine, f'export json "{out_path}"')
    assert "Exported JSON" in capsys.readouterr().out
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert len(payload["profiles"]) == 4


def test_unknown_command(engine, capsys):
    cli.handle(engine, "frobnicate")
    assert "Unknown command" in capsys.readouterr().out


def test_main_runs_repl_until_eof(tmp_path, monkeypatch, capsys):
    data = tmp_path / "reports.csv"
    data.write_text(
        "location,time,sewer_and_water,power,roads_and_bridges,medical,buildings\n"
        "1,2020-04-06 00:00:00,1,2,3,4,5\n"
        "1,2020-04-06 01:00:00,1,2,3,4,5\n",
        encoding="utf-8",
    )
    commands = iter(["stats", "profile 1"])

    def fake_input(prompt=""):
        try:
            return next(commands)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    cli.main(["--data", str(data), "--declare-all"])
    out = capsys.readouterr().out
    assert "Loaded 2 reports across 19 neighborhoods" in out
    assert "Palace Hills" in out


def test_uncertainty_lists_neighborhoods_in_natural_order(rep, capsys):
    engine = ReliabilityEngine(reports=[rep(0, "10"), rep(0, "2"), rep(0, "1")])
    cli.handle(engine, "uncertainty")
    lines = capsys.readouterr().out.strip().splitlines()
    assert [ln.split(":")[0].strip() for ln in lines] == ["Palace Hills", "Northwest", "Chapparal"]
