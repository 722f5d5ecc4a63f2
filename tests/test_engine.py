# tests/test_engine.py
import csv
import json

import pytest

from crowdrel.engine import (
    EngineConfig,
    ReliabilityEngine,
    build_profile,
    compute_profiles,
    placeholder_profile,
    resolve_axis,
)
from crowdrel.models import AXES


def test_every_profile_has_fixed_axis_order(city_reports):
    res = compute_profiles(city_reports)
    assert res.neighborhoods() == ["1", "2", "3"]
    for p in res.profiles:
        assert tuple(m.axis for m in p.values) == AXES
        for m in p.values:
            assert 0.0 <= m.value <= 1.0


def test_run_is_idempotent(city_reports):
    a = compute_profiles(city_reports)
    b = compute_profiles(city_reports)
    assert a.profiles == b.profiles
    assert a.diagnostics == b.diagnostics


def test_thread_pool_matches_sequential(city_reports):
    seq = compute_profiles(city_reports)
    par = compute_profiles(city_reports, EngineConfig(workers=4))
    assert seq.profiles == par.profiles


def test_frequency_and_timeliness_normalization(rep):
    profile, _ = build_profile("1", [rep(0), rep(1), rep(2)])
    assert profile.raw_of("Frequency") == pytest.approx(1.5)
    assert profile.value_of("Frequency") == pytest.approx(1.5 / 5)
    assert profile.raw_of("Timeliness") == pytest.approx(1.0)
    assert profile.value_of("Timeliness") == pytest.approx(1 - 1 / 24)

    cfg = EngineConfig(frequency_ceiling=1.5, timeliness_ceiling_hours=2.0)
    profile, _ = build_profile("1", [rep(0), rep(1), rep(2)], cfg)
    assert profile.value_of("Frequency") == 1.0
    assert profile.value_of("Timeliness") == pytest.approx(0.5)


def test_single_report_profile(rep):
    profile, _ = build_profile("3", [rep(1, values=(1, 2, 3, 4, 5))])
    for axis in ("Frequency", "Timeliness", "Coverage", "Response Rate"):
        assert profile.value_of(axis) == 0.0
        assert profile.raw_of(axis) == 0.0
    assert profile.value_of("Completeness") == 1.0
    assert profile.value_of("Detail") == 1.0
    assert profile.report_count == 1


def test_declared_neighborhood_without_reports_gets_placeholder(city_reports):
    res = compute_profiles(city_reports, declared=["3", "19"])
    assert res.neighborhoods() == ["3", "19", "1", "2"]
    p = res.get("19")
    assert p.placeholder
    assert p.report_count == 0
    assert [m.value for m in p.values] == [0.0] * 8
    assert [m.raw_value for m in p.values] == [0.0] * 8
    assert any(d.code == "empty_group" and d.location == "19" for d in res.diagnostics)


def test_empty_input_returns_empty_result():
    res = compute_profiles([])
    assert res.profiles == []
    assert [d.code for d in res.diagnostics] == ["empty_input"]

    res = compute_profiles(None, declared=["1"])
    assert res.neighborhoods() == ["1"]
    assert res.profiles[0] == placeholder_profile("1")


def test_group_diagnostics(rep):
    reports = [rep(0, values=(1, None, 1, 1, 1)), rep(None, values=(1, None, 1, 1, 1))]
    _, diags = build_profile("8", reports)
    codes = [d.code for d in diags]
    assert "invalid_time" in codes
    assert codes.count("missing_field") == 1
    assert all(d.location == "8" for d in diags)


def test_engine_config_validation():
    with pytest.raises(ValueError):
        EngineConfig(frequency_ceiling=0)
    with pytest.raises(ValueError):
        EngineConfig(timeliness_ceiling_hours=-1)
    with pytest.raises(ValueError):
        EngineConfig(response_rate_weights=(0.5, 0.6))
    with pytest.raises(ValueError):
        EngineConfig(workers=0)
    with pytest.raises(ValueError):
        EngineConfig(unknown_location=" ")


def test_reliability_engine_profile_and_topk(city_reports):
    engine = ReliabilityEngine(reports=city_reports)
    assert engine.profile("1").report_count == 7
    assert engine.profile("99").placeholder

    top = engine.topk(2, "completeness")
    assert len(top) == 2
    assert top[0].value_of("Completeness") >= top[1].value_of("Completeness")

    # ties keep run order: 1 and 3 both have complete reports
    assert [p.neighborhood for p in top] == ["1", "3"]

    with pytest.raises(ValueError):
        engine.topk(3, "bogus")


def test_resolve_axis_aliases():
    assert resolve_axis("response_rate") == "Response Rate"
    assert resolve_axis("Response Rate") == "Response Rate"
    assert resolve_axis("coverage") == "Coverage"


def test_export_csv_and_json(city_reports, tmp_path):
    res = compute_profiles(city_reports, declared=["19"])
    csv_path = tmp_path / "profiles.csv"
    json_path = tmp_path / "profiles.json"
    res.export_csv(str(csv_path))
    res.export_json(str(json_path))

    with open(csv_path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][:4] == ["neighborhood", "axis", "value", "raw_value"]
    assert len(rows) == 1 + 8 * len(res.profiles)

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["axes"] == list(AXES)
    assert [p["neighborhood"] for p in payload["profiles"]] == res.neighborhoods()
    assert payload["profiles"][0]["values"][0]["axis"] == "Frequency"
    assert any(d["code"] == "empty_group" for d in payload["diagnostics"])
