"""Tests for scripts/ats_feedback_report.py (report-only paths, no database)."""

import json

import pytest

from scripts.ats_feedback_report import load_examples, main


@pytest.fixture
def examples_file(tmp_path):
    records = [
        {"sport": "basketball_ncaab", "predicted_spread": 5, "confidence": 0.6,
         "actual_margin": 1, "market_spread": -3}
        for _ in range(12)
    ] + [
        {"sport": "basketball_nba", "predicted_spread": -4, "confidence": 72,
         "actual_margin": -9, "market_spread": 2}
        for _ in range(12)
    ]
    path = tmp_path / "examples.json"
    path.write_text(json.dumps(records))
    return path


def test_load_examples_filters_by_sport(examples_file):
    assert len(load_examples(str(examples_file))) == 24
    assert {e.sport for e in load_examples(str(examples_file), "basketball_nba")} == {"basketball_nba"}


def test_load_examples_rejects_non_list(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"sport": "basketball_nba"}))
    with pytest.raises(ValueError, match="expected a JSON list"):
        load_examples(str(path))


def test_main_exports_report_and_config(examples_file, tmp_path, capsys):
    report_path = tmp_path / "report.json"
    config_path = tmp_path / "config.json"
    rc = main([
        str(examples_file),
        "--export", str(report_path),
        "--generate-config", str(config_path),
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "ATS FEEDBACK REPORT" in out
    assert "basketball_ncaab: DISABLED" in out

    report = json.loads(report_path.read_text())
    assert report["overall"]["wins"] == 12
    assert report["overall"]["losses"] == 12

    config = json.loads(config_path.read_text())
    assert config["version"] == 2
    assert config["sports"]["basketball_ncaab"]["enabled"] is False
    assert config["sports"]["basketball_nba"]["confidence_multiplier"] == pytest.approx(1.2)


def test_main_with_no_matching_sport(examples_file, capsys):
    assert main([str(examples_file), "--sport", "icehockey_nhl"]) == 0
    assert "No graded examples" in capsys.readouterr().out
