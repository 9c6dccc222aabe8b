"""Tests for services/ats_feedback.py — grading, segmentation and suggestions."""

import pytest

from adaptive_edge.core.segments import SegmentationReport, SegmentResult
from adaptive_edge.services.ats_feedback import (
    GradedExample,
    build_segmentation_report,
    compute_net_units,
    feature_correlations,
    format_report,
    grade_ats,
    overall_record,
    suggest_adjustments,
)


def _ex(cover=True, sport="basketball_ncaab", spread=5.0, conf=60.0, total=140.0, **features):
    # Home pick laying 3 on the market: a 10-point win covers, a 1-point win doesn't
    return GradedExample(
        sport=sport,
        predicted_spread=spread,
        confidence=conf,
        actual_margin=10.0 if cover else 1.0,
        market_spread=-3.0,
        predicted_total=total,
        features=features,
    )


# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("predicted, market, actual, expected", [
    (5.0, -3.0, 10.0, 1),     # home pick, covers by 7
    (5.0, -3.0, 2.0, -1),     # home pick, wins by 2 but lays 3
    (5.0, -3.0, 3.0, 0),      # exactly the number
    (5.0, -3.0, 3.4, 0),      # inside the push margin
    (-4.0, 2.0, -5.0, 1),     # away pick
    (-4.0, 2.0, 0.0, -1),
    (0.0, 2.0, -5.0, 1),      # pick'em backs the away side
])
def test_grade_ats(predicted, market, actual, expected):
    ex = GradedExample("basketball_nba", predicted, 60.0, actual, market_spread=market)
    assert grade_ats(ex) == expected


def test_grade_ats_without_market_line():
    assert grade_ats(GradedExample("basketball_nba", 5.0, 60.0, 10.0)) is None


def test_compute_net_units():
    assert compute_net_units(10, 5) == pytest.approx(4.1)
    assert compute_net_units(0, 0) == 0.0


# ---------------------------------------------------------------------------
# GradedExample.from_dict
# ---------------------------------------------------------------------------

def test_from_dict_normalizes_confidence():
    ex = GradedExample.from_dict({
        "sport": "basketball_nba",
        "predicted_spread": "4.5",
        "confidence": 0.62,
        "actual_margin": 7,
        "market_spread": -3.5,
        "features": {"pace": 70, "rest": None},
    })
    assert ex.confidence == pytest.approx(62.0)
    assert ex.predicted_spread == pytest.approx(4.5)
    assert ex.predicted_total is None
    assert ex.features == {"pace": 70.0}


def test_from_dict_reports_missing_fields():
    with pytest.raises(ValueError, match="confidence, actual_margin"):
        GradedExample.from_dict({"sport": "basketball_nba", "predicted_spread": 3})


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def test_build_segmentation_report():
    examples = (
        [_ex(True, sport="basketball_nba", spread=2.0, conf=75.0, total=120.0)] * 3
        + [_ex(False, sport="basketball_ncaab", spread=8.0, conf=45.0, total=150.0)] * 2
        + [_ex(True, spread=5.0, total=None)]
        + [GradedExample("basketball_nba", 5.0, 60.0, 10.0)]  # no market line
    )
    report = build_segmentation_report(examples)
    assert report.sample_count == 6

    sports = {s.value: (s.wins, s.losses) for s in report.by_sport}
    assert sports == {"basketball_nba": (3, 0), "basketball_ncaab": (1, 2)}
    assert [s.value for s in report.by_sport] == ["basketball_nba", "basketball_ncaab"]

    assert [s.value for s in report.by_spread_magnitude] == [
        "small(<3)", "medium(3-7)", "large(7-12)",
    ]
    # Examples without a predicted total are left out of that axis only
    assert sum(s.decided for s in report.by_total_bucket) == 5
    assert [s.value for s in report.by_confidence_band] == [
        "low(<50)", "medium(50-70)", "high(>=70)",
    ]


def test_report_counts_pushes_separately():
    push = GradedExample("basketball_nba", 5.0, 60.0, 3.0, market_spread=-3.0)
    report = build_segmentation_report([push, _ex(True, sport="basketball_nba")])
    seg = report.by_sport[0]
    assert (seg.wins, seg.losses, seg.pushes) == (1, 0, 1)
    assert seg.win_rate == pytest.approx(100.0)


def test_overall_record():
    report = build_segmentation_report([_ex(True)] * 6 + [_ex(False)] * 4)
    overall = overall_record(report)
    assert overall["wins"] == 6
    assert overall["losses"] == 4
    assert overall["win_rate"] == pytest.approx(60.0)
    assert overall["net_units"] == pytest.approx(1.46)


def test_empty_report():
    report = build_segmentation_report([])
    assert report.sample_count == 0
    assert overall_record(report)["win_rate"] == 0.0


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

def test_suggest_adjustments():
    report = SegmentationReport(
        by_sport=[
            SegmentResult.from_record("basketball_ncaab", 3, 12),   # 20%
            SegmentResult.from_record("basketball_nba", 8, 12),     # 40%
            SegmentResult.from_record("icehockey_nhl", 1, 5),       # too few
        ],
        by_spread_magnitude=[SegmentResult.from_record("large(7-12)", 3, 9)],
        by_confidence_band=[
            SegmentResult.from_record("medium(50-70)", 12, 8),      # 60%
            SegmentResult.from_record("high(>=70)", 4, 8),          # 33%
        ],
    )
    suggestions = suggest_adjustments(report)
    kinds = [(s.type, s.target) for s in suggestions]
    assert kinds == [
        ("disable", "sport:basketball_ncaab"),
        ("recalibrate", "confidence"),
        ("downweight", "sport:basketball_nba"),
        ("investigate", "spread_magnitude:large(7-12)"),
    ]
    assert [s.severity for s in suggestions] == ["high", "high", "medium", "medium"]


def test_no_suggestions_for_healthy_report():
    report = SegmentationReport(by_sport=[SegmentResult.from_record("basketball_nba", 30, 20)])
    assert suggest_adjustments(report) == []


# ---------------------------------------------------------------------------
# Feature correlation
# ---------------------------------------------------------------------------

def test_feature_correlations():
    examples = [_ex(i >= 6, pace=float(i), rest=1.0) for i in range(12)]
    examples += [_ex(True, travel=1.0)] * 3
    results = {f.feature: f for f in feature_correlations(examples, significance_threshold=0.1)}

    assert set(results) == {"pace", "rest"}       # travel has too few samples
    pace = results["pace"]
    assert pace.sample_count == 12
    assert pace.win_rate_above_median == pytest.approx(100.0)
    assert pace.win_rate_below_median == pytest.approx(0.0)
    assert pace.correlation > 0.8
    assert pace.direction == "positive"
    assert pace.significant is True

    rest = results["rest"]
    assert rest.correlation is None
    assert rest.direction == "neutral"
    assert rest.significant is False


def test_feature_correlations_sorted_strongest_first():
    examples = [_ex(i >= 6, pace=float(i), rest=1.0) for i in range(12)]
    assert [f.feature for f in feature_correlations(examples)] == ["pace", "rest"]


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------

def test_format_report():
    examples = [_ex(True)] * 6 + [_ex(False)] * 4
    report = build_segmentation_report(examples)
    text = format_report(report, suggest_adjustments(report), feature_correlations(examples))
    assert "ATS FEEDBACK REPORT" in text
    assert "Overall: 6-4-0 (60.0%)" in text
    assert "-- By Sport --" in text
    assert "basketball_ncaab" in text
