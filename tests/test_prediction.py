"""Tests for core/prediction.py — input validation and bias correction."""

import pytest

from adaptive_edge.core.prediction import (
    BiasCorrection,
    OddsSnapshot,
    PredictionInput,
    PredictionValidationError,
    apply_bias,
)


def _pred(**overrides):
    fields = dict(
        predicted_home_score=80.0,
        predicted_away_score=72.0,
        predicted_spread=8.0,
        home_win_prob=0.75,
        away_win_prob=0.25,
        confidence=0.68,
        home_team="Duke",
        away_team="UNC",
        predicted_total=152.0,
        sport="basketball_ncaab",
    )
    fields.update(overrides)
    return PredictionInput(**fields)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_valid_prediction_constructs():
    p = _pred()
    assert p.predicted_winner == "home"


def test_tie_score_picks_away():
    assert _pred(predicted_home_score=70, predicted_away_score=70).predicted_winner == "away"


@pytest.mark.parametrize("field, value", [
    ("confidence", "high"),
    ("home_win_prob", None),
    ("predicted_spread", True),
    ("predicted_home_score", float("nan")),
    ("predicted_total", "150"),
])
def test_non_numeric_fields_rejected(field, value):
    with pytest.raises(PredictionValidationError, match=field):
        _pred(**{field: value})


@pytest.mark.parametrize("field, value", [
    ("confidence", -0.1),
    ("confidence", 101),
    ("away_win_prob", 250),
])
def test_out_of_range_probabilities_rejected(field, value):
    with pytest.raises(PredictionValidationError, match=field):
        _pred(**{field: value})


@pytest.mark.parametrize("team", ["", "   "])
def test_blank_team_rejected(team):
    with pytest.raises(PredictionValidationError, match="home_team"):
        _pred(home_team=team)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        _pred(confidence="x")


def test_missing_total_and_sport_allowed():
    p = _pred(predicted_total=None, sport=None)
    assert p.predicted_total is None


# ---------------------------------------------------------------------------
# apply_bias
# ---------------------------------------------------------------------------

def test_no_correction_returns_same_object():
    p = _pred()
    assert apply_bias(p, None) is p


def test_all_offsets_absent_returns_same_object():
    p = _pred()
    assert apply_bias(p, BiasCorrection()) is p


def test_all_offsets_zero_returns_same_object():
    p = _pred()
    assert apply_bias(p, BiasCorrection(0.0, 0.0, 0.0)) is p


def test_team_offsets_recompute_spread():
    p = _pred()
    out = apply_bias(p, BiasCorrection(home_team_bias=2.0, away_team_bias=-1.0))
    assert out.predicted_home_score == pytest.approx(78.0)
    assert out.predicted_away_score == pytest.approx(73.0)
    assert out.predicted_spread == pytest.approx(5.0)
    assert out.predicted_total == pytest.approx(152.0)


def test_score_offset_adjusts_total_only_when_present():
    out = apply_bias(_pred(), BiasCorrection(score_bias=3.0))
    assert out.predicted_total == pytest.approx(149.0)

    no_total = apply_bias(_pred(predicted_total=None), BiasCorrection(score_bias=3.0))
    assert no_total.predicted_total is None


def test_input_is_not_mutated():
    p = _pred()
    apply_bias(p, BiasCorrection(home_team_bias=4.0, score_bias=2.0))
    assert p.predicted_home_score == 80.0
    assert p.predicted_spread == 8.0
    assert p.predicted_total == 152.0


def test_odds_snapshot_moneyline_for():
    odds = OddsSnapshot(moneyline_home=1.4, moneyline_away=3.1)
    assert odds.moneyline_for("home") == 1.4
    assert odds.moneyline_for("away") == 3.1
