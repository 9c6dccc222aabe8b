"""Tests for core/odds_math.py — conversions, normalization and spread cover.

Run with: pytest tests/test_odds_math.py -v
"""

import math

import pytest

from adaptive_edge.core.odds_math import (
    SPREAD_IMPLIED_PROB,
    decimal_to_american,
    implied_prob_american,
    implied_prob_decimal,
    normalize_pct,
    round_half_up,
    spread_cover_probability,
    spread_edge_pct,
)


# ---------------------------------------------------------------------------
# normalize_pct
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    (0.65, 65.0),
    (65, 65.0),
    (0.0, 0.0),
    (1, 100.0),        # boundary: 1 is a fraction
    (1.5, 1.5),        # just above 1 is already a percentage
    (100, 100.0),
])
def test_normalize_pct(raw, expected):
    assert normalize_pct(raw) == pytest.approx(expected)


def test_normalize_pct_is_not_applied_twice_by_accident():
    # A second pass over an already-normalised value is a no-op above 1
    assert normalize_pct(normalize_pct(0.72)) == pytest.approx(72.0)


# ---------------------------------------------------------------------------
# round_half_up
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    (72.5, 73),
    (73.5, 74),
    (72.49, 72),
    (0.5, 1),
    (61.0, 61),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------

def test_decimal_to_american_underdog():
    assert decimal_to_american(2.5) == 150


def test_decimal_to_american_favourite():
    assert decimal_to_american(1.5) == -200


def test_decimal_to_american_even_money():
    assert decimal_to_american(2.0) == 100


@pytest.mark.parametrize("bad", [1.0, 0.5, 0.0, -2.0])
def test_decimal_to_american_rejects_no_payout(bad):
    with pytest.raises(ValueError, match="must be > 1.0"):
        decimal_to_american(bad)


def test_implied_prob_american():
    assert implied_prob_american(-110) == pytest.approx(110 / 210)
    assert implied_prob_american(150) == pytest.approx(0.4)


def test_implied_prob_decimal_goes_through_american():
    # 1.5 → -200 → 200/300
    assert implied_prob_decimal(1.5) == pytest.approx(2 / 3)


def test_spread_implied_prob_is_minus_110():
    assert SPREAD_IMPLIED_PROB == pytest.approx(0.5238, abs=1e-4)


# ---------------------------------------------------------------------------
# Spread cover
# ---------------------------------------------------------------------------

def test_cover_probability_home_favoured_beyond_market():
    # Model home by 5, book home -3: z = (5 - 3) / 10
    p = spread_cover_probability(5.0, -3.0, True)
    assert p == pytest.approx(0.5 + 0.5 * math.tanh(0.2))
    assert p == pytest.approx(0.5987, abs=1e-4)


def test_edge_for_worked_example():
    p = spread_cover_probability(5.0, -3.0, True)
    assert spread_edge_pct(p) == pytest.approx(7.49, abs=0.01)


def test_cover_probability_matches_market_is_coin_flip():
    assert spread_cover_probability(3.0, -3.0, True) == pytest.approx(0.5)


def test_cover_probability_away_flips_predicted_margin():
    # Away evaluation negates the predicted spread only
    p = spread_cover_probability(-5.0, -3.0, False)
    assert p == pytest.approx(0.5 + 0.5 * math.tanh((5.0 - 3.0) / 10))


def test_cover_probability_clamped_high():
    assert spread_cover_probability(40.0, -3.0, True) == pytest.approx(0.9)


def test_cover_probability_clamped_low():
    assert spread_cover_probability(-40.0, -3.0, True) == pytest.approx(0.1)
