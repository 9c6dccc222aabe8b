"""Tests for performance.py gate and ATS record helpers."""

import pytest

from adaptive_edge.services.performance import (
    ATS_PERFORMANCE_GATE,
    MIN_GAMES_FOR_GATE,
    _win_rate_pct,
    ats_record,
    check_performance_gate,
)


# ---------------------------------------------------------------------------
# Pure math helpers
# ---------------------------------------------------------------------------

def test_win_rate_zero_total():
    assert _win_rate_pct(5, 0) == 0.0

def test_win_rate_rounded():
    assert _win_rate_pct(2, 3) == pytest.approx(66.67)


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

def test_defaults():
    assert ATS_PERFORMANCE_GATE == pytest.approx(53.0)
    assert MIN_GAMES_FOR_GATE == 30


@pytest.mark.parametrize("rate, games, threshold, passed", [
    (52.0, 29, 53.0, False),   # fails both
    (55.0, 31, 53.0, True),
    (55.0, 29, 53.0, False),   # not enough games
    (52.9, 100, 53.0, False),  # not good enough
    (53.0, 30, 53.0, True),    # both bounds inclusive
    (50.0, 30, 50.0, True),    # custom threshold
])
def test_check_performance_gate(rate, games, threshold, passed):
    result = check_performance_gate(rate, games, threshold)
    assert result.passed is passed


def test_gate_echoes_inputs():
    result = check_performance_gate(54.5, 40, 53.0)
    assert result.to_dict() == {
        "passed": True,
        "ats_win_rate": 54.5,
        "games_decided": 40,
        "threshold": 53.0,
    }


def test_gate_default_threshold():
    assert check_performance_gate(53.0, 30).threshold == ATS_PERFORMANCE_GATE


# ---------------------------------------------------------------------------
# ATS record
# ---------------------------------------------------------------------------

def test_ats_record_counts():
    rec = ats_record([1, 1, 1, -1, 0, -1, 1])
    assert rec["wins"] == 4
    assert rec["losses"] == 2
    assert rec["pushes"] == 1
    assert rec["decided"] == 6
    assert rec["ats_win_rate"] == pytest.approx(66.67)


def test_ats_record_empty():
    assert ats_record([]) == {
        "wins": 0, "losses": 0, "pushes": 0, "decided": 0, "ats_win_rate": 0.0,
    }


def test_ats_record_all_pushes():
    rec = ats_record([0, 0])
    assert rec["decided"] == 0
    assert rec["ats_win_rate"] == 0.0


@pytest.mark.parametrize("bad", [2, -2, None, "W"])
def test_ats_record_rejects_unknown_outcome(bad):
    with pytest.raises(ValueError, match="ATS outcome"):
        ats_record([1, bad])


def test_ats_record_feeds_gate():
    outcomes = [1] * 18 + [-1] * 14 + [0] * 3
    rec = ats_record(outcomes)
    result = check_performance_gate(rec["ats_win_rate"], rec["decided"])
    assert rec["decided"] == 32
    assert rec["ats_win_rate"] == pytest.approx(56.25)
    assert result.passed is True
