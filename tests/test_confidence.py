"""Tests for core/confidence.py — the staged confidence adjustment pipeline."""

import pytest

from adaptive_edge.core.confidence import apply_config_to_confidence
from adaptive_edge.core.segments import ConfidenceBand, SpreadBucket, TotalBucket
from adaptive_edge.core.tuning_config import SegmentSetting, SportSetting, default_config

NBA = "basketball_nba"


def _apply(cfg, raw=60.0, sport=NBA, spread=5.0, total=140.0):
    return apply_config_to_confidence(raw, sport, spread, total, cfg)


def test_neutral_config_is_identity():
    assert _apply(default_config()) == pytest.approx(60.0)


# ---------------------------------------------------------------------------
# Vetoes
# ---------------------------------------------------------------------------

def test_disabled_sport_vetoes():
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(enabled=False)
    assert _apply(cfg) is None


def test_sport_floor_vetoes_below_only():
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(min_confidence_threshold=60.0)
    assert _apply(cfg, raw=59.9) is None
    assert _apply(cfg, raw=60.0) == pytest.approx(60.0)


def test_disabled_spread_bucket_vetoes():
    cfg = default_config()
    cfg.spread_magnitude[SpreadBucket.MEDIUM] = SegmentSetting(enabled=False)
    assert _apply(cfg, spread=-5.0) is None
    assert _apply(cfg, spread=8.0) == pytest.approx(60.0)


def test_disabled_total_bucket_vetoes():
    cfg = default_config()
    cfg.total_bucket[TotalBucket.MEDIUM] = SegmentSetting(enabled=False)
    assert _apply(cfg, total=140.0) is None


def test_disabled_band_vetoes():
    cfg = default_config()
    cfg.confidence_bands[ConfidenceBand.MEDIUM] = SegmentSetting(enabled=False)
    assert _apply(cfg, raw=60.0) is None
    assert _apply(cfg, raw=75.0) == pytest.approx(75.0)


# ---------------------------------------------------------------------------
# Multipliers
# ---------------------------------------------------------------------------

def test_multipliers_compose():
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(confidence_multiplier=0.8)
    cfg.spread_magnitude[SpreadBucket.MEDIUM] = SegmentSetting(confidence_multiplier=0.6)
    cfg.total_bucket[TotalBucket.MEDIUM] = SegmentSetting(confidence_multiplier=1.2)
    cfg.confidence_bands[ConfidenceBand.MEDIUM] = SegmentSetting(confidence_multiplier=0.7)
    assert _apply(cfg) == pytest.approx(60.0 * 0.8 * 0.6 * 1.2 * 0.7)


def test_band_uses_raw_confidence():
    # 80 × 0.8 = 64 would be "medium", but the band is taken from raw 80
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(confidence_multiplier=0.8)
    cfg.confidence_bands[ConfidenceBand.MEDIUM] = SegmentSetting(enabled=False)
    assert _apply(cfg, raw=80.0) == pytest.approx(64.0)


def test_result_is_clamped_to_100():
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(confidence_multiplier=1.5)
    cfg.confidence_bands[ConfidenceBand.HIGH] = SegmentSetting(confidence_multiplier=1.5)
    assert _apply(cfg, raw=90.0) == 100.0


# ---------------------------------------------------------------------------
# Skipped stages
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("sport", [None, "", "cricket_ipl"])
def test_unlisted_sport_skips_sport_stage(sport):
    cfg = default_config()
    cfg.confidence_bands[ConfidenceBand.MEDIUM] = SegmentSetting(confidence_multiplier=0.5)
    assert _apply(cfg, sport=sport) == pytest.approx(30.0)


def test_missing_total_skips_total_stage():
    cfg = default_config()
    for bucket in TotalBucket:
        cfg.total_bucket[bucket] = SegmentSetting(enabled=False)
    assert _apply(cfg, total=None) == pytest.approx(60.0)
    assert _apply(cfg, total=150.0) is None


def test_deterministic():
    cfg = default_config()
    cfg.sports[NBA] = SportSetting(confidence_multiplier=0.9)
    assert _apply(cfg) == _apply(cfg)
