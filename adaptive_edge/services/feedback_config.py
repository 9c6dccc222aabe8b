"""
Feedback config generation — segmented ATS accuracy → new tuning config.

Public API:
  generate_config_from_feedback(report, base_config=None) → TuningConfig
  describe_config_changes(old, new)                        → List[str]

The new config starts as a deep copy of the base (the neutral default when
no base is given) with version + 1 and a fresh timestamp.  Each segment whose
decided-game count reaches global_settings.min_sample_size_for_adjustment is
then adjusted:

    sports
        win rate < disable      → disabled, multiplier 0
        win rate < downweight   → linear ramp 0.5 … 0.8
        win rate ≥ target       → boost 1 + (rate − target)/20, capped at 1.2
    spread / total buckets
        win rate < disable      → disabled, multiplier 0
        win rate < downweight   → flat 0.6   (no upward path)
    confidence bands
        win rate < downweight   → flat 0.7   (never disabled)

Segments below the sample floor, and segment values the config does not
know, are left exactly as in the base.  The base is never mutated.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from adaptive_edge.core.segments import (
    ConfidenceBand,
    SegmentationReport,
    SegmentResult,
    SpreadBucket,
    TotalBucket,
)
from adaptive_edge.core.tuning_config import (
    SegmentSetting,
    TuningConfig,
    default_config,
    increment_config_version,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tuning constants
# ---------------------------------------------------------------------------

_SPORT_RAMP_FLOOR = 0.5      # multiplier at the disable threshold
_SPORT_RAMP_SPAN = 0.3       # floor + span = multiplier at the downweight threshold
_SPORT_BOOST_CAP = 1.2
_SPORT_BOOST_DIVISOR = 20.0
_BUCKET_DOWNWEIGHT = 0.6
_BAND_DOWNWEIGHT = 0.7


def _log_change(key: str, old: SegmentSetting, new: SegmentSetting, seg: SegmentResult) -> None:
    if old == new:
        return
    logger.info(
        "%s: %.3f → %.3f%s (win rate %.1f%%, n=%d)",
        key,
        old.confidence_multiplier,
        new.confidence_multiplier,
        "" if new.enabled else " DISABLED",
        seg.win_rate,
        seg.decided,
    )


def _adjust_bucket(
    settings: Dict,
    member,
    seg: SegmentResult,
    disable: float,
    downweight: float,
    prefix: str,
) -> None:
    old = settings[member]
    if seg.win_rate < disable:
        new = replace(old, enabled=False, confidence_multiplier=0.0)
    elif seg.win_rate < downweight:
        new = replace(old, confidence_multiplier=_BUCKET_DOWNWEIGHT)
    else:
        return
    settings[member] = new
    _log_change(f"{prefix}.{member.value}", old, new, seg)


def generate_config_from_feedback(
    report: SegmentationReport,
    base_config: Optional[TuningConfig] = None,
) -> TuningConfig:
    """
    Build the next tuning config from a segmentation report.

    Args:
        report:      Segmented ATS record (see services.ats_feedback).
        base_config: Config to start from; the neutral default when None.

    Returns:
        A new TuningConfig with version = base.version + 1.
    """
    base = base_config if base_config is not None else default_config()
    config = increment_config_version(base)

    gs = config.global_settings
    min_n = gs.min_sample_size_for_adjustment
    disable = gs.win_rate_threshold_for_disable
    downweight = gs.win_rate_threshold_for_downweight
    target = gs.target_win_rate

    logger.info(
        "Generating tuning config v%d from %d graded examples (min sample %d)",
        config.version, report.sample_count, min_n,
    )

    # -- Sports ------------------------------------------------------------
    for seg in report.by_sport:
        if seg.value not in config.sports or seg.decided < min_n:
            continue
        old = config.sports[seg.value]
        if seg.win_rate < disable:
            new = replace(old, enabled=False, confidence_multiplier=0.0)
        elif seg.win_rate < downweight:
            ramp = (seg.win_rate - disable) / (downweight - disable)
            new = replace(old, confidence_multiplier=_SPORT_RAMP_FLOOR + ramp * _SPORT_RAMP_SPAN)
        elif seg.win_rate >= target:
            boost = 1.0 + (seg.win_rate - target) / _SPORT_BOOST_DIVISOR
            new = replace(old, confidence_multiplier=min(_SPORT_BOOST_CAP, boost))
        else:
            continue
        config.sports[seg.value] = new
        _log_change(seg.value, old, new, seg)

    # -- Spread magnitude and total buckets --------------------------------
    for axis, segments, settings, prefix in (
        (SpreadBucket, report.by_spread_magnitude, config.spread_magnitude, "spread_magnitude"),
        (TotalBucket, report.by_total_bucket, config.total_bucket, "total_bucket"),
    ):
        for seg in segments:
            member = axis.from_label(seg.value)
            if member is None or seg.decided < min_n:
                continue
            _adjust_bucket(settings, member, seg, disable, downweight, prefix)

    # -- Confidence bands ---------------------------------------------------
    for seg in report.by_confidence_band:
        member = ConfidenceBand.from_label(seg.value)
        if member is None or seg.decided < min_n or seg.win_rate >= downweight:
            continue
        old = config.confidence_bands[member]
        new = replace(old, confidence_multiplier=_BAND_DOWNWEIGHT)
        config.confidence_bands[member] = new
        _log_change(f"confidence_band.{member.value}", old, new, seg)

    return config


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------

def _describe(key: str, old: Optional[SegmentSetting], new: SegmentSetting) -> Optional[str]:
    if old is None:
        old = SegmentSetting()
    if old.enabled and not new.enabled:
        return f"{key}: DISABLED"
    if not old.enabled and new.enabled:
        return f"{key}: ENABLED (multiplier {new.confidence_multiplier:.2f})"
    if old.confidence_multiplier != new.confidence_multiplier:
        return (
            f"{key}: multiplier {old.confidence_multiplier:.2f} → "
            f"{new.confidence_multiplier:.2f}"
        )
    return None


def describe_config_changes(old: TuningConfig, new: TuningConfig) -> List[str]:
    """
    Human-readable differences between two configs, e.g.

        ["basketball_ncaab: DISABLED",
         "spread_magnitude.medium: multiplier 1.00 → 0.60"]
    """
    changes: List[str] = []
    for key, setting in new.sports.items():
        line = _describe(key, old.sports.get(key), setting)
        if line:
            changes.append(line)
    for prefix, old_axis, new_axis in (
        ("spread_magnitude", old.spread_magnitude, new.spread_magnitude),
        ("total_bucket", old.total_bucket, new.total_bucket),
        ("confidence_band", old.confidence_bands, new.confidence_bands),
    ):
        for member, setting in new_axis.items():
            line = _describe(f"{prefix}.{member.value}", old_axis.get(member), setting)
            if line:
                changes.append(line)
    return changes
