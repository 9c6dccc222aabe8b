"""Confidence adjustment pipeline.

Runs a raw 0–100 confidence value through the active
:class:`~adaptive_edge.core.tuning_config.TuningConfig` in a fixed order:

1. **sport** — disabled sport or raw confidence below the sport floor stops
   the pipeline; sports the config does not list pass through untouched.
2. **spread magnitude** — bucket of ``|predicted_spread|``.
3. **total bucket** — bucket of the predicted total; skipped when the game
   has no predicted total.
4. **confidence band** — bucket of the *raw* confidence.

Any disabled stage returns ``None`` ("no recommendation").  Otherwise the
result is ``clamp(0, 100, raw × product of multipliers)``.

Pure and deterministic: same inputs, same output, no side effects.
"""

from __future__ import annotations

from typing import Optional

from adaptive_edge.core.odds_math import clamp
from adaptive_edge.core.segments import ConfidenceBand, SpreadBucket, TotalBucket
from adaptive_edge.core.tuning_config import MAX_MULTIPLIER, SegmentSetting, TuningConfig


def _multiplier(setting: SegmentSetting) -> Optional[float]:
    if not setting.enabled:
        return None
    return clamp(setting.confidence_multiplier, 0.0, MAX_MULTIPLIER)


def apply_config_to_confidence(
    raw_confidence: float,
    sport: Optional[str],
    predicted_spread: float,
    predicted_total: Optional[float],
    config: TuningConfig,
) -> Optional[float]:
    """Gate and scale *raw_confidence* through *config*.

    Args:
        raw_confidence: Confidence on the 0–100 scale.
        sport: Sport identifier, or ``None``.
        predicted_spread: Model spread (sign is ignored).
        predicted_total: Model total, or ``None``.
        config: Active tuning configuration.

    Returns:
        The adjusted confidence in ``[0, 100]``, or ``None`` when any stage
        vetoes the recommendation.

    Examples::

        apply_config_to_confidence(60, "basketball_nba", 5.0, 140.0, default_config())
        → 60.0
    """
    combined = 1.0

    sport_setting = config.sports.get(sport) if sport else None
    if sport_setting is not None:
        if not sport_setting.enabled:
            return None
        if raw_confidence < sport_setting.min_confidence_threshold:
            return None
        combined *= _multiplier(sport_setting)

    stages: list[SegmentSetting] = [config.spread_magnitude[SpreadBucket.classify(predicted_spread)]]
    if predicted_total is not None:
        stages.append(config.total_bucket[TotalBucket.classify(predicted_total)])
    stages.append(config.confidence_bands[ConfidenceBand.classify(raw_confidence)])

    for setting in stages:
        mult = _multiplier(setting)
        if mult is None:
            return None
        combined *= mult

    return clamp(raw_confidence * combined, 0.0, 100.0)
