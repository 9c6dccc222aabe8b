"""
Recommendation generation — prediction + market snapshot → tiered legs.

Public API:
  generate_recommendations(prediction, odds, config=None) → List[Recommendation]
  compute_tier(edge, confidence)                           → Tier

Two modes:
  * edge-based  — a market price exists for the leg; the leg is emitted only
                  when the model's edge clears the sport's minimum.
  * model-only  — no price for the leg; emitted with is_model_only=True and
                  no edge figure.

Gate misses are not errors; they just produce fewer legs.  A price that is
present but unusable (decimal ≤ 1.0) drops that one leg.

When a TuningConfig is passed, each candidate leg's confidence is run through
apply_config_to_confidence before tiering; a vetoed leg is dropped.  Edge-based
spread and moneyline confidences stay integers; every other leg keeps the
adjusted value as-is, so the neutral config changes nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from adaptive_edge.core.confidence import apply_config_to_confidence
from adaptive_edge.core.odds_math import (
    implied_prob_decimal,
    normalize_pct,
    round_half_up,
    spread_cover_probability,
    spread_edge_pct,
)
from adaptive_edge.core.prediction import OddsSnapshot, PredictionInput
from adaptive_edge.core.thresholds import get_thresholds
from adaptive_edge.core.tuning_config import TuningConfig

logger = logging.getLogger(__name__)

# Spread-leg confidence: 0.6·conf + min(2·edge, 40)
_SPREAD_CONF_WEIGHT = 0.6
_SPREAD_EDGE_BONUS_CAP = 40.0
# Moneyline-leg confidence: 0.7·winProb + min(edge, 30)
_ML_CONF_WEIGHT = 0.7
_ML_EDGE_BONUS_CAP = 30.0

_TIER_HIGH = 90.0
_TIER_MEDIUM = 65.0


class RecommendationType(str, Enum):
    SPREAD = "spread"
    MONEYLINE = "moneyline"
    TOTAL_OVER = "total_over"
    TOTAL_UNDER = "total_under"
    TOTAL_PREDICTION = "total_prediction"


class Tier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Recommendation dataclass
# ---------------------------------------------------------------------------

@dataclass
class Recommendation:
    type: RecommendationType
    side: str                 # home | away | over | under | prediction
    line: Optional[float]
    confidence: float
    reasoning: str
    edge: Optional[float] = None
    is_model_only: bool = False
    tier: Tier = Tier.LOW

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "side": self.side,
            "line": self.line,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "edge": round(self.edge, 2) if self.edge is not None else None,
            "is_model_only": self.is_model_only,
            "tier": self.tier.value,
        }


def _has_scored_confidence(rec: Recommendation) -> bool:
    # Edge-based spread and moneyline legs carry a rounded, formula-built confidence
    return rec.edge is not None and rec.type in (
        RecommendationType.SPREAD, RecommendationType.MONEYLINE,
    )


def compute_tier(edge: Optional[float], confidence: float) -> Tier:
    """high if edge×5 + confidence×0.3 ≥ 90, medium if ≥ 65, else low."""
    score = (edge or 0.0) * 5 + confidence * 0.3
    if score >= _TIER_HIGH:
        return Tier.HIGH
    if score >= _TIER_MEDIUM:
        return Tier.MEDIUM
    return Tier.LOW


# ---------------------------------------------------------------------------
# Legs
# ---------------------------------------------------------------------------

def _spread_leg(
    prediction: PredictionInput,
    odds: Optional[OddsSnapshot],
    confidence: float,
    min_edge: float,
) -> Optional[Recommendation]:
    side = prediction.predicted_winner
    team = prediction.home_team if side == "home" else prediction.away_team
    margin = abs(prediction.predicted_home_score - prediction.predicted_away_score)

    if odds is None or odds.spread is None:
        return Recommendation(
            type=RecommendationType.SPREAD,
            side=side,
            line=prediction.predicted_spread,
            confidence=confidence,
            reasoning=f"{team} predicted to win by {margin:.1f} points",
            is_model_only=True,
        )

    is_home = side == "home"
    cover_prob = spread_cover_probability(prediction.predicted_spread, odds.spread, is_home)
    edge = spread_edge_pct(cover_prob)
    if edge < min_edge:
        logger.debug("Spread leg below min edge: %.2f < %.2f", edge, min_edge)
        return None

    leg_conf = round_half_up(
        _SPREAD_CONF_WEIGHT * confidence + min(2 * edge, _SPREAD_EDGE_BONUS_CAP)
    )
    return Recommendation(
        type=RecommendationType.SPREAD,
        side=side,
        line=prediction.predicted_spread,
        confidence=leg_conf,
        reasoning=(
            f"{team} predicted to win by {margin:.1f} points. "
            f"~{edge:.1f}% edge vs market ({side} spread)."
        ),
        edge=edge,
    )


def _moneyline_leg(
    prediction: PredictionInput,
    odds: Optional[OddsSnapshot],
    home_prob: float,
    away_prob: float,
    min_edge: float,
) -> Optional[Recommendation]:
    side = "home" if home_prob > away_prob else "away"
    team = prediction.home_team if side == "home" else prediction.away_team
    win_prob = max(home_prob, away_prob)

    price = odds.moneyline_for(side) if odds is not None else None
    if price is None:
        return Recommendation(
            type=RecommendationType.MONEYLINE,
            side=side,
            line=None,
            confidence=win_prob,
            reasoning=f"Strong {win_prob:.0f}% win probability for {team}",
            is_model_only=True,
        )

    try:
        implied = implied_prob_decimal(price)
    except ValueError:
        logger.debug("Skipping moneyline leg: unusable %s price %r", side, price)
        return None

    edge = (win_prob / 100.0 - implied) * 100.0
    if edge < min_edge:
        logger.debug("Moneyline leg below min edge: %.2f < %.2f", edge, min_edge)
        return None

    leg_conf = round_half_up(_ML_CONF_WEIGHT * win_prob + min(edge, _ML_EDGE_BONUS_CAP))
    return Recommendation(
        type=RecommendationType.MONEYLINE,
        side=side,
        line=None,
        confidence=leg_conf,
        reasoning=f"Strong {win_prob:.0f}% win probability for {team}. ~{edge:.1f}% edge vs market.",
        edge=edge,
    )


def _total_leg(
    prediction: PredictionInput,
    odds: Optional[OddsSnapshot],
    confidence: float,
    min_total_diff: float,
) -> Optional[Recommendation]:
    predicted = prediction.predicted_total
    market = odds.total if odds is not None else None

    if market is None:
        return Recommendation(
            type=RecommendationType.TOTAL_PREDICTION,
            side="prediction",
            line=predicted,
            confidence=confidence,
            reasoning=f"Predicted total {predicted:.0f}; compare to your sportsbook's line",
            is_model_only=True,
        )

    diff = predicted - market
    edge = abs(diff)
    if edge < min_total_diff:
        return None

    is_over = diff > 0
    return Recommendation(
        type=RecommendationType.TOTAL_OVER if is_over else RecommendationType.TOTAL_UNDER,
        side="over" if is_over else "under",
        line=market,
        confidence=confidence,
        reasoning=f"Predicted total {predicted:.0f} vs market {market:g} ({diff:+.1f})",
        edge=edge,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def generate_recommendations(
    prediction: PredictionInput,
    odds: Optional[OddsSnapshot] = None,
    *,
    config: Optional[TuningConfig] = None,
) -> List[Recommendation]:
    """
    Produce 0–3 recommendations (spread, moneyline, total) for one game.

    The prediction should already be bias-corrected (see core.prediction.apply_bias).
    Passing odds=None puts every leg into model-only mode.
    """
    thresholds = get_thresholds(prediction.sport)

    home_prob = normalize_pct(prediction.home_win_prob)
    away_prob = normalize_pct(prediction.away_win_prob)
    confidence = normalize_pct(prediction.confidence)

    candidates: List[Optional[Recommendation]] = []
    if confidence >= thresholds.min_confidence:
        candidates.append(_spread_leg(prediction, odds, confidence, thresholds.min_edge))
    if max(home_prob, away_prob) >= thresholds.min_win_prob:
        candidates.append(
            _moneyline_leg(prediction, odds, home_prob, away_prob, thresholds.min_edge)
        )
    if prediction.predicted_total is not None and confidence >= thresholds.min_confidence:
        candidates.append(_total_leg(prediction, odds, confidence, thresholds.min_total_diff))

    recs: List[Recommendation] = []
    for rec in candidates:
        if rec is None:
            continue
        if config is not None:
            adjusted = apply_config_to_confidence(
                rec.confidence,
                prediction.sport,
                prediction.predicted_spread,
                prediction.predicted_total,
                config,
            )
            if adjusted is None:
                logger.debug(
                    "Tuning config v%d vetoed %s leg for %s @ %s",
                    config.version, rec.type.value, prediction.away_team, prediction.home_team,
                )
                continue
            rec.confidence = round_half_up(adjusted) if _has_scored_confidence(rec) else adjusted
        rec.tier = compute_tier(rec.edge, rec.confidence)
        recs.append(rec)

    return recs
