"""Prediction, bias-correction and odds-snapshot value types.

These are the inputs to :func:`adaptive_edge.services.recommendations.generate_recommendations`.
All three are frozen dataclasses created fresh per evaluation and owned by
the caller.  :class:`PredictionInput` validates its fields on construction so
malformed predictions fail fast instead of silently producing fewer legs.

Probability and confidence fields accept either a fraction in ``[0, 1]`` or
a percentage in ``[0, 100]``.  They are stored exactly as given; conversion
happens once, in :func:`~adaptive_edge.core.odds_math.normalize_pct`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional


class PredictionValidationError(ValueError):
    """Raised when a prediction is missing a field or carries a bad value."""


def _require_number(name: str, value: object) -> float:
    # bool is an int subclass; True would otherwise pass as 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PredictionValidationError(
            f"{name} must be a number, got {type(value).__name__} ({value!r})"
        )
    if not math.isfinite(value):
        raise PredictionValidationError(f"{name} must be finite, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class PredictionInput:
    """An already-computed model prediction for one game.

    Attributes:
        predicted_home_score: Model's expected home points.
        predicted_away_score: Model's expected away points.
        predicted_spread: Home-favoured-positive spread (``+5`` = home by 5).
        home_win_prob: Home win probability, fraction or percentage.
        away_win_prob: Away win probability, fraction or percentage.
        confidence: Overall model confidence, fraction or percentage.
        home_team: Home team display name.
        away_team: Away team display name.
        predicted_total: Expected combined points, or ``None``.
        sport: Sport identifier (e.g. ``"basketball_nba"``), or ``None``.
    """

    predicted_home_score: float
    predicted_away_score: float
    predicted_spread: float
    home_win_prob: float
    away_win_prob: float
    confidence: float
    home_team: str
    away_team: str
    predicted_total: Optional[float] = None
    sport: Optional[str] = None

    def __post_init__(self) -> None:
        for name in (
            "predicted_home_score",
            "predicted_away_score",
            "predicted_spread",
            "home_win_prob",
            "away_win_prob",
            "confidence",
        ):
            _require_number(name, getattr(self, name))
        if self.predicted_total is not None:
            _require_number("predicted_total", self.predicted_total)

        for name in ("home_win_prob", "away_win_prob", "confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise PredictionValidationError(
                    f"{name} must be a fraction in [0, 1] or a percentage in "
                    f"[0, 100], got {value!r}"
                )

        for name in ("home_team", "away_team"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise PredictionValidationError(f"{name} must be a non-empty string")

        if self.sport is not None and not isinstance(self.sport, str):
            raise PredictionValidationError(
                f"sport must be a string or None, got {type(self.sport).__name__}"
            )

    @property
    def predicted_winner(self) -> str:
        """``"home"`` when the home score is strictly higher, else ``"away"``."""
        return "home" if self.predicted_home_score > self.predicted_away_score else "away"


@dataclass(frozen=True)
class BiasCorrection:
    """Systematic scoring errors measured on validated historical predictions.

    A positive offset means the model over-predicts that quantity by that
    many points, so it is subtracted.
    """

    home_team_bias: Optional[float] = None
    away_team_bias: Optional[float] = None
    score_bias: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return all(
            not b for b in (self.home_team_bias, self.away_team_bias, self.score_bias)
        )


@dataclass(frozen=True)
class OddsSnapshot:
    """Market prices observed for one game.

    Attributes:
        spread: Home-favoured-negative market spread (``-3`` = home lays 3).
        total: Market over/under line.
        moneyline_home: Decimal moneyline price for the home side.
        moneyline_away: Decimal moneyline price for the away side.
    """

    spread: Optional[float] = None
    total: Optional[float] = None
    moneyline_home: Optional[float] = None
    moneyline_away: Optional[float] = None

    def moneyline_for(self, side: str) -> Optional[float]:
        return self.moneyline_home if side == "home" else self.moneyline_away


def apply_bias(
    prediction: PredictionInput,
    correction: Optional[BiasCorrection],
) -> PredictionInput:
    """Return *prediction* with measured scoring bias removed.

    Subtracts the per-team offsets from the predicted scores, recomputes the
    spread as adjusted home minus adjusted away, and subtracts the score
    offset from the predicted total when a total exists.  The input object is
    returned unchanged when there is nothing to correct.

    Examples::

        p = PredictionInput(80, 70, 10, 0.8, 0.2, 0.7, "A", "B", 150)
        apply_bias(p, BiasCorrection(home_team_bias=2, score_bias=3))
        # → home 78, away 70, spread 8, total 147
    """
    if correction is None or correction.is_empty:
        return prediction

    home = prediction.predicted_home_score - (correction.home_team_bias or 0.0)
    away = prediction.predicted_away_score - (correction.away_team_bias or 0.0)
    total = prediction.predicted_total
    if total is not None:
        total = total - (correction.score_bias or 0.0)

    return replace(
        prediction,
        predicted_home_score=home,
        predicted_away_score=away,
        predicted_spread=home - away,
        predicted_total=total,
    )
