"""Odds and probability mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The pillars exposed are:

1. **Normalization** — the one place the fraction-vs-percentage dual
   convention for probabilities and confidence is resolved.
2. **Odds conversion** — decimal → American → juice-aware implied probability.
3. **Spread cover** — logistic (tanh) approximation of the probability that
   the predicted side covers a market spread.

Sign conventions
----------------
* Predicted spreads are **home-favoured-positive**: ``+5`` means the model
  has the home team winning by five.
* Market spreads are **home-favoured-negative**: ``-3`` means the book has
  the home team laying three.  The two are inverses of each other, which is
  why :func:`spread_cover_probability` negates the market figure.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Implied probability of a standard -110 spread bet (110 / 210 ≈ 52.38%).
#: Both sides of a spread are assumed to carry the same juice.
SPREAD_IMPLIED_PROB: Final[float] = 110.0 / 210.0

#: Points of margin surplus that move ``tanh`` by one unit.
SPREAD_COVER_SCALE: Final[float] = 10.0

#: Cover probabilities are never reported outside this band; a single-game
#: margin estimate is not precise enough to justify more certainty.
COVER_PROB_FLOOR: Final[float] = 0.1
COVER_PROB_CEIL: Final[float] = 0.9


# ---------------------------------------------------------------------------
# Normalization and rounding
# ---------------------------------------------------------------------------


def normalize_pct(value: float) -> float:
    """Put a probability or confidence value on the 0–100 scale.

    Values ``≤ 1`` are treated as fractions and multiplied by 100; anything
    larger is assumed to be a percentage already.  Call this exactly once at
    the boundary so that no value is ever double-scaled.

    Examples::

        normalize_pct(0.65) → 65.0
        normalize_pct(65)   → 65.0
        normalize_pct(1)    → 100.0
    """
    value = float(value)
    return value * 100.0 if value <= 1.0 else value


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded away from zero.

    The builtin :func:`round` uses banker's rounding (``round(72.5) == 72``),
    which would make leg confidences depend on the parity of the integer
    part.
    """
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Args:
        decimal_odds: Decimal (European) odds, strictly greater than 1.0.

    Returns:
        American odds integer.  Values ≥ 2.0 are returned as positive
        (underdog); values < 2.0 are returned as negative (favourite).

    Raises:
        ValueError: If ``decimal_odds ≤ 1.0`` (no payout, or negative).
    """
    if not decimal_odds > 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 to carry a payout."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    # Favourite: decimal < 2.0 → negative American
    return round(-100.0 / (decimal_odds - 1.0))


def implied_prob_american(american: int | float) -> float:
    """Juice-aware implied probability from American odds.

    Examples::

        implied_prob_american(-110) → 0.5238
        implied_prob_american(+150) → 0.4000
    """
    if american > 0:
        return 100.0 / (american + 100.0)
    return abs(american) / (abs(american) + 100.0)


def implied_prob_decimal(decimal_odds: float) -> float:
    """Implied probability of a decimal price via its American equivalent.

    Raises:
        ValueError: If the price is not a valid decimal price (≤ 1.0).
    """
    return implied_prob_american(decimal_to_american(decimal_odds))


# ---------------------------------------------------------------------------
# Spread cover
# ---------------------------------------------------------------------------


def spread_cover_probability(
    predicted_spread: float,
    market_spread: float,
    is_home: bool,
) -> float:
    """Probability that the recommended side covers the market spread.

    ``margin_needed = -market_spread`` converts the book's line into the
    prediction's home-favoured-positive convention.  The predicted margin is
    sign-flipped when the away side is being evaluated.

    Args:
        predicted_spread: Model spread, home-favoured-positive.
        market_spread: Book spread, home-favoured-negative.
        is_home: ``True`` when evaluating the home side.

    Returns:
        ``clamp(0.1, 0.9, 0.5 + 0.5·tanh((predicted − needed) / 10))``.

    Examples::

        spread_cover_probability(5, -3, True) → 0.5987
    """
    margin_needed = -market_spread
    predicted_margin = predicted_spread if is_home else -predicted_spread
    z = (predicted_margin - margin_needed) / SPREAD_COVER_SCALE
    return clamp(0.5 + 0.5 * math.tanh(z), COVER_PROB_FLOOR, COVER_PROB_CEIL)


def spread_edge_pct(cover_probability: float) -> float:
    """Edge in percentage points over a standard -110 spread price."""
    return (cover_probability - SPREAD_IMPLIED_PROB) * 100.0
