"""Per-sport recommendation thresholds — one table, one lookup.

Every gate the recommendation generator applies (minimum edge, minimum
confidence, minimum win probability, minimum total-point difference) differs
between sports.  This module is the **registry** for those constants;
nowhere else in the codebase should they be hard-coded.

Architecture
------------
:class:`SportThresholds` is a frozen dataclass carrying the four gates.
:data:`THRESHOLD_TABLE` maps sport identifiers to pre-populated instances and
:func:`get_thresholds` falls back to :data:`DEFAULT_THRESHOLDS` for any sport
it does not recognise (including ``None``).

Typical usage::

    from adaptive_edge.core.thresholds import get_thresholds

    t = get_thresholds("basketball_nba")
    if edge_pct >= t.min_edge:
        ...

    # Tighten a single gate for an experiment:
    from dataclasses import replace
    strict = replace(t, min_edge=4.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping, Optional


#: Sport identifier strings used in API payloads and stored configs.
SPORT_ID_NCAAB: Final[str] = "basketball_ncaab"
SPORT_ID_NBA: Final[str] = "basketball_nba"
SPORT_ID_NHL: Final[str] = "icehockey_nhl"
SPORT_ID_MLB: Final[str] = "baseball_mlb"

#: Sports that ship with their own threshold entry and tuning settings.
KNOWN_SPORTS: Final[tuple[str, ...]] = (
    SPORT_ID_NCAAB,
    SPORT_ID_NBA,
    SPORT_ID_NHL,
    SPORT_ID_MLB,
)


@dataclass(frozen=True)
class SportThresholds:
    """Immutable gate bundle for a single sport.

    Attributes:
        min_edge: Minimum edge, in percentage points, a spread or moneyline
            leg must clear before it is emitted.
        min_confidence: Minimum overall model confidence (0–100) for the
            spread and total legs to be considered at all.
        min_win_prob: Minimum favoured-side win probability (0–100) for the
            moneyline leg to be considered.
        min_total_diff: Minimum absolute gap in points between predicted and
            market totals for an over/under leg.
    """

    min_edge: float
    min_confidence: float
    min_win_prob: float
    min_total_diff: float

    def __post_init__(self) -> None:
        for name in ("min_edge", "min_confidence", "min_win_prob", "min_total_diff"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)!r}")

    def __repr__(self) -> str:
        return (
            f"SportThresholds(edge≥{self.min_edge}, conf≥{self.min_confidence}, "
            f"win≥{self.min_win_prob}, total≥{self.min_total_diff})"
        )


#: Used for unrecognised sports; matches the college-basketball entry.
DEFAULT_THRESHOLDS: Final[SportThresholds] = SportThresholds(
    min_edge=2.0, min_confidence=55.0, min_win_prob=65.0, min_total_diff=2.0
)

THRESHOLD_TABLE: Final[Mapping[str, SportThresholds]] = {
    SPORT_ID_NCAAB: SportThresholds(
        min_edge=2.0, min_confidence=55.0, min_win_prob=65.0, min_total_diff=2.0
    ),
    SPORT_ID_NBA: SportThresholds(
        min_edge=2.5, min_confidence=55.0, min_win_prob=65.0, min_total_diff=2.5
    ),
    # Hockey totals are low-scoring; a goal and a half is a real gap.
    SPORT_ID_NHL: SportThresholds(
        min_edge=2.5, min_confidence=52.0, min_win_prob=62.0, min_total_diff=1.5
    ),
    SPORT_ID_MLB: SportThresholds(
        min_edge=3.0, min_confidence=55.0, min_win_prob=60.0, min_total_diff=1.5
    ),
}


def get_thresholds(sport: Optional[str]) -> SportThresholds:
    """Return the gates for *sport*, or :data:`DEFAULT_THRESHOLDS`."""
    if not sport:
        return DEFAULT_THRESHOLDS
    return THRESHOLD_TABLE.get(sport, DEFAULT_THRESHOLDS)
