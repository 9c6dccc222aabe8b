"""
Performance gate — is the historical ATS record good enough to go public?

Public API:
  check_performance_gate(ats_win_rate, games_decided, threshold) → PerformanceGateResult
  ats_record(outcomes)                                            → Dict

Pure functions; nothing here touches the database.  Callers grade their own
bets (1 = cover, -1 = no cover, 0 = push) and pass the outcomes in.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable

logger = logging.getLogger(__name__)

#: Minimum ATS win rate (%, pushes excluded) to expose recommendations publicly.
ATS_PERFORMANCE_GATE = float(os.getenv("ATS_PERFORMANCE_GATE", "53"))
#: Decided (non-push) games required before the win rate is trusted.
MIN_GAMES_FOR_GATE = int(os.getenv("MIN_GAMES_FOR_PERFORMANCE_GATE", "30"))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _win_rate_pct(wins: int, total: int) -> float:
    return round(wins / total * 100, 2) if total > 0 else 0.0


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PerformanceGateResult:
    passed: bool
    ats_win_rate: float
    games_decided: int
    threshold: float

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "ats_win_rate": self.ats_win_rate,
            "games_decided": self.games_decided,
            "threshold": self.threshold,
        }


def check_performance_gate(
    ats_win_rate: float,
    games_decided: int,
    threshold: float = ATS_PERFORMANCE_GATE,
) -> PerformanceGateResult:
    """
    Pass when games_decided ≥ 30 AND ats_win_rate ≥ threshold.

    Both bounds are inclusive.  The inputs are echoed back for display.
    """
    passed = games_decided >= MIN_GAMES_FOR_GATE and ats_win_rate >= threshold
    return PerformanceGateResult(
        passed=passed,
        ats_win_rate=ats_win_rate,
        games_decided=games_decided,
        threshold=threshold,
    )


def ats_record(outcomes: Iterable[int]) -> Dict:
    """
    Summarise graded ATS outcomes.

    Returns:
        {"wins", "losses", "pushes", "decided", "ats_win_rate"} where
        ats_win_rate is a percentage of decided games.
    """
    wins = losses = pushes = 0
    for outcome in outcomes:
        if outcome == 1:
            wins += 1
        elif outcome == -1:
            losses += 1
        elif outcome == 0:
            pushes += 1
        else:
            raise ValueError(f"ATS outcome must be 1, -1 or 0, got {outcome!r}")
    decided = wins + losses
    return {
        "wins": wins,
        "losses": losses,
        "pushes": pushes,
        "decided": decided,
        "ats_win_rate": _win_rate_pct(wins, decided),
    }
