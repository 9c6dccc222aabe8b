"""Segmentation axes for historical-accuracy tracking.

Graded predictions are bucketed along four axes: sport, spread magnitude,
predicted total, and confidence band.  The three numeric axes are closed
enums so that every stage of the tuning pipeline handles every bucket
exhaustively; sport is keyed by its identifier string.

Each enum member's value is the key used in stored tuning configs, and its
:attr:`label` is the string that appears in segmentation reports::

    SpreadBucket.classify(5.5)          → SpreadBucket.MEDIUM
    SpreadBucket.MEDIUM.label           → "medium(3-7)"
    SpreadBucket.from_label("medium(3-7)") → SpreadBucket.MEDIUM

Bucket boundaries are lower-inclusive: a 3-point spread is ``medium``, a
130-point total is ``medium``, a confidence of exactly 70 is ``high``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Type, TypeVar

_E = TypeVar("_E", bound="_SegmentAxis")


class _SegmentAxis(str, Enum):
    """Shared behaviour for the numeric segmentation axes."""

    @property
    def label(self) -> str:
        return self._labels()[self.value]

    @classmethod
    def _labels(cls) -> dict[str, str]:
        raise NotImplementedError

    @classmethod
    def from_label(cls: Type[_E], label: str) -> Optional[_E]:
        """Resolve a report label (or a bare config key) to a member."""
        for member in cls:
            if label == member.label or label == member.value:
                return member
        return None


class SpreadBucket(_SegmentAxis):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    VERY_LARGE = "very_large"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {
            "small": "small(<3)",
            "medium": "medium(3-7)",
            "large": "large(7-12)",
            "very_large": "very_large(>=12)",
        }

    @classmethod
    def classify(cls, spread: float) -> "SpreadBucket":
        """Bucket the absolute value of *spread*."""
        magnitude = abs(spread)
        if magnitude < 3:
            return cls.SMALL
        if magnitude < 7:
            return cls.MEDIUM
        if magnitude < 12:
            return cls.LARGE
        return cls.VERY_LARGE


class TotalBucket(_SegmentAxis):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {
            "low": "low(<130)",
            "medium": "medium(130-145)",
            "high": "high(145-160)",
            "very_high": "very_high(>=160)",
        }

    @classmethod
    def classify(cls, total: float) -> "TotalBucket":
        if total < 130:
            return cls.LOW
        if total < 145:
            return cls.MEDIUM
        if total < 160:
            return cls.HIGH
        return cls.VERY_HIGH


class ConfidenceBand(_SegmentAxis):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {
            "low": "low(<50)",
            "medium": "medium(50-70)",
            "high": "high(>=70)",
        }

    @classmethod
    def classify(cls, confidence: float) -> "ConfidenceBand":
        """Bucket a 0–100 confidence value."""
        if confidence < 50:
            return cls.LOW
        if confidence < 70:
            return cls.MEDIUM
        return cls.HIGH


# ---------------------------------------------------------------------------
# Report types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentResult:
    """ATS record for one segment value.

    ``win_rate`` is a percentage of decided games; pushes are excluded from
    the denominator.
    """

    value: str
    wins: int
    losses: int
    win_rate: float
    pushes: int = 0

    @property
    def decided(self) -> int:
        return self.wins + self.losses

    @property
    def sample_count(self) -> int:
        return self.wins + self.losses + self.pushes

    @classmethod
    def from_record(cls, value: str, wins: int, losses: int, pushes: int = 0) -> "SegmentResult":
        decided = wins + losses
        win_rate = round(wins / decided * 100, 2) if decided else 0.0
        return cls(value=value, wins=wins, losses=losses, win_rate=win_rate, pushes=pushes)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "win_rate": self.win_rate,
            "decided": self.decided,
        }


@dataclass(frozen=True)
class SegmentationReport:
    """Segmented historical accuracy across all four axes."""

    by_sport: list[SegmentResult] = field(default_factory=list)
    by_spread_magnitude: list[SegmentResult] = field(default_factory=list)
    by_total_bucket: list[SegmentResult] = field(default_factory=list)
    by_confidence_band: list[SegmentResult] = field(default_factory=list)
    sample_count: int = 0

    def to_dict(self) -> dict:
        return {
            "by_sport": [s.to_dict() for s in self.by_sport],
            "by_spread_magnitude": [s.to_dict() for s in self.by_spread_magnitude],
            "by_total_bucket": [s.to_dict() for s in self.by_total_bucket],
            "by_confidence_band": [s.to_dict() for s in self.by_confidence_band],
            "sample_count": self.sample_count,
        }
