"""
ATS feedback analysis — graded historical predictions → segmentation report.

Public API:
  GradedExample.from_dict(data)                 → GradedExample
  grade_ats(example)                            → Optional[int]   (1 / -1 / 0)
  build_segmentation_report(examples)           → SegmentationReport
  compute_net_units(wins, losses)               → float           (at -110)
  suggest_adjustments(report)                   → List[AdjustmentSuggestion]
  feature_correlations(examples, threshold)     → List[FeatureCorrelation]
  format_report(report, suggestions, features)  → str

Grading convention (the model always backs its own predicted side):
  * bet on home when predicted_spread > 0, otherwise away;
  * the market line is converted to the prediction's sign convention
    (line = -market_spread);
  * cover margin = actual − line for home, line − actual for away;
  * |cover margin| < 0.5 is a push.

Examples with no market spread cannot be graded and are skipped.
"""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from adaptive_edge.core.odds_math import normalize_pct
from adaptive_edge.core.segments import (
    ConfidenceBand,
    SegmentationReport,
    SegmentResult,
    SpreadBucket,
    TotalBucket,
)

logger = logging.getLogger(__name__)

# A winning -110 bet returns 0.91 units per unit risked
_WIN_PAYOUT = 0.91
_PUSH_MARGIN = 0.5
_MIN_FEATURE_SAMPLES = 10
_DIRECTION_EPS = 0.05
# Suggestion triggers
_SUGGEST_MIN_DECIDED = 10
_SUGGEST_DISABLE_RATE = 35.0
_SUGGEST_DOWNWEIGHT_RATE = 45.0
_SUGGEST_INVESTIGATE_RATE = 40.0
_INVERTED_CONF_GAP = 5.0
_BREAK_EVEN_RATE = 52.4

_SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


# ---------------------------------------------------------------------------
# Graded example
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GradedExample:
    sport: str
    predicted_spread: float
    confidence: float                     # 0–100
    actual_margin: float                  # home − away, final score
    market_spread: Optional[float] = None  # home-favoured-negative
    predicted_total: Optional[float] = None
    features: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "GradedExample":
        """
        Build from a JSON record.  Required: sport, predicted_spread,
        confidence, actual_margin.  Confidence may be a fraction or percentage.
        """
        missing = [k for k in ("sport", "predicted_spread", "confidence", "actual_margin") if data.get(k) is None]
        if missing:
            raise ValueError(f"Graded example missing required field(s): {', '.join(missing)}")
        total = data.get("predicted_total")
        market = data.get("market_spread")
        return cls(
            sport=str(data["sport"]),
            predicted_spread=float(data["predicted_spread"]),
            confidence=normalize_pct(data["confidence"]),
            actual_margin=float(data["actual_margin"]),
            market_spread=float(market) if market is not None else None,
            predicted_total=float(total) if total is not None else None,
            features={
                k: float(v) for k, v in (data.get("features") or {}).items() if v is not None
            },
        )


def grade_ats(example: GradedExample) -> Optional[int]:
    """1 = covered, -1 = did not cover, 0 = push, None = no market line."""
    if example.market_spread is None:
        return None
    line = -example.market_spread
    if example.predicted_spread > 0:
        margin = example.actual_margin - line
    else:
        margin = line - example.actual_margin
    if abs(margin) < _PUSH_MARGIN:
        return 0
    return 1 if margin > 0 else -1


def compute_net_units(wins: int, losses: int) -> float:
    return round(wins * _WIN_PAYOUT - losses, 2)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def _segment(graded, key_fn, order: Optional[List[str]] = None) -> List[SegmentResult]:
    counts: "OrderedDict[str, List[int]]" = OrderedDict()
    for ex, cover in graded:
        key = key_fn(ex)
        if key is None:
            continue
        bucket = counts.setdefault(key, [0, 0, 0])
        bucket[{1: 0, -1: 1, 0: 2}[cover]] += 1

    keys = list(counts)
    if order is not None:
        keys.sort(key=order.index)
    else:
        keys.sort()
    return [SegmentResult.from_record(k, *counts[k]) for k in keys]


def build_segmentation_report(examples: Iterable[GradedExample]) -> SegmentationReport:
    """Segment graded examples by sport, spread magnitude, total and confidence band."""
    graded = []
    skipped = 0
    for ex in examples:
        cover = grade_ats(ex)
        if cover is None:
            skipped += 1
            continue
        graded.append((ex, cover))
    if skipped:
        logger.info("Skipped %d example(s) with no market spread", skipped)

    return SegmentationReport(
        by_sport=_segment(graded, lambda ex: ex.sport),
        by_spread_magnitude=_segment(
            graded,
            lambda ex: SpreadBucket.classify(ex.predicted_spread).label,
            [b.label for b in SpreadBucket],
        ),
        by_total_bucket=_segment(
            graded,
            lambda ex: TotalBucket.classify(ex.predicted_total).label
            if ex.predicted_total is not None else None,
            [b.label for b in TotalBucket],
        ),
        by_confidence_band=_segment(
            graded,
            lambda ex: ConfidenceBand.classify(ex.confidence).label,
            [b.label for b in ConfidenceBand],
        ),
        sample_count=len(graded),
    )


def overall_record(report: SegmentationReport) -> Dict:
    """Overall W-L-P summed across the sport axis (every graded example has a sport)."""
    wins = sum(s.wins for s in report.by_sport)
    losses = sum(s.losses for s in report.by_sport)
    pushes = sum(s.pushes for s in report.by_sport)
    decided = wins + losses
    return {
        "wins": wins,
        "losses": losses,
        "pushes": pushes,
        "win_rate": round(wins / decided * 100, 2) if decided else 0.0,
        "net_units": compute_net_units(wins, losses),
        "sample_count": report.sample_count,
    }


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

@dataclass
class AdjustmentSuggestion:
    type: str                 # disable | downweight | recalibrate | investigate
    target: str
    reason: str
    severity: str             # high | medium | low
    suggested_action: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "target": self.target,
            "reason": self.reason,
            "severity": self.severity,
            "suggested_action": self.suggested_action,
        }


def suggest_adjustments(report: SegmentationReport) -> List[AdjustmentSuggestion]:
    """
    Flag segments an operator should look at, high severity first.

      sport < 35% (n ≥ 10)         → disable      (high)
      sport < 45% (n ≥ 10)         → downweight   (medium)
      high band < medium band − 5  → recalibrate  (high)
      spread / total bucket < 40%  → investigate  (medium)
    """
    out: List[AdjustmentSuggestion] = []

    for s in report.by_sport:
        if s.decided < _SUGGEST_MIN_DECIDED:
            continue
        if s.win_rate < _SUGGEST_DISABLE_RATE:
            out.append(AdjustmentSuggestion(
                type="disable",
                target=f"sport:{s.value}",
                reason=f"{s.value} ATS is {s.win_rate:.1f}% ({s.wins}-{s.losses}), well below break-even",
                severity="high",
                suggested_action=f"Disable spread recommendations for {s.value} until recalibrated",
            ))
        elif s.win_rate < _SUGGEST_DOWNWEIGHT_RATE:
            out.append(AdjustmentSuggestion(
                type="downweight",
                target=f"sport:{s.value}",
                reason=f"{s.value} ATS is {s.win_rate:.1f}%, below profitable threshold",
                severity="medium",
                suggested_action=f"Reduce confidence for {s.value} predictions",
            ))

    bands = {ConfidenceBand.from_label(s.value): s for s in report.by_confidence_band}
    high, medium = bands.get(ConfidenceBand.HIGH), bands.get(ConfidenceBand.MEDIUM)
    if (
        high is not None and medium is not None
        and high.decided >= _SUGGEST_MIN_DECIDED
        and medium.decided >= _SUGGEST_MIN_DECIDED
        and high.win_rate < medium.win_rate - _INVERTED_CONF_GAP
    ):
        out.append(AdjustmentSuggestion(
            type="recalibrate",
            target="confidence",
            reason=(
                f"High confidence ({high.win_rate:.1f}%) underperforms "
                f"medium ({medium.win_rate:.1f}%)"
            ),
            severity="high",
            suggested_action="Recalibrate confidence scoring; it is inversely related to ATS success",
        ))

    for axis_name, segments in (
        ("spread_magnitude", report.by_spread_magnitude),
        ("total_bucket", report.by_total_bucket),
    ):
        for s in segments:
            if s.decided >= _SUGGEST_MIN_DECIDED and s.win_rate < _SUGGEST_INVESTIGATE_RATE:
                out.append(AdjustmentSuggestion(
                    type="investigate",
                    target=f"{axis_name}:{s.value}",
                    reason=f"{s.value} games have {s.win_rate:.1f}% ATS",
                    severity="medium",
                    suggested_action="Consider adjusting predictions in this range or reducing confidence",
                ))

    out.sort(key=lambda a: _SEVERITY_ORDER[a.severity])
    return out


# ---------------------------------------------------------------------------
# Feature correlation
# ---------------------------------------------------------------------------

@dataclass
class FeatureCorrelation:
    feature: str
    sample_count: int
    win_rate_above_median: float
    win_rate_below_median: float
    correlation: Optional[float]
    significant: bool = False

    @property
    def delta(self) -> float:
        return self.win_rate_above_median - self.win_rate_below_median

    @property
    def direction(self) -> str:
        if self.correlation is None:
            return "neutral"
        if self.correlation > _DIRECTION_EPS:
            return "positive"
        if self.correlation < -_DIRECTION_EPS:
            return "negative"
        return "neutral"

    def to_dict(self) -> dict:
        return {
            "feature": self.feature,
            "sample_count": self.sample_count,
            "win_rate_above_median": round(self.win_rate_above_median, 2),
            "win_rate_below_median": round(self.win_rate_below_median, 2),
            "delta": round(self.delta, 2),
            "correlation": round(self.correlation, 4) if self.correlation is not None else None,
            "direction": self.direction,
            "significant": self.significant,
        }


def _decided_win_rate(covers: np.ndarray) -> float:
    decided = covers[covers != 0]
    if decided.size == 0:
        return 0.0
    return float((decided == 1).sum() / decided.size * 100)


def feature_correlations(
    examples: Iterable[GradedExample],
    significance_threshold: float = 0.1,
) -> List[FeatureCorrelation]:
    """
    Median-split win rates and Pearson correlation of each feature with the
    cover outcome (1 / -1 / 0).  Features with fewer than 10 graded values
    are omitted.  Sorted by |correlation|, strongest first.
    """
    by_feature: Dict[str, List[tuple]] = {}
    for ex in examples:
        cover = grade_ats(ex)
        if cover is None:
            continue
        for name, value in ex.features.items():
            if math.isfinite(value):
                by_feature.setdefault(name, []).append((value, cover))

    results: List[FeatureCorrelation] = []
    for name, pairs in by_feature.items():
        if len(pairs) < _MIN_FEATURE_SAMPLES:
            continue
        values = np.array([p[0] for p in pairs], dtype=float)
        covers = np.array([p[1] for p in pairs], dtype=float)

        median = np.sort(values)[len(values) // 2]
        above = _decided_win_rate(covers[values >= median])
        below = _decided_win_rate(covers[values < median])

        corr: Optional[float] = None
        if values.std() > 1e-10 and covers.std() > 1e-10:
            corr = float(np.corrcoef(values, covers)[0, 1])

        results.append(FeatureCorrelation(
            feature=name,
            sample_count=len(pairs),
            win_rate_above_median=above,
            win_rate_below_median=below,
            correlation=corr,
            significant=corr is not None and abs(corr) >= significance_threshold,
        ))

    results.sort(key=lambda f: abs(f.correlation) if f.correlation is not None else -1.0, reverse=True)
    return results


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------

def _units(value: float) -> str:
    return f"{value:+.2f}u"


def format_report(
    report: SegmentationReport,
    suggestions: Optional[List[AdjustmentSuggestion]] = None,
    features: Optional[List[FeatureCorrelation]] = None,
) -> str:
    overall = overall_record(report)
    rule = "=" * 64
    lines = [
        rule,
        "ATS FEEDBACK REPORT".center(64),
        rule,
        "",
        (
            f"Overall: {overall['wins']}-{overall['losses']}-{overall['pushes']} "
            f"({overall['win_rate']:.1f}%) | Net: {_units(overall['net_units'])} "
            f"| n={overall['sample_count']}"
        ),
        "",
    ]

    if suggestions:
        lines.append("SUGGESTED ADJUSTMENTS")
        lines.append("-" * 64)
        for s in suggestions:
            lines.append(f"[{s.severity.upper()}] [{s.type.upper()}] {s.target}")
            lines.append(f"   Reason: {s.reason}")
            if s.suggested_action:
                lines.append(f"   Action: {s.suggested_action}")
        lines.append("")

    if features:
        lines.append("-- Feature correlation with cover --")
        arrows = {"positive": "+", "negative": "-", "neutral": "."}
        for f in features[:15]:
            corr = f"{f.correlation:.3f}" if f.correlation is not None else "  n/a"
            star = " *" if f.significant else ""
            lines.append(f"  {f.feature:<24} {corr} {arrows[f.direction]}  (n={f.sample_count}){star}")
        lines.append("")

    for title, segments in (
        ("By Sport", report.by_sport),
        ("By Spread Magnitude", report.by_spread_magnitude),
        ("By Total Bucket", report.by_total_bucket),
        ("By Confidence Band", report.by_confidence_band),
    ):
        lines.append(f"-- {title} --")
        for s in segments:
            flag = ""
            if s.decided >= _SUGGEST_MIN_DECIDED:
                if s.win_rate < _SUGGEST_INVESTIGATE_RATE:
                    flag = "  !"
                elif s.win_rate >= _BREAK_EVEN_RATE:
                    flag = "  ok"
            lines.append(
                f"  {s.value:<24} {s.wins}-{s.losses}-{s.pushes}  {s.win_rate:5.1f}%  "
                f"{_units(compute_net_units(s.wins, s.losses)):>8}{flag}"
            )
        lines.append("")

    return "\n".join(lines)
