"""
A-B experiments — sticky variant assignment, outcome logging, significance.

Public API:
  SqlExperimentAssigner(db).assign(caller_id, test_name) → "control" | "treatment"
  variant_for(caller_id, test_name)                      → str   (pure, no DB)
  record_ab_test_outcome(db, test_name, caller_id, variant, ...) → None
  get_ab_test_results(db, test_name)                     → Dict
  calculate_significance(cw, cl, tw, tl)                 → Dict

Assignment is deterministic: sha256(caller_id + test_name) even → control,
odd → treatment.  The first assignment is persisted and reused afterwards,
so changing the hashing rule never moves an existing caller.
"""

import hashlib
import logging
from typing import Dict, Optional

from scipy.stats import chi2
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adaptive_edge.core.tuning_config import VARIANT_CONTROL, VARIANT_TREATMENT
from adaptive_edge.models import ABTestAssignment, ABTestResult
from adaptive_edge.services.config_manager import ExperimentAssigner

logger = logging.getLogger(__name__)

_SIGNIFICANCE_ALPHA = 0.05
_VARIANTS = (VARIANT_CONTROL, VARIANT_TREATMENT)


def variant_for(caller_id: str, test_name: str) -> str:
    digest = hashlib.sha256(f"{caller_id}{test_name}".encode("utf-8")).digest()
    return VARIANT_CONTROL if digest[-1] % 2 == 0 else VARIANT_TREATMENT


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

class SqlExperimentAssigner(ExperimentAssigner):
    def __init__(self, db: Session):
        self.db = db

    def _existing(self, caller_id: str, test_name: str) -> Optional[ABTestAssignment]:
        return (
            self.db.query(ABTestAssignment)
            .filter(
                ABTestAssignment.caller_id == caller_id,
                ABTestAssignment.test_name == test_name,
            )
            .first()
        )

    def assign(self, caller_id: str, experiment_name: str) -> str:
        existing = self._existing(caller_id, experiment_name)
        if existing is not None:
            return existing.variant

        variant = variant_for(caller_id, experiment_name)
        self.db.add(ABTestAssignment(
            caller_id=caller_id, test_name=experiment_name, variant=variant,
        ))
        try:
            self.db.commit()
        except IntegrityError:
            # Another request assigned this caller first; theirs is sticky.
            self.db.rollback()
            existing = self._existing(caller_id, experiment_name)
            if existing is None:
                raise
            return existing.variant

        logger.info("A-B %s: assigned %s → %s", experiment_name, caller_id, variant)
        return variant


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

def record_ab_test_outcome(
    db: Session,
    test_name: str,
    caller_id: str,
    variant: str,
    prediction_id: Optional[str] = None,
    ats_result: Optional[int] = None,
    net_units: Optional[float] = None,
) -> None:
    if variant not in _VARIANTS:
        raise ValueError(f"variant must be one of {_VARIANTS}, got {variant!r}")
    if ats_result is not None and ats_result not in (1, -1, 0):
        raise ValueError(f"ats_result must be 1, -1 or 0, got {ats_result!r}")
    db.add(ABTestResult(
        test_name=test_name,
        caller_id=caller_id,
        variant=variant,
        prediction_id=prediction_id,
        ats_result=ats_result,
        net_units=net_units,
    ))
    db.commit()


def _variant_summary(db: Session, test_name: str, variant: str) -> Dict:
    base = db.query(ABTestResult).filter(
        ABTestResult.test_name == test_name, ABTestResult.variant == variant,
    )
    count = base.count()
    avg_units = (
        db.query(func.avg(ABTestResult.net_units))
        .filter(ABTestResult.test_name == test_name, ABTestResult.variant == variant)
        .scalar()
    )
    wins = base.filter(ABTestResult.ats_result == 1).count()
    losses = base.filter(ABTestResult.ats_result == -1).count()
    decided = wins + losses
    return {
        "count": count,
        "avg_net_units": float(avg_units) if avg_units is not None else 0.0,
        "wins": wins,
        "losses": losses,
        "win_rate": round(wins / decided * 100, 2) if decided else 0.0,
    }


def get_ab_test_results(db: Session, test_name: str) -> Dict:
    """Per-variant record, treatment-minus-control improvement, and significance."""
    control = _variant_summary(db, test_name, VARIANT_CONTROL)
    treatment = _variant_summary(db, test_name, VARIANT_TREATMENT)
    return {
        "test_name": test_name,
        "control": control,
        "treatment": treatment,
        "improvement": {
            "net_units": round(treatment["avg_net_units"] - control["avg_net_units"], 4),
            "win_rate": round(treatment["win_rate"] - control["win_rate"], 2),
        },
        "significance": calculate_significance(
            control["wins"], control["losses"], treatment["wins"], treatment["losses"],
        ),
    }


def calculate_significance(
    control_wins: int,
    control_losses: int,
    treatment_wins: int,
    treatment_losses: int,
) -> Dict:
    """
    Pearson chi-square test on the 2×2 win/loss table (1 dof, no continuity
    correction).  Significant when p < 0.05.

    Returns {"chi_square", "p_value", "significant"}.  An empty arm, or a
    table where every game went the same way, gives chi² = 0 and p = 1.
    """
    n1 = control_wins + control_losses
    n2 = treatment_wins + treatment_losses
    if n1 == 0 or n2 == 0:
        return {"chi_square": 0.0, "p_value": 1.0, "significant": False}

    pooled = (control_wins + treatment_wins) / (n1 + n2)
    if pooled in (0.0, 1.0):
        return {"chi_square": 0.0, "p_value": 1.0, "significant": False}

    chi_square = 0.0
    for observed, expected in (
        (control_wins, n1 * pooled),
        (control_losses, n1 * (1 - pooled)),
        (treatment_wins, n2 * pooled),
        (treatment_losses, n2 * (1 - pooled)),
    ):
        chi_square += (observed - expected) ** 2 / expected

    p_value = float(chi2.sf(chi_square, df=1))
    return {
        "chi_square": round(chi_square, 4),
        "p_value": round(p_value, 4),
        "significant": p_value < _SIGNIFICANCE_ALPHA,
    }
