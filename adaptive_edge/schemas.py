"""
Pydantic request/response schemas for the adaptive recommendation API.

Request models convert to the core dataclasses via ``to_domain()`` so that
field-level validation lives in one place (the dataclass constructors) and
the HTTP layer only checks shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from adaptive_edge.core.prediction import BiasCorrection, OddsSnapshot, PredictionInput
from adaptive_edge.services.ats_feedback import GradedExample


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class PredictionPayload(BaseModel):
    """
    Model prediction for one game.

    Win probabilities and confidence may be sent as fractions (0.65) or
    percentages (65), but one field must not mix conventions.
    """

    home_team: str = Field(..., min_length=1, max_length=120)
    away_team: str = Field(..., min_length=1, max_length=120)
    sport: Optional[str] = Field(None, description='e.g. "basketball_nba"')

    predicted_home_score: float
    predicted_away_score: float
    predicted_spread: float = Field(..., description="Positive = home favoured")
    predicted_total: Optional[float] = Field(None, ge=0)

    home_win_prob: float = Field(..., ge=0, le=100)
    away_win_prob: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=100)

    def to_domain(self) -> PredictionInput:
        return PredictionInput(
            predicted_home_score=self.predicted_home_score,
            predicted_away_score=self.predicted_away_score,
            predicted_spread=self.predicted_spread,
            home_win_prob=self.home_win_prob,
            away_win_prob=self.away_win_prob,
            confidence=self.confidence,
            home_team=self.home_team,
            away_team=self.away_team,
            predicted_total=self.predicted_total,
            sport=self.sport,
        )


class OddsPayload(BaseModel):
    spread: Optional[float] = Field(None, description="Negative = home favoured")
    total: Optional[float] = None
    moneyline_home: Optional[float] = Field(None, description="Decimal price")
    moneyline_away: Optional[float] = Field(None, description="Decimal price")

    def to_domain(self) -> OddsSnapshot:
        return OddsSnapshot(
            spread=self.spread,
            total=self.total,
            moneyline_home=self.moneyline_home,
            moneyline_away=self.moneyline_away,
        )


class BiasPayload(BaseModel):
    home_team_bias: Optional[float] = None
    away_team_bias: Optional[float] = None
    score_bias: Optional[float] = None

    def to_domain(self) -> BiasCorrection:
        return BiasCorrection(
            home_team_bias=self.home_team_bias,
            away_team_bias=self.away_team_bias,
            score_bias=self.score_bias,
        )


class RecommendationRequest(BaseModel):
    """Payload for POST /api/recommendations."""

    prediction: PredictionPayload
    odds: Optional[OddsPayload] = None
    bias: Optional[BiasPayload] = None
    apply_tuning: bool = Field(True, description="Run legs through the caller's tuning config")


class RecommendationOut(BaseModel):
    type: Literal["spread", "moneyline", "total_over", "total_under", "total_prediction"]
    side: str
    line: Optional[float] = None
    confidence: float
    reasoning: str
    edge: Optional[float] = None
    is_model_only: bool
    tier: Literal["high", "medium", "low"]


class RecommendationsResponse(BaseModel):
    recommendations: List[RecommendationOut]
    config_version: Optional[int] = None
    model_only: bool


# ---------------------------------------------------------------------------
# Performance gate
# ---------------------------------------------------------------------------

class PerformanceGateResponse(BaseModel):
    passed: bool
    ats_win_rate: float
    games_decided: int
    threshold: float


# ---------------------------------------------------------------------------
# Pipeline config admin
# ---------------------------------------------------------------------------

class GradedExamplePayload(BaseModel):
    sport: str = Field(..., min_length=1)
    predicted_spread: float
    confidence: float = Field(..., ge=0, le=100)
    actual_margin: float = Field(..., description="Final home score minus away score")
    market_spread: Optional[float] = None
    predicted_total: Optional[float] = None
    features: Dict[str, float] = Field(default_factory=dict)

    def to_domain(self) -> GradedExample:
        return GradedExample.from_dict(self.model_dump())


class GenerateConfigRequest(BaseModel):
    """
    Payload for POST /admin/pipeline-config/generate.

    ``apply=False`` (default) is a dry run: the proposed config and its diff
    are returned but nothing is saved.
    """

    examples: List[GradedExamplePayload] = Field(..., min_length=1)
    apply: bool = False
    validation_mode: Optional[Literal["live", "shadow", "ab_test"]] = None
    ab_test_name: Optional[str] = Field(None, max_length=100)

    @field_validator("ab_test_name")
    @classmethod
    def ab_test_name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("ab_test_name must not be blank")
        return v


class ConfigApplyRequest(BaseModel):
    """Payload for POST /admin/pipeline-config/apply (a full TuningConfig dict)."""

    config: Dict[str, Any]


class ConfigResponse(BaseModel):
    version: int
    config: Dict[str, Any]


class AbTestOutcomeCreate(BaseModel):
    caller_id: str = Field(..., min_length=1, max_length=100)
    variant: Literal["control", "treatment"]
    prediction_id: Optional[str] = Field(None, max_length=100)
    ats_result: Optional[Literal[1, -1, 0]] = None
    net_units: Optional[float] = None
