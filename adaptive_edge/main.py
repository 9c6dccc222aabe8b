"""
FastAPI application for the adaptive recommendation engine
Recommendations, performance gate, and tuning-config administration
"""

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from dataclasses import replace
from datetime import datetime, timezone
import logging

from adaptive_edge.models import get_db
from adaptive_edge.auth import verify_api_key, verify_admin_api_key
from adaptive_edge.core.prediction import PredictionValidationError, apply_bias
from adaptive_edge.core.tuning_config import ConfigValidationError, RolloutMode, TuningConfig
from adaptive_edge.services.ats_feedback import (
    build_segmentation_report,
    feature_correlations,
    suggest_adjustments,
)
from adaptive_edge.services.config_manager import PipelineConfigManager
from adaptive_edge.services.config_store import SqlConfigStore
from adaptive_edge.services.experiments import (
    SqlExperimentAssigner,
    get_ab_test_results,
    record_ab_test_outcome,
)
from adaptive_edge.services.feedback_config import (
    describe_config_changes,
    generate_config_from_feedback,
)
from adaptive_edge.services.performance import ATS_PERFORMANCE_GATE, check_performance_gate
from adaptive_edge.services.recommendations import generate_recommendations
from adaptive_edge.schemas import (
    AbTestOutcomeCreate,
    ConfigApplyRequest,
    ConfigResponse,
    GenerateConfigRequest,
    PerformanceGateResponse,
    RecommendationRequest,
    RecommendationsResponse,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Adaptive Edge",
    description="Tiered betting recommendations with feedback-tuned confidence",
    version="1.0.0",
)


def get_config_manager(db: Session = Depends(get_db)) -> PipelineConfigManager:
    return PipelineConfigManager(SqlConfigStore(db), SqlExperimentAssigner(db))


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Adaptive Edge",
        "version": "1.0.0",
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected"}
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {e}"
    return health


# ============================================================================
# AUTHENTICATED ENDPOINTS
# ============================================================================

@app.post("/api/recommendations", response_model=RecommendationsResponse)
async def create_recommendations(
    payload: RecommendationRequest,
    caller: str = Depends(verify_api_key),
    manager: PipelineConfigManager = Depends(get_config_manager),
):
    """
    Turn one prediction (plus optional market odds and bias correction) into
    tiered recommendations.  The caller's effective tuning config, which may
    be an A-B control config, gates and scales each leg.
    """
    try:
        prediction = apply_bias(
            payload.prediction.to_domain(),
            payload.bias.to_domain() if payload.bias else None,
        )
    except PredictionValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    odds = payload.odds.to_domain() if payload.odds else None
    config = manager.get_effective_config_for_caller(caller) if payload.apply_tuning else None

    recs = generate_recommendations(prediction, odds, config=config)
    return {
        "recommendations": [r.to_dict() for r in recs],
        "config_version": config.version if config is not None else None,
        "model_only": all(r.is_model_only for r in recs),
    }


@app.get("/api/performance/gate", response_model=PerformanceGateResponse)
async def performance_gate(
    ats_win_rate: float = Query(..., ge=0, le=100),
    games_decided: int = Query(..., ge=0),
    threshold: float = Query(ATS_PERFORMANCE_GATE, ge=0, le=100),
    caller: str = Depends(verify_api_key),
):
    """Whether an ATS record is good enough to expose recommendations publicly."""
    return check_performance_gate(ats_win_rate, games_decided, threshold).to_dict()


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================

@app.get("/admin/pipeline-config", response_model=ConfigResponse)
async def get_pipeline_config(
    user: str = Depends(verify_admin_api_key),
    manager: PipelineConfigManager = Depends(get_config_manager),
):
    """Current tuning config (neutral default if none saved)."""
    config = manager.get_effective_config()
    return {"version": manager.get_config_version(), "config": config.to_dict()}


@app.post("/admin/pipeline-config/generate")
async def generate_pipeline_config(
    payload: GenerateConfigRequest,
    user: str = Depends(verify_admin_api_key),
    manager: PipelineConfigManager = Depends(get_config_manager),
):
    """
    Segment graded examples by ATS accuracy and propose the next tuning config.

    Body:
        apply=true — save the proposed config as current.
        validation_mode / ab_test_name — rollout metadata for the new config.
    """
    try:
        examples = [e.to_domain() for e in payload.examples]
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    current = manager.get_effective_config()
    report = build_segmentation_report(examples)
    proposed = generate_config_from_feedback(report, current)
    if payload.validation_mode is not None:
        proposed = replace(
            proposed,
            validation_mode=RolloutMode(payload.validation_mode),
            ab_test_name=payload.ab_test_name,
        )

    logger.info(
        "Config generation by %s: v%d → v%d (apply=%s)",
        user, current.version, proposed.version, payload.apply,
    )
    if payload.apply:
        manager.save_config(proposed)

    significance = proposed.feature_weights.significance_threshold
    return {
        "applied": payload.apply,
        "report": report.to_dict(),
        "suggestions": [s.to_dict() for s in suggest_adjustments(report)],
        "feature_correlations": [
            f.to_dict() for f in feature_correlations(examples, significance)
        ],
        "changes": describe_config_changes(current, proposed),
        "config": proposed.to_dict(),
    }


@app.post("/admin/pipeline-config/apply", response_model=ConfigResponse)
async def apply_pipeline_config(
    payload: ConfigApplyRequest,
    user: str = Depends(verify_admin_api_key),
    manager: PipelineConfigManager = Depends(get_config_manager),
):
    """Replace the current tuning config with a full config document."""
    try:
        config = TuningConfig.from_dict(payload.config)
        manager.save_config(config)
    except ConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("Tuning config v%d applied by %s", config.version, user)
    return {"version": config.version, "config": config.to_dict()}


@app.post("/admin/pipeline-config/reset", response_model=ConfigResponse)
async def reset_pipeline_config(
    user: str = Depends(verify_admin_api_key),
    manager: PipelineConfigManager = Depends(get_config_manager),
):
    """Replace the current tuning config with the neutral default."""
    config = manager.reset_config()
    logger.info("Tuning config reset by %s", user)
    return {"version": config.version, "config": config.to_dict()}


@app.get("/admin/ab-test/{test_name}")
async def ab_test_results(
    test_name: str,
    user: str = Depends(verify_admin_api_key),
    db: Session = Depends(get_db),
):
    """Per-variant ATS record and chi-square significance for an experiment."""
    return get_ab_test_results(db, test_name)


@app.post("/admin/ab-test/{test_name}/outcome")
async def ab_test_outcome(
    test_name: str,
    payload: AbTestOutcomeCreate,
    user: str = Depends(verify_admin_api_key),
    db: Session = Depends(get_db),
):
    """Attribute one graded outcome to an experiment variant."""
    record_ab_test_outcome(
        db,
        test_name,
        payload.caller_id,
        payload.variant,
        prediction_id=payload.prediction_id,
        ats_result=payload.ats_result,
        net_units=payload.net_units,
    )
    return {"message": "Outcome recorded", "test_name": test_name}


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
