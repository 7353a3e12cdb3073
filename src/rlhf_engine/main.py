from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional
import logging
from datetime import datetime

from .config import settings
from .engine import PreferenceEngine
from .interfaces import FeatureGate
from .kill_switch import StatusMapGate
from .storage import SqlKeyValueStore

logger = logging.getLogger(__name__)


class ComparisonRequest(BaseModel):
    question: str
    response_a: str
    response_b: str
    preferred: str = Field(pattern=r"^[ABab]$")


class ScoreRequest(BaseModel):
    response: str
    question: str


class RankRequest(BaseModel):
    responses: List[str]
    question: str


def create_app(engine: PreferenceEngine, gate: Optional[FeatureGate] = None) -> FastAPI:
    app = FastAPI(title="RLHF Preference Engine", version="1.0.0")
    gate = gate or StatusMapGate()
    feature = engine.config.gate_feature

    def _ensure_enabled(action: str):
        if gate.is_disabled(feature):
            logger.warning(f"Rejected {action}: feature '{feature}' disabled by kill switch")
            raise HTTPException(status_code=503, detail=f"Feature '{feature}' is disabled")

    @app.get("/")
    def root():
        return {"message": "RLHF Preference Engine", "status": "running"}

    @app.get("/health")
    def health_check():
        stats = engine.get_stats()
        return {
            "api": "healthy",
            "timestamp": datetime.now().isoformat(),
            "feature": feature,
            "feature_enabled": not gate.is_disabled(feature),
            "comparisons_stored": stats["comparisonsStored"],
            "model_updates": stats["modelUpdates"],
        }

    @app.post("/comparisons")
    def record_comparison(request: ComparisonRequest):
        _ensure_enabled("comparison")
        comparison_id = engine.record_comparison(
            request.question, request.response_a, request.response_b, request.preferred
        )
        return {"id": comparison_id, "stats": engine.get_stats()}

    @app.post("/refit")
    def refit():
        applied = engine.refit()
        return {"applied": applied, "stats": engine.get_stats()}

    @app.post("/score")
    def score(request: ScoreRequest):
        _ensure_enabled("score")
        reward = engine.calculate_reward(request.response, request.question)
        return {"reward": reward}

    @app.post("/rank")
    def rank(request: RankRequest):
        _ensure_enabled("rank")
        ranked = engine.rank_responses(request.responses, request.question)
        return {"ranking": [r.to_dict() for r in ranked]}

    @app.get("/stats")
    def stats():
        return engine.get_stats()

    @app.get("/export")
    def export():
        return engine.export_data()

    @app.get("/metrics")
    def metrics_snapshot():
        return engine.metrics.snapshot()

    return app


def build_default_app() -> FastAPI:
    """Service entry point wired to the configured SQL store."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    try:
        store = SqlKeyValueStore(settings.db_url)
    except Exception as e:
        logger.error(f"Failed to open preference store at {settings.db_url}, using in-memory state: {e}")
        store = None
    engine = PreferenceEngine(store=store)
    gate = StatusMapGate.from_json(settings.kill_switch_status)
    logger.info(f"Preference engine ready (gate feature '{settings.gate_feature}')")
    return create_app(engine, gate)
