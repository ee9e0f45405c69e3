"""
Recommendation Endpoints

REST API exposing the city expansion ranking.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
import structlog

from coffee_expansion.config.settings import Settings
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.reporting.emitter import RecommendationReport
from coffee_expansion.scoring.pipeline import run_pipeline
from coffee_expansion.scoring.scorer import ScoringWeights
from coffee_expansion.serving.api.dependencies import get_app_settings, get_snapshot

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("", response_model=RecommendationReport)
def get_recommendations(
    k: Optional[int] = Query(default=None, ge=1, description="Number of cities to return"),
    revenue_weight: Optional[float] = Query(default=None, ge=0),
    customer_weight: Optional[float] = Query(default=None, ge=0),
    population_weight: Optional[float] = Query(default=None, ge=0),
    rent_weight: Optional[float] = Query(default=None, ge=0),
    settings: Settings = Depends(get_app_settings),
    snapshot: Snapshot = Depends(get_snapshot),
) -> RecommendationReport:
    """
    Rank cities and return the top k with supporting metrics.

    Weight parameters override the configured weights for this request.
    """
    overrides = {
        name: str(value)
        for name, value in (
            ("revenue_weight", revenue_weight),
            ("customer_weight", customer_weight),
            ("population_weight", population_weight),
            ("rent_weight", rent_weight),
        )
        if value is not None
    }
    weights = None
    if overrides:
        base = ScoringWeights.from_settings(settings.scoring)
        weights = ScoringWeights(**{**base.model_dump(), **overrides})

    logger.info("get_recommendations called", k=k, weight_overrides=sorted(overrides))
    return run_pipeline(snapshot=snapshot, k=k, weights=weights, settings=settings)
