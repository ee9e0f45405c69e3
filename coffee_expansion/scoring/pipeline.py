"""
Expansion Recommendation Pipeline

Runs Ingest -> Aggregate -> Score -> Rank -> Emit as one linear pass over an
immutable snapshot. Each stage either completes and hands a fully built
result to the next, or the run aborts with that stage's typed error.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import structlog

from coffee_expansion.config import get_settings
from coffee_expansion.config.settings import Settings
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.exceptions import ExpansionAnalyticsError
from coffee_expansion.ingestion.loaders import load_snapshot
from coffee_expansion.quality.validators import validate_snapshot
from coffee_expansion.reporting.emitter import RankedCityReport, RecommendationReport, build_report
from .aggregator import AggregationResult, aggregate_city_metrics
from .ranker import rank_cities, select_top
from .scorer import CompositeScorer, ScoringResult, ScoringWeights

logger = structlog.get_logger(__name__)


class PipelineStage(str, Enum):
    """Pipeline stages in execution order"""
    INGEST = "ingest"
    AGGREGATE = "aggregate"
    SCORE = "score"
    RANK = "rank"
    EMIT = "emit"


@dataclass
class PipelineResult:
    """Intermediate and final outputs of one run"""
    report: RecommendationReport
    aggregation: AggregationResult
    scoring: ScoringResult
    stage_durations: Dict[str, float] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return sum(self.stage_durations.values())


class ExpansionPipeline:
    """
    City recommendation pipeline.

    Example:
        pipeline = ExpansionPipeline(k=3)
        result = pipeline.run(snapshot)
        for city in result.report.cities:
            print(city.rank, city.city_name)
    """

    def __init__(
        self,
        k: Optional[int] = None,
        weights: Optional[ScoringWeights] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        scoring = self.settings.scoring
        self.k = scoring.top_k if k is None else k
        if self.k < 1:
            raise ValueError(f"k must be at least 1, got {self.k}")
        self.scorer = CompositeScorer.from_settings(scoring, weights)
        self.consumer_share = scoring.consumer_share

    def _timed(self, stage: PipelineStage, durations: Dict[str, float], func, *args):
        started = time.perf_counter()
        logger.debug("Stage started", stage=stage.value)
        try:
            result = func(*args)
        except ExpansionAnalyticsError as e:
            logger.error("Pipeline aborted", stage=stage.value, error=type(e).__name__, message=str(e))
            raise
        durations[stage.value] = time.perf_counter() - started
        logger.debug("Stage completed", stage=stage.value, duration_seconds=round(durations[stage.value], 4))
        return result

    def run(self, snapshot: Optional[Snapshot] = None) -> PipelineResult:
        """
        Execute all stages.

        Args:
            snapshot: Input snapshot; loaded from the configured source if omitted

        Raises:
            DataIntegrityError: the snapshot is not referentially valid
            InsufficientDataError: fewer than k cities could be scored
        """
        durations: Dict[str, float] = {}
        logger.info("Starting expansion pipeline", k=self.k)

        if snapshot is None:
            snapshot = self._timed(PipelineStage.INGEST, durations, load_snapshot, self.settings)
        elif self.settings.data.validate_snapshot:
            self._timed(PipelineStage.INGEST, durations, validate_snapshot, snapshot)

        aggregation = self._timed(
            PipelineStage.AGGREGATE, durations, aggregate_city_metrics, snapshot, self.consumer_share
        )
        scoring = self._timed(PipelineStage.SCORE, durations, self.scorer.score_all, aggregation.metrics)
        top = self._timed(
            PipelineStage.RANK, durations, lambda: select_top(rank_cities(scoring.scored), self.k)
        )
        report = self._timed(
            PipelineStage.EMIT,
            durations,
            lambda: build_report(
                top,
                k=self.k,
                candidates=len(scoring.scored),
                weights=self.scorer.weights,
                excluded=scoring.excluded,
            ),
        )

        result = PipelineResult(
            report=report,
            aggregation=aggregation,
            scoring=scoring,
            stage_durations=durations,
        )
        logger.info(
            "Expansion pipeline complete",
            recommended=[c.city_name for c in report.cities],
            warnings=len(report.warnings),
            duration_seconds=round(result.duration_seconds, 4),
        )
        return result


def run_pipeline(
    snapshot: Optional[Snapshot] = None,
    k: Optional[int] = None,
    weights: Optional[ScoringWeights] = None,
    settings: Optional[Settings] = None,
) -> RecommendationReport:
    """Run the pipeline and return the full report, warnings included"""
    return ExpansionPipeline(k=k, weights=weights, settings=settings).run(snapshot).report


def recommend_top_cities(
    k: int = 3,
    snapshot: Optional[Snapshot] = None,
    weights: Optional[ScoringWeights] = None,
    settings: Optional[Settings] = None,
) -> List[RankedCityReport]:
    """
    Recommend the k best cities for expansion.

    Args:
        k: Number of cities to return
        snapshot: Input snapshot; loaded from the configured source if omitted
        weights: Scoring weights; defaults to the configured weights
        settings: Settings override

    Returns:
        Ranked city reports, best first
    """
    return run_pipeline(snapshot=snapshot, k=k, weights=weights, settings=settings).cities
