"""
Composite City Scoring

score = revenue * revenue_weight
      + customer_count * customer_weight
      + (population / population_scale) * population_weight
      - (estimated_rent / rent_scale) * rent_weight

Scoring is a pure function of a city's metrics and the weights. Cities
missing population or rent are not scored; their MissingDataError is
collected as a warning instead of aborting the run.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from coffee_expansion.config.settings import ScoringSettings
from coffee_expansion.exceptions import MissingDataError
from .aggregator import CityMetrics

logger = structlog.get_logger(__name__)


class ScoringWeights(BaseModel):
    """
    Weights of the composite score.

    Only the four recognized options are accepted. Weights need not sum
    to 1; the rent weight is applied as a penalty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    revenue_weight: Decimal = Field(default=Decimal("0.4"), ge=0)
    customer_weight: Decimal = Field(default=Decimal("0.3"), ge=0)
    population_weight: Decimal = Field(default=Decimal("0.2"), ge=0)
    rent_weight: Decimal = Field(default=Decimal("0.1"), ge=0)

    @classmethod
    def from_settings(cls, scoring: ScoringSettings) -> "ScoringWeights":
        return cls(
            revenue_weight=scoring.revenue_weight,
            customer_weight=scoring.customer_weight,
            population_weight=scoring.population_weight,
            rent_weight=scoring.rent_weight,
        )


@dataclass(frozen=True)
class ScoredCity:
    """A city with its metrics and composite score"""
    metrics: CityMetrics
    composite_score: Decimal

    @property
    def city_id(self) -> int:
        return self.metrics.city.city_id

    @property
    def city_name(self) -> str:
        return self.metrics.city.city_name


@dataclass(frozen=True)
class ScoringResult:
    """Scored cities in input order, plus cities excluded for missing data"""
    scored: List[ScoredCity]
    excluded: List[MissingDataError] = field(default_factory=list)


class CompositeScorer:
    """
    Apply the weighted formula to city metrics.

    Example:
        scorer = CompositeScorer(ScoringWeights(revenue_weight="0.5"))
        result = scorer.score_all(aggregation.metrics)
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        population_scale: Union[Decimal, int] = Decimal("1000"),
        rent_scale: Union[Decimal, int] = Decimal("1000"),
        max_workers: Optional[int] = None,
    ):
        self.weights = weights or ScoringWeights()
        self.population_scale = Decimal(population_scale)
        self.rent_scale = Decimal(rent_scale)
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, scoring: ScoringSettings, weights: Optional[ScoringWeights] = None) -> "CompositeScorer":
        return cls(
            weights=weights or ScoringWeights.from_settings(scoring),
            population_scale=scoring.population_scale,
            rent_scale=scoring.rent_scale,
            max_workers=scoring.max_workers,
        )

    def score(self, metrics: CityMetrics) -> Decimal:
        """
        Composite score of one city.

        Raises:
            MissingDataError: population or estimated rent is missing
        """
        missing = [
            name for name, value in (
                ("population", metrics.population),
                ("estimated_rent", metrics.estimated_rent),
            )
            if value is None
        ]
        if missing:
            raise MissingDataError(metrics.city.city_id, metrics.city.city_name, missing)

        w = self.weights
        return (
            metrics.revenue * w.revenue_weight
            + Decimal(metrics.customer_count) * w.customer_weight
            + (Decimal(metrics.population) / self.population_scale) * w.population_weight
            - (metrics.estimated_rent / self.rent_scale) * w.rent_weight
        )

    def _score_one(self, metrics: CityMetrics) -> Union[ScoredCity, MissingDataError]:
        try:
            return ScoredCity(metrics=metrics, composite_score=self.score(metrics))
        except MissingDataError as e:
            return e

    def score_all(self, metrics: Iterable[CityMetrics]) -> ScoringResult:
        """
        Score every city independently.

        With max_workers set, cities are scored on a thread pool; results are
        always reduced in input order.
        """
        metrics = list(metrics)
        if self.max_workers and len(metrics) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self._score_one, metrics))
        else:
            outcomes = [self._score_one(m) for m in metrics]

        scored = [o for o in outcomes if isinstance(o, ScoredCity)]
        excluded = [o for o in outcomes if isinstance(o, MissingDataError)]

        for error in excluded:
            logger.warning(
                "City excluded from ranking",
                city_id=error.city_id,
                city_name=error.city_name,
                missing_fields=error.missing_fields,
            )

        logger.info("Cities scored", scored=len(scored), excluded=len(excluded))
        return ScoringResult(scored=scored, excluded=excluded)
