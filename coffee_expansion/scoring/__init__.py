"""
City Scoring Module
"""
from .aggregator import AggregationResult, CityMetrics, aggregate_city_metrics
from .scorer import CompositeScorer, ScoredCity, ScoringResult, ScoringWeights
from .ranker import rank_cities, select_top

__all__ = [
    "AggregationResult",
    "CityMetrics",
    "aggregate_city_metrics",
    "CompositeScorer",
    "ScoredCity",
    "ScoringResult",
    "ScoringWeights",
    "rank_cities",
    "select_top",
]
