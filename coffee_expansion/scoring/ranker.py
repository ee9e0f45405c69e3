"""
City Ranking and Selection
"""

from typing import Iterable, List

import structlog

from coffee_expansion.exceptions import InsufficientDataError
from .scorer import ScoredCity

logger = structlog.get_logger(__name__)


def _rank_key(city: ScoredCity):
    # Score descending, then city name, then id
    return (-city.composite_score, city.city_name, city.city_id)


def rank_cities(scored: Iterable[ScoredCity]) -> List[ScoredCity]:
    """Order cities by composite score descending, ties by city name ascending"""
    return sorted(scored, key=_rank_key)


def select_top(ranked: List[ScoredCity], k: int) -> List[ScoredCity]:
    """
    First k cities of a ranked list.

    Raises:
        ValueError: k is less than 1
        InsufficientDataError: fewer than k cities were scored
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if len(ranked) < k:
        raise InsufficientDataError(requested=k, available=len(ranked))

    top = ranked[:k]
    logger.info(
        f"Selected top {k} cities",
        cities=[c.city_name for c in top],
        candidates=len(ranked),
    )
    return top
