"""
Unit Tests - Composite Scoring and Ranking
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from coffee_expansion.config.settings import ScoringSettings
from coffee_expansion.data.records import City
from coffee_expansion.exceptions import InsufficientDataError, MissingDataError
from coffee_expansion.scoring.aggregator import CityMetrics
from coffee_expansion.scoring.ranker import rank_cities, select_top
from coffee_expansion.scoring.scorer import CompositeScorer, ScoredCity, ScoringWeights


def make_metrics(
    city_id=1,
    name="Alpha",
    population=1_000_000,
    rent="50000",
    revenue="40000",
    customers=100,
) -> CityMetrics:
    return CityMetrics(
        city=City(city_id, name, population, None if rent is None else Decimal(rent)),
        revenue=Decimal(revenue),
        customer_count=customers,
    )


def scored(city_id, name, score) -> ScoredCity:
    return ScoredCity(metrics=make_metrics(city_id=city_id, name=name), composite_score=Decimal(score))


class TestScoringWeights:
    """Tests for ScoringWeights"""

    def test_defaults(self):
        weights = ScoringWeights()

        assert weights.revenue_weight == Decimal("0.4")
        assert weights.customer_weight == Decimal("0.3")
        assert weights.population_weight == Decimal("0.2")
        assert weights.rent_weight == Decimal("0.1")

    def test_unknown_option_rejected(self):
        """Test that only the four recognized weights are accepted"""
        with pytest.raises(ValidationError):
            ScoringWeights(margin_weight=Decimal("0.5"))

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            ScoringWeights(rent_weight=Decimal("-0.1"))

    def test_from_settings(self):
        settings = ScoringSettings(revenue_weight=Decimal("0.5"))

        assert ScoringWeights.from_settings(settings).revenue_weight == Decimal("0.5")


class TestCompositeScorer:
    """Tests for CompositeScorer"""

    def test_reference_city_score(self):
        """Test 40000*0.4 + 100*0.3 + 1000*0.2 - 50*0.1 = 16225"""
        score = CompositeScorer().score(make_metrics())

        assert score == Decimal("16225")

    def test_city_without_sales_is_scored(self):
        """Test zero revenue and customers still give a score"""
        score = CompositeScorer().score(make_metrics(revenue="0", customers=0))

        assert score == Decimal("195")

    def test_monotonic_in_revenue(self):
        scorer = CompositeScorer()

        assert scorer.score(make_metrics(revenue="40001")) > scorer.score(make_metrics(revenue="40000"))

    def test_monotonic_in_customers(self):
        scorer = CompositeScorer()

        assert scorer.score(make_metrics(customers=101)) > scorer.score(make_metrics(customers=100))

    def test_decreasing_in_rent(self):
        scorer = CompositeScorer()

        assert scorer.score(make_metrics(rent="60000")) < scorer.score(make_metrics(rent="50000"))

    def test_custom_weights(self):
        """Test weights need not sum to one"""
        weights = ScoringWeights(
            revenue_weight=Decimal("1"),
            customer_weight=Decimal("0"),
            population_weight=Decimal("0"),
            rent_weight=Decimal("0"),
        )

        assert CompositeScorer(weights).score(make_metrics()) == Decimal("40000")

    def test_missing_population_raises(self):
        with pytest.raises(MissingDataError) as exc_info:
            CompositeScorer().score(make_metrics(population=None))

        assert exc_info.value.missing_fields == ["population"]
        assert exc_info.value.city_name == "Alpha"

    def test_missing_both_inputs(self):
        with pytest.raises(MissingDataError) as exc_info:
            CompositeScorer().score(make_metrics(population=None, rent=None))

        assert exc_info.value.missing_fields == ["population", "estimated_rent"]

    def test_score_all_collects_exclusions(self):
        """Test missing data excludes the city without aborting the others"""
        metrics = [
            make_metrics(city_id=1, name="Alpha"),
            make_metrics(city_id=2, name="Bravo", rent=None),
            make_metrics(city_id=3, name="Charlie"),
        ]

        result = CompositeScorer().score_all(metrics)

        assert [s.city_name for s in result.scored] == ["Alpha", "Charlie"]
        assert [e.city_name for e in result.excluded] == ["Bravo"]

    def test_score_all_parallel_preserves_order(self):
        """Test thread pool scoring returns results in input order"""
        metrics = [make_metrics(city_id=i, name=f"City {i:02d}", revenue=str(i * 100)) for i in range(1, 21)]

        sequential = CompositeScorer().score_all(metrics)
        parallel = CompositeScorer(max_workers=4).score_all(metrics)

        assert [s.city_id for s in parallel.scored] == list(range(1, 21))
        assert [s.composite_score for s in parallel.scored] == [s.composite_score for s in sequential.scored]

    def test_from_settings_uses_scales(self):
        settings = ScoringSettings(population_scale=Decimal("1"), rent_scale=Decimal("1"))
        scorer = CompositeScorer.from_settings(settings)

        # 16000 + 30 + 200000 - 5000
        assert scorer.score(make_metrics()) == Decimal("211030")


class TestRanker:
    """Tests for rank_cities and select_top"""

    def test_orders_by_score_descending(self):
        ranked = rank_cities([scored(1, "Alpha", "10"), scored(2, "Bravo", "30"), scored(3, "Charlie", "20")])

        assert [c.city_name for c in ranked] == ["Bravo", "Charlie", "Alpha"]

    def test_ties_broken_by_city_name(self):
        ranked = rank_cities([scored(1, "Zeta", "10"), scored(2, "Beta", "10"), scored(3, "Mu", "10")])

        assert [c.city_name for c in ranked] == ["Beta", "Mu", "Zeta"]

    def test_ranking_is_independent_of_input_order(self):
        cities = [scored(1, "Zeta", "10"), scored(2, "Beta", "10"), scored(3, "Alpha", "5")]

        assert rank_cities(cities) == rank_cities(list(reversed(cities)))

    def test_select_top(self):
        ranked = rank_cities([scored(1, "Alpha", "10"), scored(2, "Bravo", "30"), scored(3, "Charlie", "20")])

        assert [c.city_name for c in select_top(ranked, 2)] == ["Bravo", "Charlie"]

    def test_select_more_than_available_raises(self):
        ranked = rank_cities([scored(1, "Alpha", "10"), scored(2, "Bravo", "30")])

        with pytest.raises(InsufficientDataError) as exc_info:
            select_top(ranked, 3)

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2

    def test_select_zero_raises(self):
        with pytest.raises(ValueError):
            select_top([scored(1, "Alpha", "10")], 0)
