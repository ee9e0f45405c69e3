"""
Unit Tests - Snapshot Records and Generator
"""
from decimal import Decimal

import pytest
from polars.testing import assert_frame_equal

from coffee_expansion.config.settings import Settings
from coffee_expansion.data.generators import CITIES, PRODUCTS, SnapshotGenerator
from coffee_expansion.quality.validators import ValidationStatus, validate_snapshot


class TestSnapshot:
    """Tests for Snapshot"""

    def test_records_round_trip(self, sample_snapshot, sample_cities, sample_sales):
        assert list(sample_snapshot.iter_cities()) == sample_cities
        assert list(sample_snapshot.iter_sales()) == sample_sales

    def test_row_counts(self, sample_snapshot):
        assert sample_snapshot.row_counts() == {"cities": 4, "customers": 5, "products": 2, "sales": 6}

    def test_frozen(self, sample_snapshot):
        with pytest.raises(AttributeError):
            sample_snapshot.sales = sample_snapshot.sales.head(0)

    def test_decimal_money(self, sample_snapshot):
        products = list(sample_snapshot.iter_products())

        assert products[0].price == Decimal("1300.0")


class TestSnapshotGenerator:
    """Tests for SnapshotGenerator"""

    def test_deterministic_for_seed(self):
        first = SnapshotGenerator(seed=9).generate(customers=30, sales=100)
        second = SnapshotGenerator(seed=9).generate(customers=30, sales=100)

        assert_frame_equal(first.customers, second.customers)
        assert_frame_equal(first.sales, second.sales)

    def test_generated_snapshot_is_valid(self):
        snapshot = SnapshotGenerator(seed=2).generate(customers=40, sales=200)

        assert validate_snapshot(snapshot).status == ValidationStatus.PASSED
        assert snapshot.cities.height == len(CITIES)
        assert snapshot.products.height == len(PRODUCTS)

    def test_sale_totals_match_prices(self):
        snapshot = SnapshotGenerator(seed=4).generate(customers=20, sales=50)
        joined = snapshot.sales.join(snapshot.products, on="product_id")

        assert (joined["total"] == joined["price"]).all()


class TestSettings:
    """Tests for configuration"""

    def test_scoring_defaults(self):
        settings = Settings(app_env="testing")

        assert settings.scoring.revenue_weight == Decimal("0.4")
        assert settings.scoring.top_k == 3
        assert settings.data.cities_file == "city.csv"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            Settings(app_env="moon")

    def test_weights_from_environment(self, monkeypatch):
        monkeypatch.setenv("SCORING_RENT_WEIGHT", "0.25")

        assert Settings().scoring.rent_weight == Decimal("0.25")
