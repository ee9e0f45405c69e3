"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import List

import pytest

from coffee_expansion.config import Settings
from coffee_expansion.config.settings import DataSettings, DatabaseSettings
from coffee_expansion.data.records import City, Customer, Product, Sale
from coffee_expansion.data.snapshot import Snapshot


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings pointing at an empty temporary data directory"""
    return Settings(
        app_env="testing",
        debug=True,
        data=DataSettings(data_dir=str(tmp_path)),
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'test.db'}"),
    )


@pytest.fixture
def sample_cities() -> List[City]:
    """Four cities; Delta has no customers"""
    return [
        City(1, "Alpha", 1_000_000, Decimal("50000"), city_rank=2),
        City(2, "Bravo", 500_000, Decimal("20000"), city_rank=3),
        City(3, "Charlie", 2_000_000, Decimal("80000"), city_rank=1),
        City(4, "Delta", 300_000, Decimal("10000"), city_rank=4),
    ]


@pytest.fixture
def sample_customers() -> List[Customer]:
    """Customers of Alpha, Bravo and Charlie, plus one without a city"""
    return [
        Customer(1, "Ann", 1),
        Customer(2, "Ben", 1),
        Customer(3, "Cat", 2),
        Customer(4, "Dan", 3),
        Customer(5, "Eve", None),
    ]


@pytest.fixture
def sample_products() -> List[Product]:
    return [
        Product(1, "Cold Brew Coffee Pack (6 Bottles)", Decimal("1300")),
        Product(2, "Coffee Mug (Ceramic)", Decimal("350")),
    ]


@pytest.fixture
def sample_sales() -> List[Sale]:
    """
    Revenue per city: Alpha 2950, Bravo 1300, Charlie 350, Delta 0.
    Sale 6 belongs to the customer without a city.
    """
    return [
        Sale(1, date(2024, 1, 5), 1, 1, Decimal("1300"), 5),
        Sale(2, date(2024, 1, 20), 2, 1, Decimal("350"), 4),
        Sale(3, date(2024, 2, 3), 1, 2, Decimal("1300"), 3),
        Sale(4, date(2024, 2, 10), 1, 3, Decimal("1300")),
        Sale(5, date(2024, 3, 1), 2, 4, Decimal("350"), 2),
        Sale(6, date(2024, 3, 15), 1, 5, Decimal("1300"), 5),
    ]


@pytest.fixture
def sample_snapshot(sample_cities, sample_customers, sample_products, sample_sales) -> Snapshot:
    """Referentially valid snapshot"""
    return Snapshot.from_records(sample_cities, sample_customers, sample_products, sample_sales)


@pytest.fixture
def snapshot_with_missing_data(sample_cities, sample_customers, sample_products, sample_sales) -> Snapshot:
    """Snapshot with an extra city lacking population"""
    cities = sample_cities + [City(5, "Echo", None, Decimal("12000"))]
    return Snapshot.from_records(cities, sample_customers, sample_products, sample_sales)


@pytest.fixture
def orphan_sale_snapshot(sample_cities, sample_customers, sample_products, sample_sales) -> Snapshot:
    """Snapshot with a sale referencing nonexistent customer 9999"""
    sales = sample_sales + [Sale(7, date(2024, 3, 20), 1, 9999, Decimal("1300"), 4)]
    return Snapshot.from_records(sample_cities, sample_customers, sample_products, sales)
