"""
Synthetic Snapshot Generator

Generates a realistic coffee retail dataset (cities, customers, products,
sales) for demos and development. Output is fully determined by the seed.
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import polars as pl
import structlog
from faker import Faker

from coffee_expansion.config import get_settings
from .records import CITY_SCHEMA, CUSTOMER_SCHEMA, PRODUCT_SCHEMA, SALE_SCHEMA
from .snapshot import Snapshot

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

# (city, population, estimated monthly rent)
CITIES: List[Tuple[str, int, float]] = [
    ("Delhi", 31_000_000, 26_000.0),
    ("Mumbai", 20_400_000, 31_500.0),
    ("Kolkata", 14_900_000, 16_800.0),
    ("Bangalore", 12_300_000, 29_700.0),
    ("Chennai", 11_100_000, 17_100.0),
    ("Hyderabad", 10_500_000, 22_000.0),
    ("Ahmedabad", 8_300_000, 15_800.0),
    ("Pune", 7_100_000, 15_300.0),
    ("Jaipur", 4_000_000, 10_300.0),
    ("Surat", 7_200_000, 13_400.0),
    ("Lucknow", 3_800_000, 11_200.0),
    ("Kanpur", 3_100_000, 8_800.0),
    ("Nagpur", 3_000_000, 9_800.0),
    ("Indore", 3_200_000, 9_200.0),
]

PRODUCTS: List[Tuple[str, float]] = [
    ("Cold Brew Coffee Pack (6 Bottles)", 1_300.0),
    ("Ground Espresso Coffee (250g)", 950.0),
    ("Instant Coffee Powder (100g)", 450.0),
    ("Coffee Beans (500g)", 1_200.0),
    ("Coffee Mug (Ceramic)", 350.0),
    ("Coffee Filter Papers (100 Pack)", 150.0),
    ("Vanilla Coffee Syrup (250ml)", 400.0),
    ("French Press Coffee Maker", 1_800.0),
    ("Organic Green Coffee Beans (500g)", 1_250.0),
    ("Cold Brew Concentrate (1L)", 1_100.0),
    ("Coffee Gift Hamper", 2_800.0),
    ("Travel Coffee Tumbler", 600.0),
]


class SnapshotGenerator:
    """
    Generate a referentially valid snapshot.

    Example:
        generator = SnapshotGenerator(seed=42)
        snapshot = generator.generate(customers=500, sales=5000)
        generator.write_csv(snapshot, "data")
    """

    def __init__(self, seed: int = 42, start_date: Optional[date] = None, days: int = 730):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.start_date = start_date or date(2023, 1, 1)
        self.days = days

    def generate_cities(self) -> pl.DataFrame:
        """Generate the city dimension"""
        ranks = np.argsort(np.argsort([-p for _, p, _ in CITIES])) + 1
        return pl.DataFrame(
            {
                "city_id": list(range(1, len(CITIES) + 1)),
                "city_name": [name for name, _, _ in CITIES],
                "population": [population for _, population, _ in CITIES],
                "estimated_rent": [rent for _, _, rent in CITIES],
                "city_rank": [int(r) for r in ranks],
            },
            schema=CITY_SCHEMA,
        )

    def generate_customers(self, n: int, city_ids: List[int]) -> pl.DataFrame:
        """Generate n customers spread across cities, weighted towards large ones"""
        weights = np.array([population for _, population, _ in CITIES], dtype=float)
        weights = weights[: len(city_ids)] / weights[: len(city_ids)].sum()
        assigned = self.rng.choice(city_ids, size=n, p=weights)

        return pl.DataFrame(
            {
                "customer_id": list(range(1, n + 1)),
                "customer_name": [self.fake.name() for _ in range(n)],
                "city_id": [int(c) for c in assigned],
            },
            schema=CUSTOMER_SCHEMA,
        )

    def generate_products(self) -> pl.DataFrame:
        """Generate the coffee product catalog"""
        return pl.DataFrame(
            {
                "product_id": list(range(1, len(PRODUCTS) + 1)),
                "product_name": [name for name, _ in PRODUCTS],
                "price": [price for _, price in PRODUCTS],
            },
            schema=PRODUCT_SCHEMA,
        )

    def generate_sales(self, n: int, customer_ids: List[int], products: pl.DataFrame) -> pl.DataFrame:
        """Generate n sales; totals equal the product price"""
        product_ids = products["product_id"].to_numpy()
        prices = dict(zip(products["product_id"].to_list(), products["price"].to_list()))

        chosen_products = self.rng.choice(product_ids, size=n)
        chosen_customers = self.rng.choice(customer_ids, size=n)
        offsets = self.rng.integers(0, self.days, size=n)
        ratings = self.rng.integers(1, 6, size=n)

        return pl.DataFrame(
            {
                "sale_id": list(range(1, n + 1)),
                "sale_date": [self.start_date + timedelta(days=int(d)) for d in offsets],
                "product_id": [int(p) for p in chosen_products],
                "customer_id": [int(c) for c in chosen_customers],
                "total": [prices[int(p)] for p in chosen_products],
                "rating": [int(r) for r in ratings],
            },
            schema=SALE_SCHEMA,
        )

    def generate(self, customers: int = 500, sales: int = 10_000) -> Snapshot:
        """Generate a complete snapshot"""
        cities_df = self.generate_cities()
        customers_df = self.generate_customers(customers, cities_df["city_id"].to_list())
        products_df = self.generate_products()
        sales_df = self.generate_sales(sales, customers_df["customer_id"].to_list(), products_df)

        logger.info(
            "Generated synthetic snapshot",
            seed=self.seed,
            cities=cities_df.height,
            customers=customers_df.height,
            sales=sales_df.height,
        )
        return Snapshot.from_frames(cities_df, customers_df, products_df, sales_df)

    def write_csv(self, snapshot: Snapshot, directory: Union[str, Path]) -> Dict[str, Path]:
        """Write the snapshot as the four CSV files the CSV loader expects"""
        data_settings = get_settings().data
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        targets = {
            data_settings.cities_file: snapshot.cities,
            data_settings.customers_file: snapshot.customers,
            data_settings.products_file: snapshot.products,
            data_settings.sales_file: snapshot.sales,
        }
        written = {}
        for file_name, frame in targets.items():
            path = directory / file_name
            frame.write_csv(path)
            written[file_name] = path
            logger.info("Written CSV", file=str(path), rows=frame.height)

        return written
