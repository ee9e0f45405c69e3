"""
Immutable Dataset Snapshot

The snapshot is the single input of a pipeline run. It holds the four
collections as Polars DataFrames conformed to fixed schemas, and is never
mutated once built.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator

import polars as pl
import structlog

from coffee_expansion.exceptions import SchemaError
from .records import (
    CITY_SCHEMA,
    CUSTOMER_SCHEMA,
    OPTIONAL_COLUMNS,
    PRODUCT_SCHEMA,
    SALE_SCHEMA,
    City,
    Customer,
    Product,
    Sale,
)

logger = structlog.get_logger(__name__)


def conform_frame(df: pl.DataFrame, schema: Dict[str, pl.DataType], collection: str) -> pl.DataFrame:
    """
    Select and cast the schema columns of a raw frame.

    Optional columns absent from the source are added as nulls. Extra
    columns are dropped.

    Raises:
        SchemaError: required columns are missing or values cannot be cast
    """
    missing = [c for c in schema if c not in df.columns and c not in OPTIONAL_COLUMNS]
    if missing:
        raise SchemaError(collection, [f"missing column '{c}'" for c in missing])

    exprs = []
    for name, dtype in schema.items():
        if name not in df.columns:
            exprs.append(pl.lit(None, dtype=dtype).alias(name))
            continue

        source_type = df.schema[name]
        if dtype == pl.Date and source_type == pl.Utf8:
            exprs.append(pl.col(name).str.to_date("%Y-%m-%d").alias(name))
        elif dtype == pl.Date and source_type == pl.Datetime:
            exprs.append(pl.col(name).dt.date().alias(name))
        else:
            exprs.append(pl.col(name).cast(dtype, strict=True).alias(name))

    try:
        return df.select(exprs)
    except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError) as e:
        raise SchemaError(collection, [str(e)]) from e


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Read-only view of the city, customer, product and sale collections"""
    cities: pl.DataFrame
    customers: pl.DataFrame
    products: pl.DataFrame
    sales: pl.DataFrame

    @classmethod
    def from_frames(
        cls,
        cities: pl.DataFrame,
        customers: pl.DataFrame,
        products: pl.DataFrame,
        sales: pl.DataFrame,
    ) -> "Snapshot":
        """Build a snapshot from raw frames, conforming each to its schema"""
        snapshot = cls(
            cities=conform_frame(cities, CITY_SCHEMA, "city"),
            customers=conform_frame(customers, CUSTOMER_SCHEMA, "customers"),
            products=conform_frame(products, PRODUCT_SCHEMA, "products"),
            sales=conform_frame(sales, SALE_SCHEMA, "sales"),
        )
        logger.debug("Snapshot built", **snapshot.row_counts())
        return snapshot

    @classmethod
    def from_records(
        cls,
        cities: Iterable[City],
        customers: Iterable[Customer],
        products: Iterable[Product],
        sales: Iterable[Sale],
    ) -> "Snapshot":
        """Build a snapshot from typed records"""
        return cls.from_frames(
            cities=pl.DataFrame([c.to_row() for c in cities], schema=CITY_SCHEMA),
            customers=pl.DataFrame([c.to_row() for c in customers], schema=CUSTOMER_SCHEMA),
            products=pl.DataFrame([p.to_row() for p in products], schema=PRODUCT_SCHEMA),
            sales=pl.DataFrame([s.to_row() for s in sales], schema=SALE_SCHEMA),
        )

    def iter_cities(self) -> Iterator[City]:
        for row in self.cities.iter_rows(named=True):
            yield City.from_row(row)

    def iter_customers(self) -> Iterator[Customer]:
        for row in self.customers.iter_rows(named=True):
            yield Customer.from_row(row)

    def iter_products(self) -> Iterator[Product]:
        for row in self.products.iter_rows(named=True):
            yield Product.from_row(row)

    def iter_sales(self) -> Iterator[Sale]:
        for row in self.sales.iter_rows(named=True):
            yield Sale.from_row(row)

    def row_counts(self) -> Dict[str, int]:
        """Number of rows per collection"""
        return {
            "cities": self.cities.height,
            "customers": self.customers.height,
            "products": self.products.height,
            "sales": self.sales.height,
        }
