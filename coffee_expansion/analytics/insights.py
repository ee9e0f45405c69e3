"""
Market Insights

Supporting queries for the expansion report, computed over the same
snapshot as the scoring pipeline:
- City sales summary
- Top products per city
- Product sales summary
- Monthly revenue growth per city
"""

import polars as pl
import structlog

from coffee_expansion.data.snapshot import Snapshot

logger = structlog.get_logger(__name__)


def _sales_with_city(snapshot: Snapshot) -> pl.LazyFrame:
    return (
        snapshot.sales.lazy()
        .join(snapshot.customers.lazy().select(["customer_id", "city_id"]), on="customer_id", how="inner")
        .join(snapshot.cities.lazy().select(["city_id", "city_name"]), on="city_id", how="inner")
    )


def city_sales_summary(snapshot: Snapshot) -> pl.DataFrame:
    """
    Revenue, sales count and distinct customers per city.

    Every city appears, with zeros when it has no sales. Sorted by revenue
    descending, then city name.
    """
    per_city = (
        _sales_with_city(snapshot)
        .group_by("city_id")
        .agg([
            pl.col("total").sum().alias("revenue"),
            pl.len().alias("sales_count"),
            pl.col("customer_id").n_unique().alias("customer_count"),
        ])
    )
    return (
        snapshot.cities.lazy()
        .select(["city_id", "city_name"])
        .join(per_city, on="city_id", how="left")
        .with_columns([
            pl.col("revenue").fill_null(0.0),
            pl.col("sales_count").fill_null(0).cast(pl.Int64),
            pl.col("customer_count").fill_null(0).cast(pl.Int64),
        ])
        .sort(["revenue", "city_name"], descending=[True, False])
        .collect()
    )


def product_sales_summary(snapshot: Snapshot) -> pl.DataFrame:
    """Sales count and revenue per product, best sellers first"""
    per_product = snapshot.sales.group_by("product_id").agg([
        pl.len().alias("sales_count"),
        pl.col("total").sum().alias("revenue"),
    ])
    return (
        snapshot.products.select(["product_id", "product_name"])
        .join(per_product, on="product_id", how="left")
        .with_columns([
            pl.col("sales_count").fill_null(0).cast(pl.Int64),
            pl.col("revenue").fill_null(0.0),
        ])
        .sort(["sales_count", "product_name"], descending=[True, False])
    )


def top_products_by_city(snapshot: Snapshot, n: int = 3) -> pl.DataFrame:
    """
    Top n products by number of sales in each city.

    Uses a dense rank, so products tied on sales count share a rank and may
    yield more than n rows for a city. Cities are keyed by id, so two cities
    sharing a name are ranked separately.
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")

    counts = (
        _sales_with_city(snapshot)
        .group_by(["city_id", "product_id"])
        .agg([
            pl.col("city_name").first(),
            pl.len().alias("sales_count"),
        ])
        .join(snapshot.products.lazy().select(["product_id", "product_name"]), on="product_id", how="inner")
    )
    return (
        counts.with_columns(
            pl.col("sales_count")
            .rank(method="dense", descending=True)
            .over("city_id")
            .cast(pl.Int64)
            .alias("rank")
        )
        .filter(pl.col("rank") <= n)
        .select(["city_id", "city_name", "rank", "product_name", "sales_count"])
        .sort(["city_name", "city_id", "rank", "product_name"])
        .collect()
    )


def monthly_revenue_growth(snapshot: Snapshot) -> pl.DataFrame:
    """
    Monthly revenue per city with month-over-month growth.

    growth_ratio is (revenue - previous) / previous; null for a city's first
    month and when the previous month had zero revenue.
    """
    monthly = (
        _sales_with_city(snapshot)
        .with_columns(pl.col("sale_date").dt.truncate("1mo").alias("month"))
        .group_by(["city_id", "month"])
        .agg([
            pl.col("city_name").first(),
            pl.col("total").sum().alias("revenue"),
        ])
        .sort(["city_name", "city_id", "month"])
        .with_columns(pl.col("revenue").shift(1).over("city_id").alias("previous_revenue"))
        .with_columns(
            pl.when(pl.col("previous_revenue").is_null() | (pl.col("previous_revenue") == 0))
            .then(None)
            .otherwise((pl.col("revenue") - pl.col("previous_revenue")) / pl.col("previous_revenue"))
            .alias("growth_ratio")
        )
        .collect()
    )
    logger.debug("Monthly revenue computed", rows=monthly.height)
    return monthly
