"""
City Metric Aggregation

Joins Sale -> Customer -> City and Sale -> Product and reduces sales to one
CityMetrics record per city, including cities without any sales.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

import polars as pl
import structlog

from coffee_expansion.data.records import CENTS, City, to_decimal
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.exceptions import DataIntegrityError

logger = structlog.get_logger(__name__)

DEFAULT_CONSUMER_SHARE = Decimal("0.25")


@dataclass(frozen=True)
class CityMetrics:
    """Per-city aggregates derived from one snapshot"""
    city: City
    revenue: Decimal
    customer_count: int
    sales_count: int = 0
    avg_rating: Optional[Decimal] = None
    consumer_share: Decimal = DEFAULT_CONSUMER_SHARE

    @property
    def population(self) -> Optional[int]:
        return self.city.population

    @property
    def estimated_rent(self) -> Optional[Decimal]:
        return self.city.estimated_rent

    @property
    def avg_sale_per_customer(self) -> Optional[Decimal]:
        if self.customer_count == 0:
            return None
        return (self.revenue / self.customer_count).quantize(CENTS)

    @property
    def avg_rent_per_customer(self) -> Optional[Decimal]:
        if self.customer_count == 0 or self.estimated_rent is None:
            return None
        return (self.estimated_rent / self.customer_count).quantize(CENTS)

    @property
    def estimated_coffee_consumers(self) -> Optional[int]:
        """Total addressable market: population times the coffee-drinking share"""
        if self.population is None:
            return None
        return int(self.population * self.consumer_share)


@dataclass(frozen=True)
class AggregationResult:
    """All city metrics of a run plus revenue that no city could claim"""
    metrics: List[CityMetrics]
    grand_total: Decimal
    unattributed_revenue: Decimal
    unattributed_sales: int

    @property
    def attributed_revenue(self) -> Decimal:
        return sum((m.revenue for m in self.metrics), Decimal("0"))


def _exact_sum(totals: Optional[Iterable[Optional[float]]]) -> Decimal:
    """Sum sale totals as Decimals, unrounded"""
    return sum((to_decimal(t) for t in totals or () if t is not None), Decimal("0"))


def _ensure_references_resolve(snapshot: Snapshot) -> None:
    """
    Reject rows that would fall out of every aggregate: sales pointing at
    missing customers or products, and customers pointing at missing cities.
    """
    violations = []
    for column, frame, label in (
        ("customer_id", snapshot.customers, "customer"),
        ("product_id", snapshot.products, "product"),
    ):
        orphans = snapshot.sales.join(frame.select(column).unique(), on=column, how="anti")
        if orphans.height:
            missing = orphans[column].unique().sort().to_list()
            violations.append(f"{orphans.height} sales reference missing {label} ids {missing[:10]}")

    homeless = (
        snapshot.customers.filter(pl.col("city_id").is_not_null())
        .join(snapshot.cities.select("city_id").unique(), on="city_id", how="anti")
    )
    if homeless.height:
        missing = homeless["city_id"].unique().sort().to_list()
        violations.append(f"{homeless.height} customers reference missing city ids {missing[:10]}")

    if violations:
        raise DataIntegrityError(
            f"Aggregation aborted: {violations[0]}",
            violations=violations,
        )


def aggregate_city_metrics(
    snapshot: Snapshot,
    consumer_share: Decimal = DEFAULT_CONSUMER_SHARE,
) -> AggregationResult:
    """
    Compute revenue, distinct customer count and supporting metrics per city.

    revenue(city) sums sale totals of customers whose city_id is the city;
    customer_count counts distinct such customers with at least one sale.
    Customers without a city are left out of every city and reported as
    unattributed.

    Args:
        snapshot: Validated snapshot
        consumer_share: Share of population counted as coffee consumers

    Returns:
        AggregationResult with one CityMetrics per city, ordered by city_id

    Raises:
        DataIntegrityError: a sale references a missing customer or product,
            or a customer references a missing city
    """
    _ensure_references_resolve(snapshot)

    enriched = (
        snapshot.sales.lazy()
        .join(snapshot.customers.lazy().select(["customer_id", "city_id"]), on="customer_id", how="inner")
        .join(snapshot.products.lazy().select(["product_id", "product_name"]), on="product_id", how="inner")
    )

    per_city = (
        enriched.filter(pl.col("city_id").is_not_null())
        .group_by("city_id")
        .agg([
            pl.col("total").alias("totals"),
            pl.col("customer_id").n_unique().alias("customer_count"),
            pl.len().alias("sales_count"),
            pl.col("rating").mean().alias("avg_rating"),
        ])
    )

    # Left join keeps cities without sales
    city_frame = (
        snapshot.cities.lazy()
        .join(per_city, on="city_id", how="left")
        .with_columns([
            pl.col("customer_count").fill_null(0),
            pl.col("sales_count").fill_null(0),
        ])
        .sort("city_id")
        .collect()
    )

    metrics = []
    for row in city_frame.iter_rows(named=True):
        avg_rating = row["avg_rating"]
        metrics.append(
            CityMetrics(
                city=City.from_row(row),
                revenue=_exact_sum(row["totals"]),
                customer_count=int(row["customer_count"]),
                sales_count=int(row["sales_count"]),
                avg_rating=None if avg_rating is None else to_decimal(round(avg_rating, 2)),
                consumer_share=consumer_share,
            )
        )

    unattributed = enriched.filter(pl.col("city_id").is_null()).select("total").collect()

    result = AggregationResult(
        metrics=metrics,
        grand_total=_exact_sum(snapshot.sales["total"].to_list()),
        unattributed_revenue=_exact_sum(unattributed["total"].to_list()),
        unattributed_sales=unattributed.height,
    )

    logger.info(
        "City metrics aggregated",
        cities=len(metrics),
        cities_with_sales=sum(1 for m in metrics if m.sales_count),
        grand_total=str(result.grand_total),
        unattributed_sales=result.unattributed_sales,
    )
    return result
