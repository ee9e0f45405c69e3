"""
Recommendation Report Emitter

Turns the ranked top-K cities into structured report records and renders
them as JSON, CSV, Markdown or a console table. Formatting only: no scoring
or ranking decisions are made here.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

import polars as pl
import structlog
from pydantic import BaseModel, Field

from coffee_expansion.data.records import CENTS
from coffee_expansion.exceptions import MissingDataError
from coffee_expansion.scoring.scorer import ScoredCity, ScoringWeights

logger = structlog.get_logger(__name__)


class ReportFormat(str, Enum):
    """Supported renderings"""
    TABLE = "table"
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"


class RankedCityReport(BaseModel):
    """One recommended city with its supporting metrics"""
    rank: int = Field(ge=1)
    city_id: int
    city_name: str
    composite_score: Decimal
    revenue: Decimal
    customer_count: int
    estimated_rent: Decimal
    population: int
    sales_count: int
    avg_sale_per_customer: Optional[Decimal] = None
    avg_rent_per_customer: Optional[Decimal] = None
    estimated_coffee_consumers: Optional[int] = None
    avg_rating: Optional[Decimal] = None


class ReportWarning(BaseModel):
    """A city left out of the ranking"""
    city_id: int
    city_name: str
    missing_fields: List[str]
    message: str


class RecommendationReport(BaseModel):
    """Complete output of one pipeline run"""
    generated_at: datetime
    k: int
    candidates: int
    weights: ScoringWeights
    cities: List[RankedCityReport]
    warnings: List[ReportWarning] = Field(default_factory=list)


def build_city_reports(top: Sequence[ScoredCity]) -> List[RankedCityReport]:
    """Number the ranked cities from 1 and flatten their metrics"""
    reports = []
    for rank, scored in enumerate(top, start=1):
        m = scored.metrics
        reports.append(
            RankedCityReport(
                rank=rank,
                city_id=scored.city_id,
                city_name=scored.city_name,
                composite_score=scored.composite_score.quantize(CENTS),
                revenue=m.revenue.quantize(CENTS),
                customer_count=m.customer_count,
                estimated_rent=m.estimated_rent,
                population=m.population,
                sales_count=m.sales_count,
                avg_sale_per_customer=m.avg_sale_per_customer,
                avg_rent_per_customer=m.avg_rent_per_customer,
                estimated_coffee_consumers=m.estimated_coffee_consumers,
                avg_rating=m.avg_rating,
            )
        )
    return reports


def build_warnings(excluded: Sequence[MissingDataError]) -> List[ReportWarning]:
    return [
        ReportWarning(
            city_id=e.city_id,
            city_name=e.city_name,
            missing_fields=e.missing_fields,
            message=str(e),
        )
        for e in excluded
    ]


def build_report(
    top: Sequence[ScoredCity],
    k: int,
    candidates: int,
    weights: ScoringWeights,
    excluded: Sequence[MissingDataError] = (),
    generated_at: Optional[datetime] = None,
) -> RecommendationReport:
    """Assemble the report of a run"""
    return RecommendationReport(
        generated_at=generated_at or datetime.now(timezone.utc),
        k=k,
        candidates=candidates,
        weights=weights,
        cities=build_city_reports(top),
        warnings=build_warnings(excluded),
    )


def to_dataframe(cities: Sequence[RankedCityReport]) -> pl.DataFrame:
    """Tabular view of the report rows; decimals become floats"""
    schema = {
        "rank": pl.Int64,
        "city_name": pl.Utf8,
        "composite_score": pl.Float64,
        "revenue": pl.Float64,
        "customer_count": pl.Int64,
        "estimated_rent": pl.Float64,
        "population": pl.Int64,
        "sales_count": pl.Int64,
        "avg_sale_per_customer": pl.Float64,
        "avg_rent_per_customer": pl.Float64,
        "estimated_coffee_consumers": pl.Int64,
        "avg_rating": pl.Float64,
    }
    rows = []
    for city in cities:
        row = city.model_dump(include=set(schema))
        rows.append({
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in row.items()
        })
    return pl.DataFrame(rows, schema=schema)


def _fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def render_markdown(report: RecommendationReport) -> str:
    """Markdown document with the ranking table and any warnings"""
    columns = [
        ("Rank", "rank"),
        ("City", "city_name"),
        ("Score", "composite_score"),
        ("Revenue", "revenue"),
        ("Customers", "customer_count"),
        ("Est. Rent", "estimated_rent"),
        ("Avg Sale/Customer", "avg_sale_per_customer"),
        ("Avg Rent/Customer", "avg_rent_per_customer"),
        ("Est. Coffee Consumers", "estimated_coffee_consumers"),
    ]
    lines = [
        f"# Top {report.k} Cities for Expansion",
        "",
        f"Generated {report.generated_at.isoformat()} from {report.candidates} scored cities.",
        "",
        "| " + " | ".join(title for title, _ in columns) + " |",
        "|" + "|".join("---" for _ in columns) + "|",
    ]
    for city in report.cities:
        lines.append("| " + " | ".join(_fmt(getattr(city, attr)) for _, attr in columns) + " |")

    w = report.weights
    lines += [
        "",
        f"Weights: revenue {w.revenue_weight}, customers {w.customer_weight}, "
        f"population {w.population_weight}, rent {w.rent_weight}.",
    ]

    if report.warnings:
        lines += ["", "## Warnings", ""]
        lines += [f"- {warning.message}" for warning in report.warnings]

    return "\n".join(lines) + "\n"


def render_table(report: RecommendationReport) -> str:
    """Console table of the ranking"""
    frame = to_dataframe(report.cities).select([
        "rank", "city_name", "composite_score", "revenue", "customer_count", "estimated_rent",
    ])
    with pl.Config(tbl_rows=-1, tbl_hide_dataframe_shape=True, tbl_hide_column_data_types=True):
        table = str(frame)

    if report.warnings:
        table += "\n" + "\n".join(f"warning: {w.message}" for w in report.warnings)
    return table


def render(report: RecommendationReport, fmt: Union[ReportFormat, str]) -> str:
    """Render the report in the requested format"""
    fmt = ReportFormat(fmt)
    if fmt == ReportFormat.JSON:
        return report.model_dump_json(indent=2)
    if fmt == ReportFormat.CSV:
        return to_dataframe(report.cities).write_csv()
    if fmt == ReportFormat.MARKDOWN:
        return render_markdown(report)
    return render_table(report)


def write_report(
    report: RecommendationReport,
    path: Union[str, Path],
    fmt: Optional[Union[ReportFormat, str]] = None,
) -> Path:
    """
    Write the report to a file.

    The format defaults to the file suffix (.json, .csv, .md), else JSON.
    """
    path = Path(path)
    if fmt is None:
        fmt = {".csv": ReportFormat.CSV, ".md": ReportFormat.MARKDOWN}.get(path.suffix, ReportFormat.JSON)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render(report, fmt), encoding="utf-8")
    logger.info("Report written", file=str(path), format=ReportFormat(fmt).value, cities=len(report.cities))
    return path
