"""
Command Line Interface

Usage:
    coffee-expansion recommend --k 3 --format markdown
    coffee-expansion recommend --source database --output reports/top_cities.json
    coffee-expansion insights top-products --n 3
    coffee-expansion generate --output-dir data --customers 500 --sales 10000
    coffee-expansion seed-db --data-dir data
    coffee-expansion serve --port 8000
"""

import argparse
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import structlog

from coffee_expansion.config import get_settings
from coffee_expansion.config.logging import configure_logging
from coffee_expansion.config.settings import Settings
from coffee_expansion.exceptions import ExpansionAnalyticsError

logger = structlog.get_logger(__name__)

EXIT_PIPELINE_ERROR = 2


def _settings_for(args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of the environment settings"""
    settings = get_settings()
    data_updates = {}
    if getattr(args, "source", None):
        data_updates["source"] = args.source
    if getattr(args, "data_dir", None):
        data_updates["data_dir"] = args.data_dir
    database_updates = {}
    if getattr(args, "database_url", None):
        database_updates["url"] = args.database_url

    if not data_updates and not database_updates:
        return settings
    return settings.model_copy(update={
        "data": settings.data.model_copy(update=data_updates),
        "database": settings.database.model_copy(update=database_updates),
    })


def _weight(value: str) -> Decimal:
    """argparse type for a non-negative decimal weight"""
    try:
        weight = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid weight: {value!r}")
    if not weight.is_finite() or weight < 0:
        raise argparse.ArgumentTypeError(f"weight must be a non-negative number: {value!r}")
    return weight


def _positive_int(value: str) -> int:
    """argparse type for counts of at least 1"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return number


def _weights_for(args: argparse.Namespace, settings: Settings):
    from coffee_expansion.scoring.scorer import ScoringWeights

    overrides = {}
    for name in ("revenue_weight", "customer_weight", "population_weight", "rent_weight"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if not overrides:
        return None
    base = ScoringWeights.from_settings(settings.scoring)
    return ScoringWeights(**{**base.model_dump(), **overrides})


def cmd_recommend(args: argparse.Namespace) -> int:
    from coffee_expansion.reporting.emitter import render, write_report
    from coffee_expansion.scoring.pipeline import run_pipeline

    settings = _settings_for(args)
    report = run_pipeline(k=args.k, weights=_weights_for(args, settings), settings=settings)

    if args.output:
        write_report(report, args.output, args.format if args.format != "table" else None)
    else:
        print(render(report, args.format))
    return 0


def cmd_insights(args: argparse.Namespace) -> int:
    import polars as pl

    from coffee_expansion.analytics import insights
    from coffee_expansion.ingestion.loaders import load_snapshot

    snapshot = load_snapshot(_settings_for(args))
    if args.query == "cities":
        frame = insights.city_sales_summary(snapshot)
    elif args.query == "products":
        frame = insights.product_sales_summary(snapshot)
    elif args.query == "top-products":
        frame = insights.top_products_by_city(snapshot, n=args.n)
    else:
        frame = insights.monthly_revenue_growth(snapshot)

    with pl.Config(tbl_rows=-1, tbl_hide_dataframe_shape=True):
        print(frame)
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    from coffee_expansion.data.generators import SnapshotGenerator

    generator = SnapshotGenerator(seed=args.seed)
    snapshot = generator.generate(customers=args.customers, sales=args.sales)
    written = generator.write_csv(snapshot, args.output_dir)
    for name, path in written.items():
        print(f"{name}: {path}")
    return 0


def cmd_seed_db(args: argparse.Namespace) -> int:
    from coffee_expansion.database.connection import create_db_engine
    from coffee_expansion.ingestion.loaders import CsvSnapshotLoader, seed_database

    settings = _settings_for(args)
    snapshot = CsvSnapshotLoader(settings.data.data_dir).load().snapshot
    engine = create_db_engine(settings.database.url)
    try:
        inserted = seed_database(engine, snapshot)
    finally:
        engine.dispose()
    for table, rows in inserted.items():
        print(f"{table}: {rows} rows")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "coffee_expansion.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.dev,
        log_level="debug" if args.dev else "info",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coffee-expansion",
        description="Rank cities for coffee retail expansion",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-format", choices=["json", "text"], default=None, help="Override LOG_FORMAT")
    subparsers = parser.add_subparsers(dest="command", required=True)

    source_args = argparse.ArgumentParser(add_help=False)
    source_args.add_argument("--source", choices=["csv", "database"], help="Snapshot source")
    source_args.add_argument("--data-dir", help="Directory holding the CSV snapshot")
    source_args.add_argument("--database-url", help="SQLAlchemy database URL")

    recommend = subparsers.add_parser("recommend", parents=[source_args], help="Recommend top cities")
    recommend.add_argument("--k", type=_positive_int, default=None, help="Number of cities (default: SCORING_TOP_K)")
    recommend.add_argument(
        "--format",
        choices=["table", "json", "csv", "markdown"],
        default="table",
        help="Output format",
    )
    recommend.add_argument("--output", help="Write the report to this file instead of stdout")
    for name in ("revenue-weight", "customer-weight", "population-weight", "rent-weight"):
        recommend.add_argument(f"--{name}", type=_weight, default=None, help=f"Override the {name.replace('-', ' ')}")
    recommend.set_defaults(func=cmd_recommend)

    insights = subparsers.add_parser("insights", parents=[source_args], help="Supporting market queries")
    insights.add_argument("query", choices=["cities", "products", "top-products", "monthly-growth"])
    insights.add_argument("--n", type=_positive_int, default=3, help="Products per city for top-products")
    insights.set_defaults(func=cmd_insights)

    generate = subparsers.add_parser("generate", help="Generate a synthetic CSV snapshot")
    generate.add_argument("--output-dir", default="data", help="Target directory")
    generate.add_argument("--customers", type=int, default=500)
    generate.add_argument("--sales", type=int, default=10_000)
    generate.add_argument("--seed", type=int, default=42)
    generate.set_defaults(func=cmd_generate)

    seed_db = subparsers.add_parser("seed-db", parents=[source_args], help="Load a CSV snapshot into the database")
    seed_db.set_defaults(func=cmd_seed_db)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--dev", action="store_true", help="Auto-reload")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        return args.func(args)
    except ExpansionAnalyticsError as e:
        logger.error("Command failed", command=args.command, error=type(e).__name__)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_PIPELINE_ERROR
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_PIPELINE_ERROR


if __name__ == "__main__":
    sys.exit(main())
