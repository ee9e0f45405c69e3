"""
Snapshot Loaders

Data-access layer supplying the four record collections to the pipeline.
Supports:
- CSV directories (one file per collection)
- Relational databases holding the coffee sales schema (via SQLAlchemy)

Loaders return a validated, immutable Snapshot; integrity problems surface
here, before any aggregation runs.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog
from sqlalchemy import Engine, insert, select

from coffee_expansion.config import get_settings
from coffee_expansion.config.settings import Settings
from coffee_expansion.data.records import CITY_SCHEMA, CUSTOMER_SCHEMA, PRODUCT_SCHEMA, SALE_SCHEMA
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.database.connection import create_db_engine, create_schema, session_scope
from coffee_expansion.database.models import CityModel, CustomerModel, ProductModel, SaleModel
from coffee_expansion.quality.validators import ValidationResult, validate_snapshot

logger = structlog.get_logger(__name__)


class SnapshotSource(str, Enum):
    """Supported snapshot sources"""
    CSV = "csv"
    DATABASE = "database"


@dataclass
class LoadResult:
    """Result of a snapshot load"""
    snapshot: Snapshot
    source: SnapshotSource
    location: str
    row_counts: Dict[str, int]
    validation: Optional[ValidationResult]
    started_at: datetime
    completed_at: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


class CsvSnapshotLoader:
    """
    Load a snapshot from a directory of CSV files.

    Example:
        loader = CsvSnapshotLoader("data/raw")
        snapshot = loader.load().snapshot
    """

    null_values: List[str] = ["", "NULL", "null", "None", "NA", "N/A"]

    # Headers of the original table exports that differ from the snapshot schema
    column_aliases: Dict[str, Dict[str, str]] = {"products": {"Price": "price"}}

    def __init__(
        self,
        data_dir: Union[str, Path],
        cities_file: Optional[str] = None,
        customers_file: Optional[str] = None,
        products_file: Optional[str] = None,
        sales_file: Optional[str] = None,
        enable_validation: bool = True,
    ):
        data_settings = get_settings().data
        self.data_dir = Path(data_dir)
        self.files = {
            "city": cities_file or data_settings.cities_file,
            "customers": customers_file or data_settings.customers_file,
            "products": products_file or data_settings.products_file,
            "sales": sales_file or data_settings.sales_file,
        }
        self.enable_validation = enable_validation

    def _read_csv(self, collection: str) -> pl.DataFrame:
        """Read one collection file"""
        path = self.data_dir / self.files[collection]
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        # Types are settled by the snapshot schema; dates stay strings here
        df = pl.read_csv(
            path,
            null_values=self.null_values,
            infer_schema_length=10000,
            try_parse_dates=False,
        )
        aliases = {
            source: target
            for source, target in self.column_aliases.get(collection, {}).items()
            if source in df.columns and target not in df.columns
        }
        if aliases:
            df = df.rename(aliases)
        logger.debug(f"Read {len(df)} rows", file=str(path), collection=collection)
        return df

    def load(self) -> LoadResult:
        """
        Read and validate the four collections.

        Raises:
            FileNotFoundError: a collection file is absent
            SchemaError: a file lacks required columns
            DataIntegrityError: the snapshot fails integrity checks
        """
        started_at = datetime.now(timezone.utc)
        logger.info("Loading CSV snapshot", directory=str(self.data_dir))

        snapshot = Snapshot.from_frames(
            cities=self._read_csv("city"),
            customers=self._read_csv("customers"),
            products=self._read_csv("products"),
            sales=self._read_csv("sales"),
        )
        validation = validate_snapshot(snapshot) if self.enable_validation else None

        result = LoadResult(
            snapshot=snapshot,
            source=SnapshotSource.CSV,
            location=str(self.data_dir),
            row_counts=snapshot.row_counts(),
            validation=validation,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
        logger.info("CSV snapshot loaded", duration_seconds=result.duration_seconds, **result.row_counts)
        return result


class DatabaseSnapshotLoader:
    """
    Load a snapshot from the city/customers/products/sales tables.

    Example:
        loader = DatabaseSnapshotLoader("sqlite:///data/coffee_sales.db")
        snapshot = loader.load().snapshot
    """

    def __init__(
        self,
        url: Optional[str] = None,
        engine: Optional[Engine] = None,
        enable_validation: bool = True,
    ):
        self.engine = engine or create_db_engine(url)
        self.enable_validation = enable_validation

    def _fetch(self, statement, schema: Dict[str, pl.DataType]) -> pl.DataFrame:
        with self.engine.connect() as conn:
            rows = conn.execute(statement).fetchall()
        return pl.DataFrame([dict(r._mapping) for r in rows], schema=schema)

    def load(self) -> LoadResult:
        """
        Query and validate the four tables.

        Raises:
            DataIntegrityError: the snapshot fails integrity checks
        """
        started_at = datetime.now(timezone.utc)
        location = self.engine.url.render_as_string(hide_password=True)
        logger.info("Loading database snapshot", url=location)

        snapshot = Snapshot.from_frames(
            cities=self._fetch(
                select(
                    CityModel.city_id,
                    CityModel.city_name,
                    CityModel.population,
                    CityModel.estimated_rent,
                    CityModel.city_rank,
                ).order_by(CityModel.city_id),
                CITY_SCHEMA,
            ),
            customers=self._fetch(
                select(CustomerModel.customer_id, CustomerModel.customer_name, CustomerModel.city_id).order_by(
                    CustomerModel.customer_id
                ),
                CUSTOMER_SCHEMA,
            ),
            products=self._fetch(
                select(ProductModel.product_id, ProductModel.product_name, ProductModel.price.label("price")).order_by(
                    ProductModel.product_id
                ),
                PRODUCT_SCHEMA,
            ),
            sales=self._fetch(
                select(
                    SaleModel.sale_id,
                    SaleModel.sale_date,
                    SaleModel.product_id,
                    SaleModel.customer_id,
                    SaleModel.total,
                    SaleModel.rating,
                ).order_by(SaleModel.sale_id),
                SALE_SCHEMA,
            ),
        )
        validation = validate_snapshot(snapshot) if self.enable_validation else None

        result = LoadResult(
            snapshot=snapshot,
            source=SnapshotSource.DATABASE,
            location=location,
            row_counts=snapshot.row_counts(),
            validation=validation,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
        logger.info("Database snapshot loaded", duration_seconds=result.duration_seconds, **result.row_counts)
        return result


def seed_database(engine: Engine, snapshot: Snapshot) -> Dict[str, int]:
    """
    Create the schema and insert a snapshot into it.

    Tables are written in foreign-key order. Intended for demos and tests.

    Returns:
        Rows inserted per table
    """
    create_schema(engine)
    plan = [
        (CityModel, snapshot.cities),
        (CustomerModel, snapshot.customers),
        (ProductModel, snapshot.products),
        (SaleModel, snapshot.sales),
    ]

    inserted = {}
    with session_scope(engine) as db:
        for model, frame in plan:
            rows = frame.to_dicts()
            if rows:
                db.execute(insert(model), rows)
            inserted[model.__tablename__] = len(rows)

    logger.info("Database seeded", **inserted)
    return inserted


def create_snapshot_loader(settings: Optional[Settings] = None):
    """Create the loader selected by DATA_SOURCE"""
    settings = settings or get_settings()
    source = SnapshotSource(settings.data.source)

    if source == SnapshotSource.DATABASE:
        return DatabaseSnapshotLoader(
            url=settings.database.url,
            enable_validation=settings.data.validate_snapshot,
        )
    return CsvSnapshotLoader(
        settings.data.data_dir,
        cities_file=settings.data.cities_file,
        customers_file=settings.data.customers_file,
        products_file=settings.data.products_file,
        sales_file=settings.data.sales_file,
        enable_validation=settings.data.validate_snapshot,
    )


def load_snapshot(settings: Optional[Settings] = None) -> Snapshot:
    """Load and validate the snapshot from the configured source"""
    return create_snapshot_loader(settings).load().snapshot
