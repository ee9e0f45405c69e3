"""
Unit Tests - Snapshot Loading
"""
from datetime import date

import pytest
import polars as pl
from polars.testing import assert_frame_equal
from sqlalchemy import inspect as sa_inspect

from coffee_expansion.data.generators import SnapshotGenerator
from coffee_expansion.data.records import SALE_SCHEMA
from coffee_expansion.data.snapshot import Snapshot, conform_frame
from coffee_expansion.database.connection import check_database_health, create_db_engine
from coffee_expansion.database.models import CityModel, CustomerModel, ProductModel, SaleModel
from coffee_expansion.exceptions import DataIntegrityError, SchemaError
from coffee_expansion.ingestion.loaders import (
    CsvSnapshotLoader,
    DatabaseSnapshotLoader,
    SnapshotSource,
    create_snapshot_loader,
    load_snapshot,
    seed_database,
)


@pytest.fixture
def generated_snapshot() -> Snapshot:
    return SnapshotGenerator(seed=7).generate(customers=50, sales=300)


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'coffee.db'}")
    yield engine
    engine.dispose()


def assert_snapshots_equal(left: Snapshot, right: Snapshot):
    assert_frame_equal(left.cities, right.cities)
    assert_frame_equal(left.customers, right.customers)
    assert_frame_equal(left.products, right.products)
    assert_frame_equal(left.sales, right.sales)


class TestConformFrame:
    """Tests for schema conformance"""

    def test_parses_iso_dates(self):
        df = pl.DataFrame({
            "sale_id": [1],
            "sale_date": ["2024-03-15"],
            "product_id": [1],
            "customer_id": [1],
            "total": [1300],
            "rating": [5],
        })

        result = conform_frame(df, SALE_SCHEMA, "sales")

        assert result["sale_date"].to_list() == [date(2024, 3, 15)]
        assert result.schema["total"] == pl.Float64

    def test_optional_column_filled_with_nulls(self):
        df = pl.DataFrame({
            "sale_id": [1],
            "sale_date": [date(2024, 3, 15)],
            "product_id": [1],
            "customer_id": [1],
            "total": [1300.0],
        })

        result = conform_frame(df, SALE_SCHEMA, "sales")

        assert result["rating"].to_list() == [None]

    def test_missing_required_column(self):
        df = pl.DataFrame({"sale_id": [1], "total": [10.0]})

        with pytest.raises(SchemaError) as exc_info:
            conform_frame(df, SALE_SCHEMA, "sales")

        assert exc_info.value.collection == "sales"
        assert "missing column 'customer_id'" in exc_info.value.problems

    def test_uncastable_values(self):
        df = pl.DataFrame({
            "sale_id": ["one"],
            "sale_date": ["2024-03-15"],
            "product_id": [1],
            "customer_id": [1],
            "total": [10.0],
        })

        with pytest.raises(SchemaError):
            conform_frame(df, SALE_SCHEMA, "sales")


class TestCsvSnapshotLoader:
    """Tests for CsvSnapshotLoader"""

    def test_load_written_snapshot(self, generated_snapshot, tmp_path):
        """Test generated CSVs load back unchanged"""
        SnapshotGenerator(seed=7).write_csv(generated_snapshot, tmp_path)

        result = CsvSnapshotLoader(tmp_path).load()

        assert result.source == SnapshotSource.CSV
        assert result.row_counts == {"cities": 14, "customers": 50, "products": 12, "sales": 300}
        assert result.validation is not None
        assert_snapshots_equal(result.snapshot, generated_snapshot)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CsvSnapshotLoader(tmp_path).load()

    def test_orphan_sale_rejected(self, orphan_sale_snapshot, tmp_path):
        SnapshotGenerator().write_csv(orphan_sale_snapshot, tmp_path)

        with pytest.raises(DataIntegrityError):
            CsvSnapshotLoader(tmp_path).load()

    def test_validation_can_be_disabled(self, orphan_sale_snapshot, tmp_path):
        SnapshotGenerator().write_csv(orphan_sale_snapshot, tmp_path)

        result = CsvSnapshotLoader(tmp_path, enable_validation=False).load()

        assert result.validation is None
        assert result.row_counts["sales"] == 7

    def test_null_markers(self, tmp_path):
        """Test NULL cells become nulls, not strings"""
        (tmp_path / "city.csv").write_text(
            "city_id,city_name,population,estimated_rent,city_rank\n"
            "1,Delhi,31000000,26000,1\n"
            "2,Pune,NULL,15300,\n"
        )
        (tmp_path / "customers.csv").write_text("customer_id,customer_name,city_id\n1,Asha,1\n")
        (tmp_path / "products.csv").write_text("product_id,product_name,price\n1,Coffee Mug (Ceramic),350\n")
        (tmp_path / "sales.csv").write_text(
            "sale_id,sale_date,product_id,customer_id,total,rating\n1,2024-01-02,1,1,350,4\n"
        )

        snapshot = CsvSnapshotLoader(tmp_path).load().snapshot

        assert snapshot.cities["population"].to_list() == [31_000_000, None]
        assert snapshot.cities["city_rank"].to_list() == [1, None]
        assert snapshot.sales["sale_date"].to_list() == [date(2024, 1, 2)]

    def test_products_price_header_accepted(self, tmp_path):
        """Test a products export with the capitalised Price header loads"""
        (tmp_path / "city.csv").write_text(
            "city_id,city_name,population,estimated_rent,city_rank\n1,Delhi,31000000,26000,1\n"
        )
        (tmp_path / "customers.csv").write_text("customer_id,customer_name,city_id\n1,Asha,1\n")
        (tmp_path / "products.csv").write_text("product_id,product_name,Price\n1,Coffee Mug (Ceramic),350\n")
        (tmp_path / "sales.csv").write_text(
            "sale_id,sale_date,product_id,customer_id,total,rating\n1,2024-01-02,1,1,350,4\n"
        )

        snapshot = CsvSnapshotLoader(tmp_path).load().snapshot

        assert snapshot.products["price"].to_list() == [350.0]


class TestDatabaseSnapshotLoader:
    """Tests for DatabaseSnapshotLoader"""

    def test_seed_and_load(self, generated_snapshot, sqlite_engine):
        """Test a seeded database loads back the same snapshot"""
        inserted = seed_database(sqlite_engine, generated_snapshot)

        assert inserted == {"city": 14, "customers": 50, "products": 12, "sales": 300}

        result = DatabaseSnapshotLoader(engine=sqlite_engine).load()

        assert result.source == SnapshotSource.DATABASE
        assert_snapshots_equal(result.snapshot, generated_snapshot)

    def test_seed_sample_snapshot(self, sample_snapshot, sqlite_engine):
        seed_database(sqlite_engine, sample_snapshot)

        snapshot = DatabaseSnapshotLoader(engine=sqlite_engine).load().snapshot

        assert snapshot.customers["city_id"].to_list() == [1, 1, 2, 3, None]
        assert snapshot.sales["rating"].null_count() == 1

    def test_schema_matches_original_tables(self, sample_snapshot, sqlite_engine):
        """Test seeded tables keep the Price header and foreign keys, with plain column mappings"""
        seed_database(sqlite_engine, sample_snapshot)
        inspector = sa_inspect(sqlite_engine)

        assert "Price" in {c["name"] for c in inspector.get_columns("products")}
        assert {fk["referred_table"] for fk in inspector.get_foreign_keys("sales")} == {"customers", "products"}
        assert [fk["referred_table"] for fk in inspector.get_foreign_keys("customers")] == ["city"]
        for model in (CityModel, CustomerModel, ProductModel, SaleModel):
            assert not sa_inspect(model).relationships

    def test_database_health(self, sqlite_engine):
        health = check_database_health(sqlite_engine)

        assert health["status"] == "healthy"
        assert health["dialect"] == "sqlite"


class TestLoaderFactory:
    """Tests for create_snapshot_loader"""

    def test_csv_by_default(self, test_settings):
        assert isinstance(create_snapshot_loader(test_settings), CsvSnapshotLoader)

    def test_database_source(self, test_settings, sample_snapshot):
        settings = test_settings.model_copy(
            update={"data": test_settings.data.model_copy(update={"source": "database"})}
        )
        engine = create_db_engine(settings.database.url)
        try:
            seed_database(engine, sample_snapshot)
        finally:
            engine.dispose()

        loader = create_snapshot_loader(settings)
        loader.engine.dispose()
        snapshot = load_snapshot(settings)

        assert isinstance(loader, DatabaseSnapshotLoader)
        assert snapshot.row_counts() == sample_snapshot.row_counts()
