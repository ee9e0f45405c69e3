"""
Data Ingestion Module
"""
from .loaders import (
    CsvSnapshotLoader,
    DatabaseSnapshotLoader,
    LoadResult,
    SnapshotSource,
    create_snapshot_loader,
    load_snapshot,
    seed_database,
)

__all__ = [
    "CsvSnapshotLoader",
    "DatabaseSnapshotLoader",
    "LoadResult",
    "SnapshotSource",
    "create_snapshot_loader",
    "load_snapshot",
    "seed_database",
]
