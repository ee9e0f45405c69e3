"""
Coffee Expansion Analytics

City scoring and ranking pipeline that recommends which cities a coffee
retailer should expand into.
"""
from .exceptions import (
    DataIntegrityError,
    ExpansionAnalyticsError,
    InsufficientDataError,
    MissingDataError,
    SchemaError,
)
from .scoring.pipeline import recommend_top_cities, run_pipeline

__version__ = "1.0.0"

__all__ = [
    "recommend_top_cities",
    "run_pipeline",
    "ExpansionAnalyticsError",
    "DataIntegrityError",
    "MissingDataError",
    "InsufficientDataError",
    "SchemaError",
]
