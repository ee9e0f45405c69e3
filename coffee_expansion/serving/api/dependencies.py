"""
API Dependencies
"""

from fastapi import Depends

from coffee_expansion.config import get_settings
from coffee_expansion.config.settings import Settings
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.ingestion.loaders import load_snapshot


def get_app_settings() -> Settings:
    return get_settings()


def get_snapshot(settings: Settings = Depends(get_app_settings)) -> Snapshot:
    """Load the snapshot from the configured source for this request"""
    return load_snapshot(settings)
