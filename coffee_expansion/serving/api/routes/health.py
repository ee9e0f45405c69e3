"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from coffee_expansion.config.settings import Settings
from coffee_expansion.database.connection import check_database_health, create_db_engine
from coffee_expansion.serving.api.dependencies import get_app_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def check_snapshot_source(settings: Settings) -> Dict[str, Any]:
    """Check that the configured snapshot source is reachable"""
    if settings.data.source == "database":
        engine = create_db_engine(settings.database.url)
        try:
            return check_database_health(engine)
        finally:
            engine.dispose()

    data_dir = Path(settings.data.data_dir)
    files = [
        settings.data.cities_file,
        settings.data.customers_file,
        settings.data.products_file,
        settings.data.sales_file,
    ]
    missing = [name for name in files if not (data_dir / name).exists()]
    if missing:
        return {"status": "unhealthy", "source": "csv", "missing_files": missing}
    return {"status": "healthy", "source": "csv", "directory": str(data_dir)}


@router.get("/health", response_model=HealthResponse)
def health_check(response: Response, settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Health check endpoint.

    Checks:
    - Application status
    - Snapshot source availability
    """
    checks = {"snapshot_source": check_snapshot_source(settings)}
    overall_status = "healthy"
    if checks["snapshot_source"].get("status") != "healthy":
        overall_status = "unhealthy"
        response.status_code = 503

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}
