"""
FastAPI Application Factory

Creates and configures the recommendation API application.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from coffee_expansion.config import get_settings
from coffee_expansion.config.settings import Settings
from coffee_expansion.exceptions import (
    DataIntegrityError,
    ExpansionAnalyticsError,
    InsufficientDataError,
    SchemaError,
)
from coffee_expansion.serving.api.middleware import RequestLoggingMiddleware
from coffee_expansion.serving.api.routes import health_router, insights_router, recommendations_router

logger = structlog.get_logger(__name__)

# HTTP status per pipeline error
ERROR_STATUS = {
    InsufficientDataError: 422,
    DataIntegrityError: 409,
    SchemaError: 409,
}


async def pipeline_error_handler(request: Request, exc: ExpansionAnalyticsError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    logger.warning(
        "Pipeline error",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def snapshot_missing_handler(request: Request, exc: FileNotFoundError) -> JSONResponse:
    logger.error("Snapshot unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "SnapshotUnavailable", "stage": "ingest", "message": str(exc)},
    )


def create_api_app(settings: Optional[Settings] = None, lifespan=None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Coffee Expansion Analytics API",
        description="Ranks candidate cities for coffee retail expansion",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(ExpansionAnalyticsError, pipeline_error_handler)
    app.add_exception_handler(FileNotFoundError, snapshot_missing_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(recommendations_router, prefix="/api/v1/recommendations", tags=["Recommendations"])
    app.include_router(insights_router, prefix="/api/v1/insights", tags=["Insights"])

    @app.get("/api/v1/info")
    def api_info():
        """API information endpoint."""
        return {
            "name": "Coffee Expansion Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app
