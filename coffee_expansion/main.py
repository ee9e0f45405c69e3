"""
FastAPI Application

Main entry point for the Coffee Expansion Analytics API.

    uvicorn coffee_expansion.main:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from coffee_expansion.config import get_settings
from coffee_expansion.config.logging import configure_logging
from coffee_expansion.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info(
        "Starting Coffee Expansion Analytics API",
        source=settings.data.source,
        top_k=settings.scoring.top_k,
    )
    yield
    logger.info("Shutting down...")


app = create_api_app(settings, lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
