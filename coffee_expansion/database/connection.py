"""
Database Connection Management

Synchronous SQLAlchemy 2.0 engine and session helpers for the relational
store holding the coffee sales schema.
"""

import time
from contextlib import contextmanager
from typing import Generator, Optional

import structlog
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from coffee_expansion.config import get_settings
from .models import Base

logger = structlog.get_logger(__name__)


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create a database engine.

    Args:
        url: SQLAlchemy URL, defaults to DATABASE_URL
        echo: Echo SQL, defaults to DATABASE_ECHO

    Returns:
        Engine: The database engine
    """
    settings = get_settings()
    url = url or settings.database.url
    engine = create_engine(
        url,
        echo=settings.database.echo if echo is None else echo,
        pool_pre_ping=True,
    )
    logger.debug("Database engine created", dialect=engine.dialect.name)
    return engine


def create_schema(engine: Engine) -> None:
    """Create the city/customers/products/sales tables if absent"""
    Base.metadata.create_all(engine)
    logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))


@contextmanager
def session_scope(engine: Engine) -> Generator[Session, None, None]:
    """
    Get a database session bound to the engine.

    Commits on success, rolls back on error.

    Example:
        with session_scope(engine) as db:
            db.execute(query)
    """
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        session.rollback()
        raise
    finally:
        session.close()


def check_database_health(engine: Engine) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    try:
        start = time.perf_counter()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
            "dialect": engine.dialect.name,
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
