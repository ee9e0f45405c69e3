"""
Coffee Expansion Analytics
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringSettings(BaseSettings):
    """Composite Score Configuration"""

    model_config = SettingsConfigDict(env_prefix="SCORING_")

    revenue_weight: Decimal = Field(default=Decimal("0.4"), ge=0, description="Weight of city revenue")
    customer_weight: Decimal = Field(default=Decimal("0.3"), ge=0, description="Weight of distinct customer count")
    population_weight: Decimal = Field(default=Decimal("0.2"), ge=0, description="Weight of scaled population")
    rent_weight: Decimal = Field(default=Decimal("0.1"), ge=0, description="Penalty weight of scaled rent")

    # Unit normalization, keeps population/rent comparable to revenue
    population_scale: Decimal = Field(default=Decimal("1000"), gt=0, description="Population divisor")
    rent_scale: Decimal = Field(default=Decimal("1000"), gt=0, description="Rent divisor")

    top_k: int = Field(default=3, ge=1, description="Number of cities to recommend")
    consumer_share: Decimal = Field(
        default=Decimal("0.25"),
        ge=0,
        le=1,
        description="Share of the population estimated to drink coffee",
    )
    max_workers: Optional[int] = Field(default=None, ge=1, description="Scoring thread pool size")


class DataSettings(BaseSettings):
    """Input Data Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    source: Literal["csv", "database"] = Field(default="csv", description="Snapshot source")
    data_dir: str = Field(default="./data", description="Directory holding the CSV snapshot")
    cities_file: str = Field(default="city.csv", description="Cities file name")
    customers_file: str = Field(default="customers.csv", description="Customers file name")
    products_file: str = Field(default="products.csv", description="Products file name")
    sales_file: str = Field(default="sales.csv", description="Sales file name")
    output_dir: str = Field(default="./reports", description="Report output directory")
    validate_snapshot: bool = Field(default=True, description="Run data quality checks on load")


class DatabaseSettings(BaseSettings):
    """Relational Store Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(default="sqlite:///./data/coffee_sales.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL queries")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="coffee-expansion", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
