"""
Database Module
"""
from .connection import check_database_health, create_db_engine, create_schema, session_scope
from .models import Base, CityModel, CustomerModel, ProductModel, SaleModel

__all__ = [
    "check_database_health",
    "create_db_engine",
    "create_schema",
    "session_scope",
    "Base",
    "CityModel",
    "CustomerModel",
    "ProductModel",
    "SaleModel",
]
