"""
Market Insights Module
"""
from .insights import (
    city_sales_summary,
    monthly_revenue_growth,
    product_sales_summary,
    top_products_by_city,
)

__all__ = [
    "city_sales_summary",
    "monthly_revenue_growth",
    "product_sales_summary",
    "top_products_by_city",
]
