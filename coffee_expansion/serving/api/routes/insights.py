"""
Market Insight Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from coffee_expansion.analytics import insights
from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.serving.api.dependencies import get_snapshot

router = APIRouter()


class CitySales(BaseModel):
    """Sales totals of one city"""
    city_id: int
    city_name: str
    revenue: float
    sales_count: int
    customer_count: int


class CityTopProduct(BaseModel):
    """A top-selling product in a city"""
    city_id: int
    city_name: str
    rank: int
    product_name: str
    sales_count: int


class ProductSales(BaseModel):
    """Sales totals of one product"""
    product_id: int
    product_name: str
    sales_count: int
    revenue: float


@router.get("/cities", response_model=List[CitySales])
def get_city_sales(snapshot: Snapshot = Depends(get_snapshot)) -> List[CitySales]:
    """Revenue, sales and customers per city"""
    return [CitySales(**row) for row in insights.city_sales_summary(snapshot).to_dicts()]


@router.get("/products", response_model=List[ProductSales])
def get_product_sales(
    limit: Optional[int] = Query(default=None, ge=1),
    snapshot: Snapshot = Depends(get_snapshot),
) -> List[ProductSales]:
    """Best-selling products"""
    frame = insights.product_sales_summary(snapshot)
    if limit is not None:
        frame = frame.head(limit)
    return [ProductSales(**row) for row in frame.to_dicts()]


@router.get("/top-products", response_model=List[CityTopProduct])
def get_top_products(
    n: int = Query(default=3, ge=1, le=20),
    snapshot: Snapshot = Depends(get_snapshot),
) -> List[CityTopProduct]:
    """Top n products per city by number of sales"""
    return [CityTopProduct(**row) for row in insights.top_products_by_city(snapshot, n=n).to_dicts()]
