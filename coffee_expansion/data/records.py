"""
Snapshot Records

Typed records for the four input collections, mirroring the original
`city`, `customers`, `products` and `sales` tables.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Union

import polars as pl

Money = Union[Decimal, float, int]

CENTS = Decimal("0.01")


def to_decimal(value: Optional[Money]) -> Optional[Decimal]:
    """Convert a stored number to Decimal, keeping None as None"""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _to_float(value: Optional[Money]) -> Optional[float]:
    return None if value is None else float(value)


# Column schemas used for every in-memory frame
CITY_SCHEMA: Dict[str, pl.DataType] = {
    "city_id": pl.Int64,
    "city_name": pl.Utf8,
    "population": pl.Int64,
    "estimated_rent": pl.Float64,
    "city_rank": pl.Int64,
}

CUSTOMER_SCHEMA: Dict[str, pl.DataType] = {
    "customer_id": pl.Int64,
    "customer_name": pl.Utf8,
    "city_id": pl.Int64,
}

PRODUCT_SCHEMA: Dict[str, pl.DataType] = {
    "product_id": pl.Int64,
    "product_name": pl.Utf8,
    "price": pl.Float64,
}

SALE_SCHEMA: Dict[str, pl.DataType] = {
    "sale_id": pl.Int64,
    "sale_date": pl.Date,
    "product_id": pl.Int64,
    "customer_id": pl.Int64,
    "total": pl.Float64,
    "rating": pl.Int64,
}

# Columns that may be absent from a source and are then filled with nulls
OPTIONAL_COLUMNS = {"city_rank", "rating"}


@dataclass(frozen=True)
class City:
    """A candidate city"""
    city_id: int
    city_name: str
    population: Optional[int]
    estimated_rent: Optional[Decimal]
    city_rank: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "city_id": self.city_id,
            "city_name": self.city_name,
            "population": self.population,
            "estimated_rent": _to_float(self.estimated_rent),
            "city_rank": self.city_rank,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "City":
        return cls(
            city_id=row["city_id"],
            city_name=row["city_name"],
            population=row["population"],
            estimated_rent=to_decimal(row["estimated_rent"]),
            city_rank=row.get("city_rank"),
        )


@dataclass(frozen=True)
class Customer:
    """A customer, optionally attributed to a city"""
    customer_id: int
    customer_name: str
    city_id: Optional[int]

    def to_row(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "city_id": self.city_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Customer":
        return cls(row["customer_id"], row["customer_name"], row["city_id"])


@dataclass(frozen=True)
class Product:
    """A catalog product"""
    product_id: int
    product_name: str
    price: Decimal

    def to_row(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "price": _to_float(self.price),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        return cls(row["product_id"], row["product_name"], to_decimal(row["price"]))


@dataclass(frozen=True)
class Sale:
    """A single sale transaction"""
    sale_id: int
    sale_date: date
    product_id: int
    customer_id: int
    total: Decimal
    rating: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "sale_id": self.sale_id,
            "sale_date": self.sale_date,
            "product_id": self.product_id,
            "customer_id": self.customer_id,
            "total": _to_float(self.total),
            "rating": self.rating,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Sale":
        return cls(
            sale_id=row["sale_id"],
            sale_date=row["sale_date"],
            product_id=row["product_id"],
            customer_id=row["customer_id"],
            total=to_decimal(row["total"]),
            rating=row.get("rating"),
        )
