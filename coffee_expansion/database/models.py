"""
Database Models - Coffee Sales Schema

ORM mapping of the four-table retail schema the analysis runs against:

- city: candidate cities with population and estimated rent
- customers: customers attributed to a city
- products: coffee product catalog
- sales: sale transactions linking customers and products
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class CityModel(Base):
    """City dimension"""
    __tablename__ = "city"

    city_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    city_name: Mapped[str] = mapped_column(String(15), nullable=False)
    population: Mapped[Optional[int]] = mapped_column(Integer)
    estimated_rent: Mapped[Optional[float]] = mapped_column(Float)
    city_rank: Mapped[Optional[int]] = mapped_column(Integer)


class CustomerModel(Base):
    """Customer dimension"""
    __tablename__ = "customers"

    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_name: Mapped[str] = mapped_column(String(25), nullable=False)
    city_id: Mapped[Optional[int]] = mapped_column(ForeignKey("city.city_id"))

    __table_args__ = (
        Index("ix_customers_city_id", "city_id"),
    )


class ProductModel(Base):
    """Product dimension"""
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_name: Mapped[str] = mapped_column(String(35), nullable=False)
    price: Mapped[float] = mapped_column("Price", Float, nullable=False)


class SaleModel(Base):
    """Sale fact"""
    __tablename__ = "sales"

    sale_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.product_id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.customer_id"), nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)
    rating: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        Index("ix_sales_customer_id", "customer_id"),
        Index("ix_sales_product_id", "product_id"),
        Index("ix_sales_sale_date", "sale_date"),
    )
