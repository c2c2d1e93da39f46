"""
Catalog Models: Category, DietType, Recipe, Product.

A Product is the sellable unit (net price + stock) of exactly one Recipe.
Recipe.deleted_at is maintained by the stock cascade: set while the linked
product is out of stock, cleared once it is replenished.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin


class Category(Base):
    """
    Menu category. Checkout splits a cart into one order per category,
    each with its own delivery time.
    """

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name!r})>"


class DietType(Base):
    """Diet label (vegan, keto, ...) used as a catalog filter."""

    __tablename__ = "diet_type"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<DietType(id={self.id}, name={self.name!r})>"


class Recipe(TimestampMixin, Base):
    """
    Catalog metadata shown to customers.

    deleted_at non-null means the recipe is hidden from the public menu.
    """

    __tablename__ = "recipe"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    calories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    protein_g: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 1), nullable=True)
    carbs_g: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 1), nullable=True)
    fats_g: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 1), nullable=True)
    picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("category.id"), nullable=True, index=True
    )
    diet_type_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("diet_type.id"), nullable=True, index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    # Relationships
    category: Mapped[Optional["Category"]] = relationship()
    diet_type: Mapped[Optional["DietType"]] = relationship()
    product: Mapped[Optional["Product"]] = relationship(back_populates="recipe")

    @property
    def is_visible(self) -> bool:
        return self.deleted_at is None

    def __repr__(self) -> str:
        state = "visible" if self.deleted_at is None else "hidden"
        return f"<Recipe(id={self.id}, name={self.name!r}, {state})>"


class Product(TimestampMixin, Base):
    """
    Sellable item: net unit price and on-hand stock.

    Stock is mutated only through StockService (admin writes, checkout
    decrements); price only through StockService.adjust_price.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    recipe_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("recipe.id"), nullable=True, unique=True
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    recipe: Mapped[Optional["Recipe"]] = relationship(back_populates="product")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        Index("ix_product_stock", "stock"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, recipe_id={self.recipe_id}, price={self.price}, stock={self.stock})>"
