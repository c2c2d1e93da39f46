"""
Cart Model: one CartItem per (user, product) pending checkout.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .catalog import Product


class CartItem(TimestampMixin, Base):
    """
    A line in a user's cart with the pricing the customer was shown.

    unit_price_gross always equals round(unit_price_net * (1 + tax_rate/100), 2);
    every mutation re-prices the line through the pricing engine.
    """

    __tablename__ = "cart_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_net: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price_gross: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Relationships
    product: Mapped["Product"] = relationship()

    __table_args__ = (
        # One line per product per user (upsert on add)
        UniqueConstraint("user_id", "product_id", name="uq_cart_item_user_product"),
        CheckConstraint("quantity > 0", name="ck_cart_item_quantity_positive"),
    )

    def __repr__(self) -> str:
        return f"<CartItem(id={self.id}, user_id={self.user_id}, product_id={self.product_id}, qty={self.quantity})>"
