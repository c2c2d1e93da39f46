"""
Order Models: Order (one per category per checkout) and OrderItem.

Status is monotone: draft -> confirmed. Items are immutable once created and
carry the price snapshot taken from the cart at checkout.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nutribite_shared.config.constants import Limits, OrderStatus

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .catalog import Product


class Order(TimestampMixin, Base):
    """
    A scheduled draft or confirmed order.

    total_price == sum(item.unit_price_gross * item.quantity) over its items.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.DRAFT)
    category_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("category.id"), nullable=True
    )
    delivery_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_calories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Idempotency-Key of the checkout request that created this order
    checkout_key: Mapped[Optional[str]] = mapped_column(
        String(Limits.MAX_IDEMPOTENCY_KEY_LENGTH), nullable=True
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id"
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ('{OrderStatus.DRAFT}', '{OrderStatus.CONFIRMED}')",
            name="ck_customer_order_status",
        ),
        Index("ix_customer_order_customer_status", "customer_id", "status"),
        Index("ix_customer_order_checkout_key", "customer_id", "checkout_key"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, customer_id={self.customer_id}, status={self.status}, total={self.total_price})>"


class OrderItem(Base):
    """A product line of an order, priced at checkout time."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_net: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price_gross: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    delivery_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price_gross * self.quantity

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, qty={self.quantity})>"
