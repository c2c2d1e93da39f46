"""
Order Repository - Data access for orders, always scoped to the customer.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import Select, select, update
from sqlalchemy.orm import selectinload

from nutribite_shared.config.constants import OrderStatus
from nutribite_api.models import Order, OrderItem, Product
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    customer_id: int | None = None
    status: str | None = None


class OrderRepository(BaseRepository[Order]):
    """
    Repository for Order entities.

    Guarantees eager loading of items.
    """

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        return (
            select(Order)
            .options(
                selectinload(Order.items)
                .joinedload(OrderItem.product)
                .joinedload(Product.recipe)
            )
            .order_by(Order.created_at.desc(), Order.id.desc())
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderFilters):
            filters = OrderFilters(**filters.__dict__)

        if filters.customer_id is not None:
            query = query.where(Order.customer_id == filters.customer_id)

        if filters.status:
            query = query.where(Order.status == filters.status)

        return query

    def find_owned(self, customer_id: int, order_id: int) -> Order | None:
        query = self._base_query().where(
            Order.id == order_id,
            Order.customer_id == customer_id,
        )
        return self._db.scalar(query)

    def latest_draft(self, customer_id: int) -> Order | None:
        query = (
            self._base_query()
            .where(Order.customer_id == customer_id, Order.status == OrderStatus.DRAFT)
            .limit(1)
        )
        return self._db.scalar(query)

    def find_by_checkout_key(self, customer_id: int, checkout_key: str) -> Sequence[Order]:
        query = (
            select(Order)
            .where(Order.customer_id == customer_id, Order.checkout_key == checkout_key)
            .order_by(Order.id)
        )
        return self._db.execute(query).scalars().all()

    def add_order(self, order: Order, items: list[OrderItem]) -> Order:
        """Insert an order and its items."""
        order.items = items
        self._db.add(order)
        self._db.flush()
        return order

    def confirm_draft(self, customer_id: int, order_id: int, now: datetime) -> int:
        """
        Atomic draft -> confirmed transition.

        Returns the number of rows changed: 0 when the order is missing,
        owned by someone else or no longer a draft.
        """
        result = self._db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.customer_id == customer_id,
                Order.status == OrderStatus.DRAFT,
            )
            .values(status=OrderStatus.CONFIRMED, confirmed_at=now)
        )
        return result.rowcount or 0
