"""
Cart Repository - Data access for cart lines, always scoped to the owner.
"""

from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload

from nutribite_api.models import CartItem, Product, Recipe


class CartRepository:
    """Owner-scoped access to cart_item rows."""

    def __init__(self, db: Session):
        self._db = db

    def list_for_user(self, user_id: int, lock: bool = False) -> Sequence[CartItem]:
        """
        Cart lines with product, recipe and category loaded.

        lock=True takes row locks on the cart lines only (the eager loads are
        outer joins) and refreshes lines already in the session.
        """
        query = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .options(
                joinedload(CartItem.product)
                .joinedload(Product.recipe)
                .joinedload(Recipe.category)
            )
            .order_by(CartItem.id.desc())
        )
        if lock:
            query = query.with_for_update(of=CartItem).execution_options(populate_existing=True)
        return self._db.execute(query).scalars().unique().all()

    def find_owned(self, user_id: int, item_id: int, lock: bool = False) -> CartItem | None:
        query = select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self._db.scalar(query)

    def find_line(self, user_id: int, product_id: int) -> CartItem | None:
        return self._db.scalar(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            )
        )

    def quantity_held_by_others(self, product_id: int, user_id: int) -> int:
        """Units of a product already sitting in other users' carts."""
        total = self._db.scalar(
            select(func.coalesce(func.sum(CartItem.quantity), 0)).where(
                CartItem.product_id == product_id,
                CartItem.user_id != user_id,
            )
        )
        return int(total or 0)

    def add(self, item: CartItem) -> CartItem:
        self._db.add(item)
        self._db.flush()
        return item

    def delete_line(self, item: CartItem) -> None:
        self._db.delete(item)
        self._db.flush()

    def delete_owned(self, user_id: int, item_id: int) -> int:
        result = self._db.execute(
            delete(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        return result.rowcount or 0

    def clear(self, user_id: int) -> int:
        result = self._db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        return result.rowcount or 0

    def delete_lines(self, user_id: int, item_ids: list[int]) -> int:
        if not item_ids:
            return 0
        result = self._db.execute(
            delete(CartItem).where(CartItem.user_id == user_id, CartItem.id.in_(item_ids))
        )
        return result.rowcount or 0
