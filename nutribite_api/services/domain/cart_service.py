"""
Cart Domain Service.

Per-user cart lines with stock capping. Every write locks the product row
first, so concurrent adds for the same product serialize and the units held
across all carts never exceed the product's stock.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.orm import Session

from nutribite_shared.config.constants import Limits
from nutribite_shared.config.logging import cart_logger as logger
from nutribite_shared.config.settings import Settings, settings as default_settings
from nutribite_shared.infrastructure.db import run_in_transaction
from nutribite_shared.utils.exceptions import (
    CartItemNotFoundError,
    OutOfStockError,
    ProductNotFoundError,
    ValidationError,
)
from nutribite_api.models import CartItem, Product
from nutribite_api.repositories import CartRepository, ProductRepository
from .pricing import line_total, price


@dataclass
class CartLineResult:
    """Outcome of add / set_quantity, telling the caller the effective quantity."""

    item_id: int
    product_id: int
    requested: int
    quantity: int
    capped: bool
    deleted: bool = False
    created: bool = False
    unit_price_gross: Decimal | None = None


@dataclass
class CartSummary:
    total_price: Decimal
    total_items: int
    total_calories: int


def build_cart_item(
    user_id: int,
    product: Product,
    quantity: int,
    tax_rate_percent: float | Decimal | None = None,
) -> CartItem:
    """New cart line priced from the product's current net price."""
    breakdown = price(product.price, tax_rate_percent)
    return CartItem(
        user_id=user_id,
        product_id=product.id,
        quantity=quantity,
        unit_price_net=breakdown.net,
        tax_rate=breakdown.tax_rate,
        tax_amount=breakdown.tax,
        unit_price_gross=breakdown.gross,
    )


def validate_quantity(value: Any, allow_zero: bool) -> int:
    """Quantities are plain integers; bools and floats are rejected."""
    minimum = 0 if allow_zero else 1
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValidationError(f"Quantity must be an integer >= {minimum}", value=value)
    if value > Limits.MAX_QUANTITY:
        raise ValidationError(f"Quantity must be <= {Limits.MAX_QUANTITY}", value=value)
    return value


class CartService:
    """
    Domain service for cart operations.

    Mutations run in their own transaction through run_in_transaction().
    """

    def __init__(self, db: Session, app_settings: Settings | None = None):
        self._db = db
        self._settings = app_settings or default_settings
        self._carts = CartRepository(db)
        self._products = ProductRepository(db)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _available_for(self, product: Product, user_id: int) -> int:
        """Stock not already held in other users' carts."""
        held = self._carts.quantity_held_by_others(product.id, user_id)
        return max(0, product.stock - held)

    def _reprice(self, item: CartItem, product: Product) -> None:
        breakdown = price(product.price, self._settings.tax_rate_percent)
        item.unit_price_net = breakdown.net
        item.tax_rate = breakdown.tax_rate
        item.tax_amount = breakdown.tax
        item.unit_price_gross = breakdown.gross

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, user_id: int, product_id: int, quantity: int) -> CartLineResult:
        """
        Add units of a product to the cart.

        The requested quantity is clamped to what is available; an existing
        line grows by the clamped amount and is re-capped at availability.

        Raises:
            ValidationError: quantity is not an integer >= 1
            ProductNotFoundError: product does not exist
            OutOfStockError: nothing is available
        """
        quantity = validate_quantity(quantity, allow_zero=False)

        def _add(db: Session) -> CartLineResult:
            product = self._products.lock_for_update(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            available = self._available_for(product, user_id)
            allowed = min(quantity, available)
            if allowed <= 0:
                raise OutOfStockError(product_id, user_id=user_id, stock=product.stock)

            existing = self._carts.find_line(user_id, product_id)
            if existing is not None:
                wanted = existing.quantity + quantity
                existing.quantity = min(existing.quantity + allowed, available)
                self._reprice(existing, product)
                db.flush()
                item, created = existing, False
            else:
                wanted = quantity
                item = build_cart_item(
                    user_id, product, allowed, self._settings.tax_rate_percent
                )
                self._carts.add(item)
                created = True

            return CartLineResult(
                item_id=item.id,
                product_id=product_id,
                requested=quantity,
                quantity=item.quantity,
                capped=item.quantity < wanted,
                created=created,
                unit_price_gross=item.unit_price_gross,
            )

        result = run_in_transaction(self._db, _add, operation="cart add", app_settings=self._settings)
        logger.info(
            "Cart item added",
            user_id=user_id,
            product_id=product_id,
            requested=quantity,
            quantity=result.quantity,
            capped=result.capped,
        )
        return result

    def set_quantity(self, user_id: int, item_id: int, quantity: int) -> CartLineResult:
        """
        Set the quantity of a cart line.

        0 deletes the line. A positive quantity is capped at availability and
        the line is re-priced from the product's current price; a cap down to
        0 deletes the line.

        Raises:
            ValidationError: quantity is not an integer >= 0
            CartItemNotFoundError: the line does not exist or is not the user's
        """
        quantity = validate_quantity(quantity, allow_zero=True)

        def _set(db: Session) -> CartLineResult:
            item = self._carts.find_owned(user_id, item_id)
            if item is None:
                raise CartItemNotFoundError(item_id, user_id=user_id)
            product_id = item.product_id

            if quantity == 0:
                self._carts.delete_line(item)
                return CartLineResult(item_id, product_id, 0, 0, capped=False, deleted=True)

            product = self._products.lock_for_update(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            # Re-read under the product lock; a checkout may have consumed the line
            item = self._carts.find_owned(user_id, item_id, lock=True)
            if item is None:
                raise CartItemNotFoundError(item_id, user_id=user_id)

            new_quantity = min(quantity, self._available_for(product, user_id))
            if new_quantity == 0:
                self._carts.delete_line(item)
                return CartLineResult(item_id, product_id, quantity, 0, capped=True, deleted=True)

            item.quantity = new_quantity
            self._reprice(item, product)
            db.flush()
            return CartLineResult(
                item_id=item_id,
                product_id=product_id,
                requested=quantity,
                quantity=new_quantity,
                capped=new_quantity < quantity,
                unit_price_gross=item.unit_price_gross,
            )

        result = run_in_transaction(
            self._db, _set, operation="cart update", app_settings=self._settings
        )
        logger.info(
            "Cart item updated",
            user_id=user_id,
            item_id=item_id,
            requested=quantity,
            quantity=result.quantity,
            deleted=result.deleted,
        )
        return result

    def remove(self, user_id: int, item_id: int) -> int:
        """Delete one of the user's lines. No-op if it does not match."""
        removed = run_in_transaction(
            self._db,
            lambda db: self._carts.delete_owned(user_id, item_id),
            operation="cart remove",
            app_settings=self._settings,
        )
        logger.info("Cart item removed", user_id=user_id, item_id=item_id, removed=removed)
        return removed

    def clear(self, user_id: int) -> int:
        """Delete every line of the user's cart."""
        removed = run_in_transaction(
            self._db,
            lambda db: self._carts.clear(user_id),
            operation="cart clear",
            app_settings=self._settings,
        )
        logger.info("Cart cleared", user_id=user_id, removed=removed)
        return removed

    # =========================================================================
    # Reads
    # =========================================================================

    def list_items(self, user_id: int) -> Sequence[CartItem]:
        """Cart lines joined to product, recipe and category."""
        return self._carts.list_for_user(user_id)

    def summary(self, user_id: int) -> CartSummary:
        """Aggregate gross price, unit count and calories of the cart."""
        total_price = Decimal("0.00")
        total_items = 0
        total_calories = 0
        for item in self._carts.list_for_user(user_id):
            total_price += line_total(item.unit_price_gross, item.quantity)
            total_items += item.quantity
            recipe = item.product.recipe
            if recipe is not None:
                total_calories += (recipe.calories or 0) * item.quantity
        return CartSummary(
            total_price=total_price,
            total_items=total_items,
            total_calories=total_calories,
        )
