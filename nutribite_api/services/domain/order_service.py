"""
Order Domain Service.

Draft -> confirmed lifecycle, cart rebuild from a past order, and
customer-scoped order reads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from sqlalchemy.orm import Session

from nutribite_shared.config.logging import orders_logger as logger
from nutribite_shared.config.settings import Settings, settings as default_settings
from nutribite_shared.infrastructure.db import run_in_transaction
from nutribite_shared.utils.exceptions import (
    CustomerNotFoundError,
    NoDraftOrderError,
    OrderNotFoundError,
)
from nutribite_api.models import Customer, Order
from nutribite_api.repositories import (
    CartRepository,
    CustomerRepository,
    OrderFilters,
    OrderRepository,
    ProductRepository,
)
from .cart_service import build_cart_item


@dataclass
class RebuildResult:
    rebuilt: int
    skipped: list[int] = field(default_factory=list)


class OrderService:
    """
    Domain service for order lifecycle operations.

    Every operation is scoped to the customer record of the calling user;
    an order owned by someone else is reported as not found.
    """

    def __init__(
        self,
        db: Session,
        app_settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._db = db
        self._settings = app_settings or default_settings
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._customers = CustomerRepository(db)
        self._orders = OrderRepository(db)
        self._carts = CartRepository(db)
        self._products = ProductRepository(db)

    def _customer(self, user_id: int) -> Customer:
        customer = self._customers.find_by_user_id(user_id)
        if customer is None:
            raise CustomerNotFoundError(user_id)
        return customer

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def confirm(self, user_id: int, order_id: int) -> Order:
        """
        Confirm a draft order.

        The draft check and the status write are a single conditional UPDATE,
        so two concurrent confirms cannot both succeed.

        Raises:
            CustomerNotFoundError: no customer record for the user
            OrderNotFoundError: missing, not the user's, or not a draft
        """

        def _confirm(db: Session) -> Order:
            customer = self._customer(user_id)
            changed = self._orders.confirm_draft(customer.id, order_id, self._clock())
            if changed == 0:
                raise OrderNotFoundError(order_id, user_id=user_id)
            order = self._orders.find_owned(customer.id, order_id)
            if order is None:
                raise OrderNotFoundError(order_id, user_id=user_id)
            return order

        order = run_in_transaction(
            self._db, _confirm, operation="order confirm", app_settings=self._settings
        )
        logger.info("Order confirmed", user_id=user_id, order_id=order_id)
        return order

    def rebuild_cart(self, user_id: int, order_id: int) -> RebuildResult:
        """
        Replace the user's cart with the lines of a past order.

        Works for any order status. Lines are priced at the product's
        current price and capped at what is available; products with
        nothing available are skipped and reported. An order without items
        leaves the cart untouched.

        Raises:
            CustomerNotFoundError: no customer record for the user
            OrderNotFoundError: missing or not the user's
        """

        def _rebuild(db: Session) -> RebuildResult:
            customer = self._customer(user_id)
            order = self._orders.find_owned(customer.id, order_id)
            if order is None:
                raise OrderNotFoundError(order_id, user_id=user_id)
            if not order.items:
                return RebuildResult(rebuilt=0)

            quantities: dict[int, int] = {}
            for item in order.items:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

            self._carts.clear(user_id)
            products = self._products.lock_many_for_update(list(quantities))

            result = RebuildResult(rebuilt=0)
            for product_id in sorted(quantities):
                product = products.get(product_id)
                if product is None:
                    result.skipped.append(product_id)
                    continue
                held = self._carts.quantity_held_by_others(product_id, user_id)
                quantity = min(quantities[product_id], max(0, product.stock - held))
                if quantity <= 0:
                    result.skipped.append(product_id)
                    continue
                self._carts.add(
                    build_cart_item(user_id, product, quantity, self._settings.tax_rate_percent)
                )
                result.rebuilt += 1
            return result

        result = run_in_transaction(
            self._db, _rebuild, operation="cart rebuild", app_settings=self._settings
        )
        logger.info(
            "Cart rebuilt from order",
            user_id=user_id,
            order_id=order_id,
            rebuilt=result.rebuilt,
            skipped=result.skipped,
        )
        return result

    # =========================================================================
    # Reads
    # =========================================================================

    def list_orders(self, user_id: int, limit: int = 20, offset: int = 0) -> Sequence[Order]:
        """Newest first; a user without a customer record simply has none."""
        customer = self._customers.find_by_user_id(user_id)
        if customer is None:
            return []
        return self._orders.find_all(
            OrderFilters(customer_id=customer.id, limit=limit, offset=offset)
        )

    def get_order(self, user_id: int, order_id: int) -> Order:
        """Order with items (price snapshot) and their recipes."""
        customer = self._customer(user_id)
        order = self._orders.find_owned(customer.id, order_id)
        if order is None:
            raise OrderNotFoundError(order_id, user_id=user_id)
        return order

    def latest_draft(self, user_id: int) -> Order:
        customer = self._customer(user_id)
        order = self._orders.latest_draft(customer.id)
        if order is None:
            raise NoDraftOrderError(user_id=user_id)
        return order
