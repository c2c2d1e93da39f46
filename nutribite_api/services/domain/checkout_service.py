"""
Checkout Domain Service.

Turns a user's cart into scheduled draft orders, one per category present in
the cart. The whole sequence (validate schedule, consume stock, insert orders
and items, empty the cart) is one transaction: either every order exists
with its items and the cart is empty, or nothing changed.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Mapping
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from nutribite_shared.config.constants import UNCATEGORIZED_KEY, OrderStatus
from nutribite_shared.config.logging import orders_logger as logger
from nutribite_shared.config.settings import Settings, settings as default_settings
from nutribite_shared.infrastructure.db import run_in_transaction
from nutribite_shared.utils.exceptions import (
    CustomerNotFoundError,
    EmptyCartError,
    InvalidDeliveryTimeError,
    ProductNotFoundError,
)
from nutribite_api.models import CartItem, Order, OrderItem
from nutribite_api.repositories import (
    CartRepository,
    CustomerRepository,
    OrderRepository,
    ProductRepository,
)
from .pricing import line_total
from .stock_service import StockService, StockUpdateResult

DeliveryValue = str | datetime | None


@dataclass
class CheckoutResult:
    orders: list[Order]
    replayed: bool = False
    stock_updates: list[StockUpdateResult] = field(default_factory=list)

    @property
    def order_id(self) -> int:
        return self.orders[0].id

    @property
    def low_stock_alerts(self) -> list[StockUpdateResult]:
        return [update for update in self.stock_updates if update.notify_admin]


@dataclass
class _CategoryGroup:
    key: str
    category_id: int | None
    category_name: str | None
    lines: list[CartItem] = field(default_factory=list)


class DeliveryWindow:
    """
    Allowed delivery slots: hour within [first_hour, last_hour] local time,
    date within [today, today + max_days_ahead], not earlier than now.
    """

    def __init__(self, app_settings: Settings, now: datetime):
        self.tz = ZoneInfo(app_settings.delivery_timezone)
        self.first_hour = app_settings.delivery_first_hour
        self.last_hour = app_settings.delivery_last_hour
        self.max_days_ahead = app_settings.delivery_max_days_ahead
        self.now = now.astimezone(self.tz)

    @property
    def today(self) -> date:
        return self.now.date()

    def parse(self, value: DeliveryValue) -> datetime | None:
        """ISO string or datetime; naive values are local delivery time."""
        if value is None:
            return None
        if isinstance(value, datetime):
            parsed = value
        else:
            text = str(value).strip()
            if not text:
                return None
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.tz)
        return parsed.astimezone(self.tz)

    def violation(self, local: datetime) -> str | None:
        """Reason the slot is not allowed, None when it is."""
        if local.hour < self.first_hour or local.hour > self.last_hour:
            return f"time must be between {self.first_hour:02d}:00 and {self.last_hour:02d}:59"
        if local.date() < self.today:
            return "date is in the past"
        if local.date() > self.today + timedelta(days=self.max_days_ahead):
            return f"date must be within {self.max_days_ahead} days"
        if local.date() == self.today and local < self.now:
            return "time is in the past"
        return None

    def describe(self) -> str:
        return (
            f"{self.first_hour:02d}:00-{self.last_hour:02d}:59, "
            f"within {self.max_days_ahead} days, not in past"
        )


class CheckoutService:
    """
    Domain service for checkout.

    Lock order inside the transaction: customer row, then products in
    ascending id, then their recipes.
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
        self._carts = CartRepository(db)
        self._products = ProductRepository(db)
        self._orders = OrderRepository(db)
        self._stock = StockService(db, self._settings, clock=self._clock)

    # =========================================================================
    # Schedule
    # =========================================================================

    @staticmethod
    def _group_by_category(lines: list[CartItem]) -> list[_CategoryGroup]:
        groups: "OrderedDict[str, _CategoryGroup]" = OrderedDict()
        for line in sorted(lines, key=lambda item: item.id):
            recipe = line.product.recipe if line.product is not None else None
            category = recipe.category if recipe is not None else None
            key = str(category.id) if category is not None else UNCATEGORIZED_KEY
            if key not in groups:
                groups[key] = _CategoryGroup(
                    key=key,
                    category_id=category.id if category is not None else None,
                    category_name=category.name if category is not None else None,
                )
            groups[key].lines.append(line)
        return sorted(groups.values(), key=lambda group: int(group.key))

    def _resolve_schedule(
        self,
        groups: list[_CategoryGroup],
        schedule: Mapping[str, DeliveryValue],
        apply_to_all: DeliveryValue,
        window: DeliveryWindow,
    ) -> dict[str, datetime]:
        """
        One validated delivery datetime per category group.

        Raises:
            InvalidDeliveryTimeError: missing, unparsable or outside the window
        """
        resolved: dict[str, datetime] = {}

        if apply_to_all is not None:
            local = window.parse(apply_to_all)
            if local is None:
                raise InvalidDeliveryTimeError(None, window.describe(), value=str(apply_to_all))
            reason = window.violation(local)
            if reason:
                raise InvalidDeliveryTimeError(None, reason, value=str(apply_to_all))
            return {group.key: local for group in groups}

        for group in groups:
            raw = schedule.get(group.key)
            if raw is None and group.category_name:
                raw = schedule.get(group.category_name)
            local = window.parse(raw)
            if local is None:
                reason = "missing" if raw is None else "not a valid datetime"
                raise InvalidDeliveryTimeError(group.key, reason, value=str(raw))
            reason = window.violation(local)
            if reason:
                raise InvalidDeliveryTimeError(group.key, reason, value=str(raw))
            resolved[group.key] = local
        return resolved

    def _locked_cart_lines(self, user_id: int) -> list[CartItem]:
        """
        The cart as it stands once its products are locked.

        Cart writers lock the product row first, so after the product locks
        no add or quantity change of these products can land between this
        read and the deletion of the ordered lines.
        """
        product_ids = {line.product_id for line in self._carts.list_for_user(user_id)}
        if not product_ids:
            raise EmptyCartError(user_id=user_id)
        self._products.lock_many_for_update(sorted(product_ids))

        lines = list(self._carts.list_for_user(user_id, lock=True))
        if not lines:
            raise EmptyCartError(user_id=user_id)
        return lines

    # =========================================================================
    # Checkout
    # =========================================================================

    def checkout(
        self,
        user_id: int,
        schedule: Mapping[str, DeliveryValue] | None,
        apply_to_all: DeliveryValue = None,
        idempotency_key: str | None = None,
    ) -> CheckoutResult:
        """
        Create one draft order per category from the user's cart.

        Totals come from the pricing stored on the cart lines, not from the
        current product price.

        Raises:
            CustomerNotFoundError: no customer record for the user
            EmptyCartError: nothing in the cart
            InvalidDeliveryTimeError: schedule missing or outside the window
            InsufficientStockError: a line asks for more than is in stock
        """
        schedule = schedule or {}

        def _checkout(db: Session) -> CheckoutResult:
            customer = self._customers.find_by_user_id(user_id, lock=True)
            if customer is None:
                raise CustomerNotFoundError(user_id)

            if idempotency_key:
                previous = self._orders.find_by_checkout_key(customer.id, idempotency_key)
                if previous:
                    return CheckoutResult(orders=list(previous), replayed=True)

            lines = self._locked_cart_lines(user_id)

            window = DeliveryWindow(self._settings, self._clock())
            groups = self._group_by_category(lines)
            delivery = self._resolve_schedule(groups, schedule, apply_to_all, window)

            locked = self._products.lock_many_for_update([line.product_id for line in lines])
            stock_updates = []
            for line in sorted(lines, key=lambda item: item.product_id):
                product = locked.get(line.product_id)
                if product is None:
                    raise ProductNotFoundError(line.product_id)
                stock_updates.append(self._stock.decrement(product, line.quantity))

            orders = []
            for group in groups:
                delivery_at = delivery[group.key].astimezone(timezone.utc)
                items = []
                total = Decimal("0.00")
                calories = 0
                for line in group.lines:
                    items.append(
                        OrderItem(
                            product_id=line.product_id,
                            quantity=line.quantity,
                            unit_price_net=line.unit_price_net,
                            tax_rate=line.tax_rate,
                            tax_amount=line.tax_amount,
                            unit_price_gross=line.unit_price_gross,
                            category_id=group.category_id,
                            delivery_at=delivery_at,
                        )
                    )
                    total += line_total(line.unit_price_gross, line.quantity)
                    recipe = line.product.recipe
                    calories += (recipe.calories or 0) * line.quantity if recipe else 0

                order = Order(
                    customer_id=customer.id,
                    status=OrderStatus.DRAFT,
                    category_id=group.category_id,
                    delivery_at=delivery_at,
                    total_price=total,
                    total_calories=calories,
                    checkout_key=idempotency_key,
                )
                orders.append(self._orders.add_order(order, items))

            self._carts.delete_lines(user_id, [line.id for line in lines])
            return CheckoutResult(orders=orders, stock_updates=stock_updates)

        result = run_in_transaction(
            self._db, _checkout, operation="checkout", app_settings=self._settings
        )
        if result.replayed:
            logger.info(
                "Checkout replayed",
                user_id=user_id,
                idempotency_key=idempotency_key,
                order_ids=[order.id for order in result.orders],
            )
        else:
            logger.info(
                "Checkout completed",
                user_id=user_id,
                order_ids=[order.id for order in result.orders],
                totals=[str(order.total_price) for order in result.orders],
            )
        return result
