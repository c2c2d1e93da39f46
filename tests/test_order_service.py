"""
Tests for OrderService: confirm, rebuild_cart and order reads.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from nutribite_shared.config.constants import OrderStatus
from nutribite_shared.utils.exceptions import (
    CustomerNotFoundError,
    NoDraftOrderError,
    OrderNotFoundError,
)
from nutribite_api.models import Order
from nutribite_api.services.domain import CartService, CheckoutService, OrderService
from tests.conftest import TOMORROW_NOON, fixed_clock, next_id


def _place_order(db_session, user_id, lines, key="0"):
    cart = CartService(db_session)
    for product, quantity in lines:
        cart.add(user_id, product.id, quantity)
    result = CheckoutService(db_session, clock=fixed_clock).checkout(user_id, {key: TOMORROW_NOON})
    return result.orders[0]


class TestConfirm:
    def test_draft_becomes_confirmed(self, db_session, seed_customer, make_product):
        """Should move a draft order to confirmed."""
        order = _place_order(db_session, seed_customer.user_id, [(make_product(), 1)])

        confirmed = OrderService(db_session, clock=fixed_clock).confirm(
            seed_customer.user_id, order.id
        )

        assert confirmed.id == order.id
        assert confirmed.status == OrderStatus.CONFIRMED
        assert confirmed.confirmed_at is not None

    def test_second_confirm_not_found(self, db_session, seed_customer, make_product):
        """Should not find a draft to confirm twice."""
        order = _place_order(db_session, seed_customer.user_id, [(make_product(), 1)])
        service = OrderService(db_session, clock=fixed_clock)
        service.confirm(seed_customer.user_id, order.id)

        with pytest.raises(OrderNotFoundError) as exc_info:
            service.confirm(seed_customer.user_id, order.id)
        assert exc_info.value.status_code == 404

    def test_other_customers_order_not_found(
        self, db_session, seed_customer, make_customer, make_product
    ):
        """Should not confirm another customer's order."""
        order = _place_order(db_session, seed_customer.user_id, [(make_product(), 1)])
        intruder = make_customer()

        with pytest.raises(OrderNotFoundError):
            OrderService(db_session).confirm(intruder.user_id, order.id)

        db_session.expire_all()
        assert db_session.get(Order, order.id).status == OrderStatus.DRAFT

    def test_unknown_user(self, db_session):
        """Should raise CustomerNotFoundError for a user without a customer record."""
        with pytest.raises(CustomerNotFoundError):
            OrderService(db_session).confirm(next_id(), 1)


class TestRebuildCart:
    def test_recreates_lines_at_current_price(self, db_session, seed_customer, make_product):
        """Should clear the cart, then recreate both lines at the current price."""
        user_id = seed_customer.user_id
        soup = make_product(price="10.00", stock=10)
        salad = make_product(price="20.00", stock=10)
        order = _place_order(db_session, user_id, [(soup, 2), (salad, 1)])

        unrelated = make_product(price="3.00", stock=10)
        CartService(db_session).add(user_id, unrelated.id, 4)
        soup.price = Decimal("12.00")
        db_session.commit()

        result = OrderService(db_session).rebuild_cart(user_id, order.id)

        assert result.rebuilt == 2
        assert result.skipped == []
        items = {item.product_id: item for item in CartService(db_session).list_items(user_id)}
        assert set(items) == {soup.id, salad.id}
        assert items[soup.id].quantity == 2
        assert items[soup.id].unit_price_net == Decimal("12.00")
        assert items[soup.id].unit_price_gross == Decimal("14.16")
        assert items[salad.id].unit_price_gross == Decimal("23.60")

    def test_caps_and_skips_by_availability(self, db_session, seed_customer, make_product):
        """Should cap short lines and skip sold-out ones."""
        user_id = seed_customer.user_id
        soup = make_product(stock=10)
        salad = make_product(stock=10)
        order = _place_order(db_session, user_id, [(soup, 4), (salad, 2)])

        soup.stock = 1
        salad.stock = 0
        db_session.commit()

        result = OrderService(db_session).rebuild_cart(user_id, order.id)

        assert result.rebuilt == 1
        assert result.skipped == [salad.id]
        items = CartService(db_session).list_items(user_id)
        assert [(item.product_id, item.quantity) for item in items] == [(soup.id, 1)]

    def test_confirmed_order_can_be_rebuilt(self, db_session, seed_customer, make_product):
        """Should rebuild from a confirmed order too."""
        user_id = seed_customer.user_id
        order = _place_order(db_session, user_id, [(make_product(stock=10), 1)])
        OrderService(db_session).confirm(user_id, order.id)

        assert OrderService(db_session).rebuild_cart(user_id, order.id).rebuilt == 1

    def test_order_without_items_leaves_cart(self, db_session, seed_customer, make_product):
        """Should keep the cart when the order has no items."""
        user_id = seed_customer.user_id
        empty = Order(
            customer_id=seed_customer.id,
            status=OrderStatus.DRAFT,
            delivery_at=datetime(2026, 3, 11, 12, tzinfo=timezone.utc),
            total_price=Decimal("0.00"),
            total_calories=0,
        )
        db_session.add(empty)
        db_session.commit()
        CartService(db_session).add(user_id, make_product().id, 1)

        result = OrderService(db_session).rebuild_cart(user_id, empty.id)

        assert result.rebuilt == 0
        assert len(CartService(db_session).list_items(user_id)) == 1

    def test_other_customers_order(self, db_session, seed_customer, make_customer, make_product):
        """Should not rebuild from another customer's order."""
        order = _place_order(db_session, seed_customer.user_id, [(make_product(), 1)])
        with pytest.raises(OrderNotFoundError):
            OrderService(db_session).rebuild_cart(make_customer().user_id, order.id)


class TestReads:
    def test_detail_line_totals_match_order_total(
        self, db_session, seed_customer, make_product
    ):
        """Should add the line totals up to the order total."""
        user_id = seed_customer.user_id
        order = _place_order(
            db_session,
            user_id,
            [(make_product(price="7.35"), 3), (make_product(price="12.10"), 2)],
        )

        detail = OrderService(db_session).get_order(user_id, order.id)

        assert len(detail.items) == 2
        assert sum(item.line_total for item in detail.items) == detail.total_price

    def test_list_orders_scoped_to_customer(
        self, db_session, seed_customer, make_customer, make_product
    ):
        """Should list only the caller's orders."""
        _place_order(db_session, seed_customer.user_id, [(make_product(), 1)])
        other = make_customer()
        _place_order(db_session, other.user_id, [(make_product(), 1)])

        orders = OrderService(db_session).list_orders(seed_customer.user_id)
        assert len(orders) == 1
        assert orders[0].customer_id == seed_customer.id

    def test_list_orders_without_customer_record(self, db_session):
        """Should list nothing for a user who never became a customer."""
        assert OrderService(db_session).list_orders(next_id()) == []

    def test_latest_draft(self, db_session, seed_customer, make_product):
        """Should return the most recent draft."""
        user_id = seed_customer.user_id
        service = OrderService(db_session)
        with pytest.raises(NoDraftOrderError):
            service.latest_draft(user_id)

        first = _place_order(db_session, user_id, [(make_product(), 1)])
        second = _place_order(db_session, user_id, [(make_product(), 1)])
        assert service.latest_draft(user_id).id == second.id

        service.confirm(user_id, second.id)
        assert service.latest_draft(user_id).id == first.id
