"""
Tests for StockService: stock writes, the visibility cascade, low-stock
notification and price edits.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from nutribite_shared.utils.exceptions import (
    NotFoundError,
    PriceEditBlockedError,
    ProductNotFoundError,
    UnlinkedProductError,
    ValidationError,
)
from nutribite_api.models import Product, Recipe
from nutribite_api.repositories import ProductFilters
from nutribite_api.services.domain import (
    CatalogService,
    StockService,
    resolve_price_factor,
    validate_stock_value,
)
from tests.conftest import NOW, fixed_clock, next_id


def _menu_ids(db_session):
    page = CatalogService(db_session).list_public(ProductFilters(limit=100))
    return {product.id for product in page.items}


class TestSetStock:
    def test_zero_hides_and_restock_restores(self, db_session, seed_product):
        """Should hide the recipe at stock 0 and bring it back at stock 3."""
        service = StockService(db_session, clock=fixed_clock)

        result = service.set_stock(seed_product.id, 0)
        assert result.recipe_deleted is True
        assert result.stock == 0
        assert db_session.get(Recipe, seed_product.recipe_id).deleted_at is not None
        assert seed_product.id not in _menu_ids(db_session)

        result = service.set_stock(seed_product.id, 3)
        assert result.recipe_deleted is False
        assert db_session.get(Recipe, seed_product.recipe_id).deleted_at is None
        assert seed_product.id in _menu_ids(db_session)

    def test_repeated_zero_keeps_first_timestamp(self, db_session, seed_product):
        """Should keep the first hide time when stock is zeroed again."""
        StockService(db_session, clock=fixed_clock).set_stock(seed_product.id, 0)

        later = NOW + timedelta(hours=5)
        StockService(db_session, clock=lambda: later).set_stock(seed_product.id, 0)

        db_session.expire_all()
        deleted_at = db_session.get(Recipe, seed_product.recipe_id).deleted_at
        assert deleted_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)

    @pytest.mark.parametrize("value", [7, 7.0, "7", " 7 "])
    def test_accepts_whole_numbers(self, db_session, seed_product, value):
        """Should accept integral values in any accepted form."""
        result = StockService(db_session).set_stock(seed_product.id, value)
        assert result.stock == 7

    @pytest.mark.parametrize(
        "value", [-1, 1.5, "abc", "", None, True, float("nan"), float("inf"), 10_000_001]
    )
    def test_rejects_invalid_values(self, db_session, seed_product, value):
        """Should reject the value and leave stock unchanged."""
        with pytest.raises(ValidationError):
            StockService(db_session).set_stock(seed_product.id, value)
        assert db_session.get(Product, seed_product.id).stock == 5

    def test_missing_product(self, db_session):
        """Should answer 404 for an unknown product."""
        with pytest.raises(ProductNotFoundError) as exc_info:
            StockService(db_session).set_stock(999_999, 1)
        assert exc_info.value.status_code == 404

    def test_unlinked_product(self, db_session):
        """Should refuse stock changes for a product without a recipe."""
        product = Product(id=next_id(), recipe_id=None, price=Decimal("5.00"), stock=1)
        db_session.add(product)
        db_session.commit()

        with pytest.raises(UnlinkedProductError) as exc_info:
            StockService(db_session).set_stock(product.id, 3)
        assert exc_info.value.status_code == 422

    def test_linked_recipe_missing(self, db_session, seed_product):
        """Should raise NotFoundError when the linked recipe row is gone."""
        # Point at a recipe id that has no row (SQLite does not enforce the FK)
        seed_product.recipe_id = 888_888
        db_session.commit()

        with pytest.raises(NotFoundError) as exc_info:
            StockService(db_session).set_stock(seed_product.id, 3)
        assert exc_info.value.detail == "Recipe not found"


class TestLowStockNotification:
    @pytest.mark.parametrize(
        "before,after,expected",
        [
            (20, 5, True),
            (11, 10, True),
            (10, 3, False),
            (5, 0, False),
            (8, 20, False),
            (20, 11, False),
        ],
    )
    def test_threshold_crossing(self, db_session, make_product, before, after, expected):
        """Should notify only when stock moves under the threshold."""
        product = make_product(stock=before)
        result = StockService(db_session).set_stock(product.id, after)
        assert result.notify_admin is expected


class TestValidateStockValue:
    def test_integral_float_string(self):
        """Should accept "12.0" as 12."""
        assert validate_stock_value("12.0") == 12

    def test_infinity_string(self):
        """Should reject "Infinity"."""
        with pytest.raises(ValidationError):
            validate_stock_value("Infinity")


class TestAdjustPrice:
    def test_multiplies_and_rounds(self, db_session, make_product):
        """Should multiply the price and round to cents."""
        product = make_product(price="9.99", stock=5)
        result = StockService(db_session).adjust_price(product.id, Decimal("1.1"))

        assert result.old_price == Decimal("9.99")
        assert result.new_price == Decimal("10.99")
        assert db_session.get(Product, product.id).price == Decimal("10.99")

    def test_blocked_when_stock_high(self, db_session, make_product):
        """Should refuse a price edit above the stock threshold."""
        product = make_product(price="10.00", stock=50)
        with pytest.raises(PriceEditBlockedError) as exc_info:
            StockService(db_session).adjust_price(product.id, Decimal("2"))

        assert exc_info.value.status_code == 400
        assert "stock <= 10" in exc_info.value.detail
        assert db_session.get(Product, product.id).price == Decimal("10.00")

    def test_allowed_at_threshold(self, db_session, make_product):
        """Should allow a price edit at exactly the threshold."""
        product = make_product(price="10.00", stock=10)
        result = StockService(db_session).adjust_price(product.id, Decimal("0.5"))
        assert result.new_price == Decimal("5.00")

    @pytest.mark.parametrize("factor", [Decimal("0"), Decimal("-1")])
    def test_rejects_non_positive_factor(self, db_session, make_product, factor):
        """Should reject a zero or negative factor."""
        product = make_product(stock=1)
        with pytest.raises(ValidationError):
            StockService(db_session).adjust_price(product.id, factor)

    def test_missing_product(self, db_session):
        """Should raise ProductNotFoundError for an unknown product."""
        with pytest.raises(ProductNotFoundError):
            StockService(db_session).adjust_price(999_999, Decimal("1.5"))


class TestResolvePriceFactor:
    def test_factor_wins(self):
        """Should prefer an explicit factor over a percentage."""
        assert resolve_price_factor(factor="1.25", percent="50") == Decimal("1.25")

    def test_percent_defaults_to_increase(self):
        """Should treat a bare percentage as an increase."""
        assert resolve_price_factor(percent=10) == Decimal("1.1")

    def test_percent_decrease(self):
        """Should accept the mode in any case."""
        assert resolve_price_factor(percent="20", mode="Decrease") == Decimal("0.8")

    def test_bad_mode(self):
        """Should reject an unknown mode."""
        with pytest.raises(ValidationError):
            resolve_price_factor(percent=10, mode="double")

    def test_neither_given(self):
        """Should ask for a factor or a percentage."""
        with pytest.raises(ValidationError) as exc_info:
            resolve_price_factor()
        assert exc_info.value.detail == "Provide either factor or percent"

    def test_full_decrease_is_zero_factor(self):
        """Should reject a 100% decrease."""
        with pytest.raises(ValidationError):
            resolve_price_factor(percent=100, mode="decrease")

    def test_non_numeric(self):
        """Should reject a non-numeric factor."""
        with pytest.raises(ValidationError):
            resolve_price_factor(factor="abc")
