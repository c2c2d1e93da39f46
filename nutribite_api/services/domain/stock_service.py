"""
Stock Domain Service.

Owns product stock and price writes:
- set_stock(): admin stock write plus the recipe visibility cascade,
- decrement(): bounded decrement used by checkout inside its transaction,
- adjust_price(): price edit, allowed only while stock is low.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from sqlalchemy.orm import Session

from nutribite_shared.config.constants import Limits, PriceAdjustMode
from nutribite_shared.config.logging import inventory_logger as logger
from nutribite_shared.config.settings import Settings, settings as default_settings
from nutribite_shared.infrastructure.db import run_in_transaction
from nutribite_shared.utils.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PriceEditBlockedError,
    ProductNotFoundError,
    UnlinkedProductError,
    ValidationError,
)
from nutribite_api.models import Product
from nutribite_api.repositories import ProductRepository
from nutribite_api.services.stock_visibility import apply_stock_visibility
from .pricing import round_money


@dataclass
class StockUpdateResult:
    product_id: int
    recipe_id: int
    previous_stock: int
    stock: int
    recipe_deleted: bool
    notify_admin: bool


@dataclass
class PriceUpdateResult:
    product_id: int
    stock: int
    old_price: Decimal
    new_price: Decimal
    factor: Decimal


def validate_stock_value(value: Any) -> int:
    """
    Parse a stock value: a finite, non-negative whole number.

    Accepts ints, integral floats and numeric strings.
    """
    if isinstance(value, bool):
        raise ValidationError("Invalid stock value", value=value)
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("Invalid stock value", value=str(value))
    if not number.is_finite() or number < 0 or number != number.to_integral_value():
        raise ValidationError("Invalid stock value", value=str(value))
    if number > Limits.MAX_STOCK:
        raise ValidationError(f"Stock must be <= {Limits.MAX_STOCK}", value=str(value))
    return int(number)


def _finite_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number")
    return number


def resolve_price_factor(
    factor: Any = None,
    percent: Any = None,
    mode: str | None = None,
) -> Decimal:
    """
    Multiplier for a price edit.

    An explicit factor wins; otherwise percent with mode "increase"
    (default) or "decrease" gives 1 +/- percent/100.

    Raises:
        ValidationError: Neither given, bad mode, or resulting factor <= 0.
    """
    if factor is not None:
        resolved = _finite_decimal(factor, "factor")
    elif percent is not None:
        pct = _finite_decimal(percent, "percent")
        normalized = (mode or PriceAdjustMode.INCREASE).strip().lower()
        if normalized == PriceAdjustMode.INCREASE:
            resolved = 1 + pct / 100
        elif normalized == PriceAdjustMode.DECREASE:
            resolved = 1 - pct / 100
        else:
            raise ValidationError("mode must be 'increase' or 'decrease'", mode=mode)
    else:
        raise ValidationError("Provide either factor or percent")

    if resolved <= 0:
        raise ValidationError("Factor must be > 0", factor=str(resolved))
    return resolved


class StockService:
    """
    Domain service guarding product stock.

    Every write locks the product row (then its recipe row) for the rest of
    the transaction; checkout locks in the same order.
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
        self._products = ProductRepository(db)

    def crosses_low_stock(self, previous: int, current: int) -> bool:
        threshold = self._settings.low_stock_threshold
        return previous > threshold and current <= threshold

    def set_stock(self, product_id: int, new_stock: Any) -> StockUpdateResult:
        """
        Write a product's stock and flip its recipe's visibility.

        Raises:
            ValidationError: stock is not a finite whole number >= 0
            ProductNotFoundError: product does not exist
            UnlinkedProductError: product has no linked recipe
            NotFoundError: linked recipe row is missing
        """
        stock = validate_stock_value(new_stock)

        def _set(db: Session) -> StockUpdateResult:
            product = self._products.lock_for_update(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if product.recipe_id is None:
                raise UnlinkedProductError(product_id)
            recipe = self._products.lock_recipe(product.recipe_id)
            if recipe is None:
                raise NotFoundError("Recipe", product.recipe_id, product_id=product_id)

            previous = product.stock
            product.stock = stock
            recipe_deleted = apply_stock_visibility(recipe, stock, self._clock())
            db.flush()

            return StockUpdateResult(
                product_id=product_id,
                recipe_id=recipe.id,
                previous_stock=previous,
                stock=stock,
                recipe_deleted=recipe_deleted,
                notify_admin=self.crosses_low_stock(previous, stock),
            )

        result = run_in_transaction(
            self._db, _set, operation="stock update", app_settings=self._settings
        )
        logger.info(
            "Product stock updated",
            product_id=product_id,
            previous_stock=result.previous_stock,
            stock=result.stock,
            recipe_deleted=result.recipe_deleted,
            notify_admin=result.notify_admin,
        )
        return result

    def decrement(self, product: Product, quantity: int) -> StockUpdateResult:
        """
        Take units out of an already locked product.

        Runs inside the caller's transaction; no commit here.

        Raises:
            InsufficientStockError: quantity exceeds stock
        """
        if quantity > product.stock:
            raise InsufficientStockError(product.id, quantity, product.stock)

        previous = product.stock
        product.stock = previous - quantity

        recipe_deleted = False
        if product.recipe_id is not None:
            recipe = self._products.lock_recipe(product.recipe_id)
            if recipe is not None:
                recipe_deleted = apply_stock_visibility(recipe, product.stock, self._clock())

        return StockUpdateResult(
            product_id=product.id,
            recipe_id=product.recipe_id,
            previous_stock=previous,
            stock=product.stock,
            recipe_deleted=recipe_deleted,
            notify_admin=self.crosses_low_stock(previous, product.stock),
        )

    def adjust_price(self, product_id: int, factor: Decimal) -> PriceUpdateResult:
        """
        Multiply a product's net price by factor, rounded to cents.

        Only permitted while stock <= PRICE_EDIT_MAX_STOCK.

        Raises:
            ValidationError: factor <= 0
            ProductNotFoundError: product does not exist
            PriceEditBlockedError: stock above the edit threshold
        """
        factor = _finite_decimal(factor, "factor")
        if factor <= 0:
            raise ValidationError("Factor must be > 0", factor=str(factor))
        max_stock = self._settings.price_edit_max_stock

        def _adjust(db: Session) -> PriceUpdateResult:
            product = self._products.lock_for_update(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if product.stock > max_stock:
                raise PriceEditBlockedError(product_id, product.stock, max_stock)

            old_price = Decimal(product.price)
            new_price = round_money(old_price * factor)
            product.price = new_price
            db.flush()
            return PriceUpdateResult(
                product_id=product_id,
                stock=product.stock,
                old_price=old_price,
                new_price=new_price,
                factor=factor,
            )

        result = run_in_transaction(
            self._db, _adjust, operation="price update", app_settings=self._settings
        )
        logger.info(
            "Product price updated",
            product_id=product_id,
            old_price=str(result.old_price),
            new_price=str(result.new_price),
            factor=str(factor),
        )
        return result

    def get_stock(self, product_id: int) -> Product:
        """Product with its recipe, for the admin stock view."""
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
