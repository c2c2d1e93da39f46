"""
Stock-driven catalog visibility.

A recipe is hidden from the public menu (deleted_at set) while its linked
product has no stock, and visible again once stock is replenished. The
stock write and the visibility flip always happen in the same transaction.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.orm import Session

from nutribite_shared.config.logging import inventory_logger as logger
from nutribite_api.models import Product, Recipe


def visible_recipe_clause() -> ColumnElement[bool]:
    """WHERE clause every public catalog query applies."""
    return Recipe.deleted_at.is_(None)


def apply_stock_visibility(recipe: Recipe, stock: int, now: datetime) -> bool:
    """
    Flip recipe visibility for the given product stock.

    Stock 0 sets deleted_at unless it is already set, so the original
    soft-delete timestamp is kept. Stock > 0 clears it.

    Returns True when the recipe ends up hidden.
    """
    if stock == 0:
        if recipe.deleted_at is None:
            recipe.deleted_at = now
        return True
    recipe.deleted_at = None
    return False


@dataclass
class ReconcileResult:
    hidden: int
    restored: int


def reconcile_visibility(db: Session, now: datetime | None = None) -> ReconcileResult:
    """
    Repair recipes whose visibility disagrees with their product stock.

    Runs inside the caller's transaction.
    """
    now = now or datetime.now(timezone.utc)

    sold_out = select(Product.recipe_id).where(
        Product.stock == 0, Product.recipe_id.is_not(None)
    )
    in_stock = select(Product.recipe_id).where(
        Product.stock > 0, Product.recipe_id.is_not(None)
    )

    hidden = db.execute(
        update(Recipe)
        .where(Recipe.deleted_at.is_(None), Recipe.id.in_(sold_out))
        .values(deleted_at=now)
        .execution_options(synchronize_session="fetch")
    ).rowcount or 0

    restored = db.execute(
        update(Recipe)
        .where(Recipe.deleted_at.is_not(None), Recipe.id.in_(in_stock))
        .values(deleted_at=None)
        .execution_options(synchronize_session="fetch")
    ).rowcount or 0

    if hidden or restored:
        logger.warning("Catalog visibility drift repaired", hidden=hidden, restored=restored)
    else:
        logger.info("Catalog visibility consistent")

    return ReconcileResult(hidden=hidden, restored=restored)
