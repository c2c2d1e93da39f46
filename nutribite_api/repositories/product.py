"""
Product Repository - Data access for products and their linked recipes.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import Select, select
from sqlalchemy.orm import contains_eager, joinedload

from nutribite_api.models import Product, Recipe
from nutribite_api.services.stock_visibility import visible_recipe_clause
from .base import BaseRepository, RepositoryFilters


@dataclass
class ProductFilters(RepositoryFilters):
    """Catalog filters (public and admin)."""

    category_id: int | None = None
    diet_type_id: int | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    min_calories: int | None = None
    max_calories: int | None = None
    # Admin only
    min_stock: int | None = None
    max_stock: int | None = None
    in_stock_only: bool = False


class ProductRepository(BaseRepository[Product]):
    """
    Repository for Product entities.

    Catalog queries inner-join the linked recipe and eager load its category
    and diet type. Unless include_deleted is set, soft-deleted recipes are
    hidden.
    """

    @property
    def model(self) -> type[Product]:
        return Product

    def _base_query(self) -> Select:
        return (
            select(Product)
            .join(Product.recipe)
            .options(
                contains_eager(Product.recipe).joinedload(Recipe.category),
                contains_eager(Product.recipe).joinedload(Recipe.diet_type),
            )
            .order_by(Product.id.desc())
        )

    def _count_base_query(self) -> Select:
        return select(Product).join(Product.recipe)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, ProductFilters):
            filters = ProductFilters(**filters.__dict__)

        if not filters.include_deleted:
            query = query.where(visible_recipe_clause())

        if filters.search:
            query = query.where(Recipe.name.ilike(f"%{filters.search}%"))

        if filters.category_id is not None:
            query = query.where(Recipe.category_id == filters.category_id)

        if filters.diet_type_id is not None:
            query = query.where(Recipe.diet_type_id == filters.diet_type_id)

        if filters.min_price is not None:
            query = query.where(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.where(Product.price <= filters.max_price)

        if filters.min_calories is not None:
            query = query.where(Recipe.calories >= filters.min_calories)
        if filters.max_calories is not None:
            query = query.where(Recipe.calories <= filters.max_calories)

        if filters.min_stock is not None:
            query = query.where(Product.stock >= filters.min_stock)
        if filters.max_stock is not None:
            query = query.where(Product.stock <= filters.max_stock)
        if filters.in_stock_only:
            query = query.where(Product.stock > 0)

        return query

    def find_visible(self, product_id: int) -> Product | None:
        """Product by id, only if its recipe is publicly visible."""
        query = self._base_query().where(Product.id == product_id, visible_recipe_clause())
        return self._db.scalar(query)

    def find_visible_by_recipe(self, recipe_id: int) -> Product | None:
        query = self._base_query().where(Product.recipe_id == recipe_id, visible_recipe_clause())
        return self._db.scalar(query)

    def get(self, product_id: int) -> Product | None:
        """Product by id regardless of recipe link or visibility."""
        return self._db.scalar(
            select(Product)
            .where(Product.id == product_id)
            .options(joinedload(Product.recipe))
        )

    def lock_for_update(self, product_id: int) -> Product | None:
        """
        Load a product with a row lock (SELECT ... FOR UPDATE).

        Concurrent writers of the same product serialize on this lock until
        the current transaction ends.
        """
        return self._db.scalar(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def lock_many_for_update(self, product_ids: list[int]) -> dict[int, Product]:
        """
        Lock several products in ascending id order.

        A fixed lock order keeps two checkouts over the same products from
        deadlocking each other.
        """
        if not product_ids:
            return {}
        rows = self._db.scalars(
            select(Product)
            .where(Product.id.in_(sorted(set(product_ids))))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).all()
        return {product.id: product for product in rows}

    def lock_recipe(self, recipe_id: int) -> Recipe | None:
        return self._db.scalar(
            select(Recipe)
            .where(Recipe.id == recipe_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
