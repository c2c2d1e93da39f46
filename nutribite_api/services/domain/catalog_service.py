"""
Catalog Domain Service.

Read side of the menu. Public reads never return a product whose recipe is
soft-deleted; admin reads can include them.
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from nutribite_shared.utils.exceptions import ProductNotFoundError
from nutribite_api.models import Category, Product, Recipe
from nutribite_api.repositories import ProductFilters, ProductRepository
from nutribite_api.services.stock_visibility import visible_recipe_clause


@dataclass
class CatalogPage:
    items: Sequence[Product]
    total: int
    limit: int
    offset: int


@dataclass
class CategoryCount:
    id: int
    name: str
    product_count: int


class CatalogService:
    """Domain service for catalog reads."""

    def __init__(self, db: Session):
        self._db = db
        self._products = ProductRepository(db)

    def list_public(self, filters: ProductFilters | None = None) -> CatalogPage:
        """Visible products; admin-only filters are ignored."""
        filters = filters or ProductFilters()
        filters.include_deleted = False
        filters.min_stock = None
        filters.max_stock = None
        filters.in_stock_only = False
        return self.search(filters)

    def search(self, filters: ProductFilters) -> CatalogPage:
        return CatalogPage(
            items=self._products.find_all(filters),
            total=self._products.count(filters),
            limit=filters.limit,
            offset=filters.offset,
        )

    def get_public(self, product_id: int) -> Product:
        product = self._products.find_visible(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_public_by_recipe(self, recipe_id: int) -> Product:
        product = self._products.find_visible_by_recipe(recipe_id)
        if product is None:
            raise ProductNotFoundError(None, recipe_id=recipe_id)
        return product

    def category_counts(self) -> list[CategoryCount]:
        """Categories with the number of visible products in each."""
        recipe_join = (Recipe.category_id == Category.id) & visible_recipe_clause()
        rows = self._db.execute(
            select(Category.id, Category.name, func.count(Product.id))
            .outerjoin(Recipe, recipe_join)
            .outerjoin(Product, Product.recipe_id == Recipe.id)
            .group_by(Category.id, Category.name)
            .order_by(Category.name)
        ).all()
        return [CategoryCount(id=row[0], name=row[1], product_count=row[2]) for row in rows]
