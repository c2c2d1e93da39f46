"""
Catalog filter dependencies shared by the public menu and the admin menu.
"""

from decimal import Decimal

from fastapi import Depends, Query

from nutribite_shared.config.constants import Limits
from nutribite_api.repositories import ProductFilters
from .pagination import Pagination, get_pagination


def catalog_filters(
    q: str | None = Query(default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH),
    category_id: int | None = Query(default=None, ge=1),
    diet_type_id: int | None = Query(default=None, ge=1),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    min_calories: int | None = Query(default=None, ge=0),
    max_calories: int | None = Query(default=None, ge=0),
    pagination: Pagination = Depends(get_pagination),
) -> ProductFilters:
    return ProductFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        search=q,
        category_id=category_id,
        diet_type_id=diet_type_id,
        min_price=min_price,
        max_price=max_price,
        min_calories=min_calories,
        max_calories=max_calories,
    )


def admin_catalog_filters(
    min_stock: int | None = Query(default=None, ge=0),
    max_stock: int | None = Query(default=None, ge=0),
    in_stock_only: bool = Query(default=False),
    include_deleted: bool = Query(default=False),
    filters: ProductFilters = Depends(catalog_filters),
) -> ProductFilters:
    """Public filters plus stock bounds and soft-deleted recipes."""
    filters.min_stock = min_stock
    filters.max_stock = max_stock
    filters.in_stock_only = in_stock_only
    filters.include_deleted = include_deleted
    return filters
