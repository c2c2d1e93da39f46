"""
Public menu router.
Only products whose recipe is visible are returned.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nutribite_shared.infrastructure.db import get_db
from nutribite_shared.utils.schemas import (
    CategoryCountOutput,
    CategoryListOutput,
    PageMeta,
    ProductListOutput,
    ProductOutput,
)
from nutribite_api.repositories import ProductFilters
from nutribite_api.routers._common.filters import catalog_filters
from nutribite_api.services.domain import CatalogService
from nutribite_api.services.views import product_view


router = APIRouter(prefix="/api/menu", tags=["menu"])


@router.get("", response_model=ProductListOutput)
def list_menu(
    filters: ProductFilters = Depends(catalog_filters),
    db: Session = Depends(get_db),
) -> ProductListOutput:
    """
    Visible products, newest first.

    Supports name search (q), category, diet type, price and calorie
    bounds, and limit/offset pagination.
    """
    page = CatalogService(db).list_public(filters)
    return ProductListOutput(
        items=[product_view(product) for product in page.items],
        meta=PageMeta(limit=page.limit, offset=page.offset, total=page.total),
    )


@router.get("/categories", response_model=CategoryListOutput)
def list_categories(db: Session = Depends(get_db)) -> CategoryListOutput:
    counts = CatalogService(db).category_counts()
    return CategoryListOutput(
        items=[
            CategoryCountOutput(id=c.id, name=c.name, product_count=c.product_count)
            for c in counts
        ]
    )


@router.get("/by-recipe/{recipe_id}", response_model=ProductOutput)
def get_menu_item_by_recipe(recipe_id: int, db: Session = Depends(get_db)) -> ProductOutput:
    return product_view(CatalogService(db).get_public_by_recipe(recipe_id))


@router.get("/{product_id}", response_model=ProductOutput)
def get_menu_item(product_id: int, db: Session = Depends(get_db)) -> ProductOutput:
    return product_view(CatalogService(db).get_public(product_id))
