"""
Admin menu endpoints: catalog search with hidden products, stock writes
(with the recipe visibility cascade) and price edits.

Thin router that delegates to CatalogService and StockService.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from nutribite_shared.infrastructure.db import get_db
from nutribite_shared.infrastructure.notifications import (
    NotificationPublisher,
    get_notifier,
    publish_safely,
)
from nutribite_shared.security.auth import require_admin
from nutribite_shared.security.rate_limit import ADMIN_WRITE_LIMIT, limiter
from nutribite_shared.utils.schemas import (
    AdminProductListOutput,
    PageMeta,
    PriceUpdateOutput,
    PriceUpdateRequest,
    StockStatusOutput,
    StockUpdateOutput,
    StockUpdateRequest,
)
from nutribite_api.repositories import ProductFilters
from nutribite_api.routers._common.filters import admin_catalog_filters
from nutribite_api.routers.orders import low_stock_notification
from nutribite_api.services.domain import CatalogService, StockService, resolve_price_factor
from nutribite_api.services.views import admin_product_view, stock_status_view


router = APIRouter(prefix="/menu", tags=["admin-menu"])


def _search(filters: ProductFilters, db: Session) -> AdminProductListOutput:
    page = CatalogService(db).search(filters)
    return AdminProductListOutput(
        items=[admin_product_view(product) for product in page.items],
        meta=PageMeta(limit=page.limit, offset=page.offset, total=page.total),
    )


@router.get("", response_model=AdminProductListOutput)
def list_admin_menu(
    filters: ProductFilters = Depends(admin_catalog_filters),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_admin),
) -> AdminProductListOutput:
    """All products, including those hidden when include_deleted is set."""
    return _search(filters, db)


@router.get("/search", response_model=AdminProductListOutput)
def search_admin_menu(
    filters: ProductFilters = Depends(admin_catalog_filters),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_admin),
) -> AdminProductListOutput:
    return _search(filters, db)


@router.get("/{product_id}/stock", response_model=StockStatusOutput)
def get_stock(
    product_id: int,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_admin),
) -> StockStatusOutput:
    return stock_status_view(StockService(db).get_stock(product_id))


@router.patch("/{product_id}/stock", response_model=StockUpdateOutput)
@limiter.limit(ADMIN_WRITE_LIMIT)
def update_stock(
    request: Request,
    product_id: int,
    body: StockUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_admin),
    notifier: NotificationPublisher = Depends(get_notifier),
) -> StockUpdateOutput:
    """
    Set a product's stock.

    Stock 0 hides the recipe from the public menu; stock > 0 restores it.
    Crossing the low-stock threshold publishes a STOCK_LOW notification.
    """
    result = StockService(db).set_stock(product_id, body.stock)
    if result.notify_admin:
        background_tasks.add_task(
            publish_safely,
            notifier,
            low_stock_notification(result.product_id, result.recipe_id, result.stock),
        )
    return StockUpdateOutput(
        product_id=result.product_id,
        recipe_id=result.recipe_id,
        stock=result.stock,
        recipe_deleted=result.recipe_deleted,
        notify_admin=result.notify_admin,
    )


@router.patch("/{product_id}/price", response_model=PriceUpdateOutput)
@limiter.limit(ADMIN_WRITE_LIMIT)
def update_price(
    request: Request,
    product_id: int,
    body: PriceUpdateRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_admin),
) -> PriceUpdateOutput:
    """
    Multiply the net price by a factor, or by 1 +/- percent/100.

    Only allowed while stock is at or below the price-edit threshold.
    """
    factor = resolve_price_factor(body.factor, body.percent, body.mode)
    result = StockService(db).adjust_price(product_id, factor)
    return PriceUpdateOutput(
        product_id=result.product_id,
        stock=result.stock,
        old_price=result.old_price,
        new_price=result.new_price,
        factor=result.factor,
    )
