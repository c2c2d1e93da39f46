"""
Orders Router.
Checkout, draft confirmation, cart rebuild and order history for the
logged-in customer.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from nutribite_shared.config.constants import Limits, NotificationEvents
from nutribite_shared.infrastructure.db import get_db
from nutribite_shared.infrastructure.notifications import (
    Notification,
    NotificationPublisher,
    get_notifier,
    publish_safely,
)
from nutribite_shared.security.auth import current_user_context
from nutribite_shared.security.rate_limit import CART_MUTATION_LIMIT, CHECKOUT_LIMIT, limiter
from nutribite_shared.utils.schemas import (
    CheckoutOutput,
    CheckoutRequest,
    LatestDraftOutput,
    OrderConfirmOutput,
    OrderDetailOutput,
    OrderListOutput,
    RebuildCartOutput,
)
from nutribite_api.services.domain import CheckoutService, OrderService
from nutribite_api.services.views import (
    checkout_view,
    order_item_view,
    order_view,
)


router = APIRouter(prefix="/api/orders", tags=["orders"])


def low_stock_notification(product_id: int, recipe_id: int | None, stock: int) -> Notification:
    return Notification(
        type=NotificationEvents.STOCK_LOW,
        payload={"product_id": product_id, "recipe_id": recipe_id, "stock": stock},
    )


# =============================================================================
# Checkout
# =============================================================================


@router.post("/checkout", response_model=CheckoutOutput, status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_LIMIT)
def checkout(
    request: Request,
    body: CheckoutRequest,
    background_tasks: BackgroundTasks,
    idempotency_key: str | None = Header(
        default=None, alias="Idempotency-Key", max_length=Limits.MAX_IDEMPOTENCY_KEY_LENGTH
    ),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
    notifier: NotificationPublisher = Depends(get_notifier),
) -> CheckoutOutput:
    """
    Turn the cart into one draft order per category.

    schedule maps each category key in the cart to a delivery datetime;
    applyToAll uses one datetime for every category. A repeated
    Idempotency-Key returns the orders of the first checkout.
    """
    result = CheckoutService(db).checkout(
        user["user_id"],
        body.schedule,
        apply_to_all=body.apply_to_all,
        idempotency_key=idempotency_key,
    )

    if not result.replayed:
        background_tasks.add_task(
            publish_safely,
            notifier,
            Notification(
                type=NotificationEvents.ORDER_CHECKED_OUT,
                payload={
                    "user_id": user["user_id"],
                    "order_ids": [order.id for order in result.orders],
                },
            ),
        )
        for update in result.low_stock_alerts:
            background_tasks.add_task(
                publish_safely,
                notifier,
                low_stock_notification(update.product_id, update.recipe_id, update.stock),
            )

    return checkout_view(result)


# =============================================================================
# Reads
# =============================================================================


@router.get("", response_model=OrderListOutput)
def list_orders(
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> OrderListOutput:
    orders = OrderService(db).list_orders(user["user_id"], limit=limit, offset=offset)
    return OrderListOutput(items=[order_view(order) for order in orders])


@router.get("/draft/latest", response_model=LatestDraftOutput)
def latest_draft(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> LatestDraftOutput:
    """Most recent draft order of the caller; 404 when there is none."""
    order = OrderService(db).latest_draft(user["user_id"])
    return LatestDraftOutput(order_id=order.id)


@router.get("/{order_id}", response_model=OrderDetailOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> OrderDetailOutput:
    order = OrderService(db).get_order(user["user_id"], order_id)
    return OrderDetailOutput(
        order=order_view(order),
        items=[order_item_view(item) for item in order.items],
    )


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/{order_id}/confirm", response_model=OrderConfirmOutput)
@limiter.limit(CHECKOUT_LIMIT)
def confirm_order(
    request: Request,
    order_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
    notifier: NotificationPublisher = Depends(get_notifier),
) -> OrderConfirmOutput:
    """Confirm one of the caller's draft orders."""
    order = OrderService(db).confirm(user["user_id"], order_id)
    background_tasks.add_task(
        publish_safely,
        notifier,
        Notification(
            type=NotificationEvents.ORDER_CONFIRMED,
            payload={
                "user_id": user["user_id"],
                "order_id": order.id,
                "delivery_at": order.delivery_at.isoformat(),
            },
        ),
    )
    return OrderConfirmOutput(order_id=order.id, status=order.status)


@router.post("/{order_id}/rebuild_cart", response_model=RebuildCartOutput)
@limiter.limit(CART_MUTATION_LIMIT)
def rebuild_cart(
    request: Request,
    order_id: int,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> RebuildCartOutput:
    """Replace the cart with the lines of a past order, at current prices."""
    result = OrderService(db).rebuild_cart(user["user_id"], order_id)
    return RebuildCartOutput(rebuilt=result.rebuilt, skipped=result.skipped)
