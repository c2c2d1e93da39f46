"""
Cart Router.
Per-user cart lines; quantities are capped at what is available.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from nutribite_shared.infrastructure.db import get_db
from nutribite_shared.security.auth import current_user_context
from nutribite_shared.security.rate_limit import CART_MUTATION_LIMIT, limiter
from nutribite_shared.utils.schemas import (
    CartAddRequest,
    CartLineOutput,
    CartListOutput,
    CartRemovedOutput,
    CartSummaryOutput,
    CartUpdateRequest,
)
from nutribite_api.services.domain import CartService
from nutribite_api.services.views import cart_item_view, cart_line_view


router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartListOutput)
def list_cart(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartListOutput:
    """Cart lines with product, recipe and category, newest first."""
    items = CartService(db).list_items(user["user_id"])
    return CartListOutput(items=[cart_item_view(item) for item in items])


@router.get("/summary", response_model=CartSummaryOutput)
def cart_summary(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartSummaryOutput:
    summary = CartService(db).summary(user["user_id"])
    return CartSummaryOutput(
        total_price=summary.total_price,
        total_items=summary.total_items,
        total_calories=summary.total_calories,
    )


@router.post("", response_model=CartLineOutput)
@limiter.limit(CART_MUTATION_LIMIT)
def add_to_cart(
    request: Request,
    response: Response,
    body: CartAddRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartLineOutput:
    """
    Add a product to the cart.

    Returns 201 when a new line was created, 200 when an existing line grew.
    """
    result = CartService(db).add(user["user_id"], body.product_id, body.quantity)
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return cart_line_view(result)


@router.patch("/{item_id}", response_model=CartLineOutput)
@limiter.limit(CART_MUTATION_LIMIT)
def update_cart_item(
    request: Request,
    item_id: int,
    body: CartUpdateRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartLineOutput:
    """Set a line's quantity; 0 removes the line."""
    result = CartService(db).set_quantity(user["user_id"], item_id, body.quantity)
    return cart_line_view(result)


@router.delete("/{item_id}", response_model=CartRemovedOutput)
@limiter.limit(CART_MUTATION_LIMIT)
def remove_cart_item(
    request: Request,
    item_id: int,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartRemovedOutput:
    removed = CartService(db).remove(user["user_id"], item_id)
    return CartRemovedOutput(removed=removed)


@router.delete("", response_model=CartRemovedOutput)
@limiter.limit(CART_MUTATION_LIMIT)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(current_user_context),
) -> CartRemovedOutput:
    removed = CartService(db).clear(user["user_id"])
    return CartRemovedOutput(removed=removed)
