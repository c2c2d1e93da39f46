"""
Centralized HTTP exceptions for consistent error handling.

Every failure surfaces as {"detail": "<reason>"} with a status code from the
taxonomy below. Exceptions log themselves on construction.

Usage:
    from nutribite_shared.utils.exceptions import NotFoundError, ValidationError

    raise ProductNotFoundError(product_id)
    raise ValidationError("Quantity must be an integer >= 0", field="quantity")
"""

from typing import Any

from fastapi import HTTPException, status

from nutribite_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class so that logging and
    response format stay consistent.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Invalid stock value")
        raise ValidationError("Invalid quantity", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class EmptyCartError(ValidationError):
    """Checkout attempted with no cart lines."""

    def __init__(self, **log_context: Any):
        super().__init__("Cart is empty", **log_context)


class InvalidDeliveryTimeError(ValidationError):
    """A scheduled delivery datetime is outside the allowed window."""

    def __init__(self, category: str | None, reason: str, **log_context: Any):
        if category is None:
            detail = f"Invalid delivery time: {reason}"
        else:
            detail = f"Invalid delivery time for category {category}: {reason}"
        super().__init__(detail, category=category, **log_context)


# =============================================================================
# 401 / 403 Errors
# =============================================================================


class UnauthorizedError(AppException):
    """No (valid) session identifies the caller (401)."""

    def __init__(self, detail: str = "Not logged in", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="info",
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("update stock")
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not authorized to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Recipe", 123)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class ProductNotFoundError(NotFoundError):
    """Catalog product not found."""

    def __init__(self, product_id: int | None = None, **log_context: Any):
        super().__init__("Product", product_id, **log_context)


class CartItemNotFoundError(NotFoundError):
    """Cart line not found (or owned by somebody else)."""

    def __init__(self, item_id: int | None = None, **log_context: Any):
        super().__init__("Cart item", item_id, **log_context)


class CustomerNotFoundError(NotFoundError):
    """No customer record for the session user."""

    def __init__(self, user_id: int | None = None, **log_context: Any):
        super().__init__("Customer", None, user_id=user_id, **log_context)


class OrderNotFoundError(NotFoundError):
    """Order not found, not owned by the caller, or not in the expected state."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class NoDraftOrderError(AppException):
    """The customer has no draft order (404)."""

    def __init__(self, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No draft order",
            log_level="info",
            **log_context,
        )


# =============================================================================
# Business Rule Errors (400 / 422)
# =============================================================================


class BusinessRuleError(AppException):
    """
    A domain rule rejected the operation.

    Defaults to 422; subclasses that the API has always reported as 400
    override the status code.
    """

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
        **log_context: Any,
    ):
        super().__init__(
            status_code=status_code,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class OutOfStockError(BusinessRuleError):
    """Nothing left to add for this product."""

    def __init__(self, product_id: int, **log_context: Any):
        super().__init__(
            "Out of stock",
            status_code=status.HTTP_400_BAD_REQUEST,
            product_id=product_id,
            **log_context,
        )


class PriceEditBlockedError(BusinessRuleError):
    """Prices can only be edited while stock is low."""

    def __init__(self, product_id: int, stock: int, max_stock: int, **log_context: Any):
        super().__init__(
            f"Price can only be updated when stock <= {max_stock}",
            status_code=status.HTTP_400_BAD_REQUEST,
            product_id=product_id,
            stock=stock,
            **log_context,
        )


class UnlinkedProductError(BusinessRuleError):
    """Product is not linked to a recipe (422)."""

    def __init__(self, product_id: int, **log_context: Any):
        super().__init__(
            "Product is not linked to a recipe",
            product_id=product_id,
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Stock changed while checking out")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InsufficientStockError(ConflictError):
    """A checked-out line asks for more than is left."""

    def __init__(self, product_id: int, requested: int, available: int, **log_context: Any):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            product_id=product_id,
            requested=requested,
            available=available,
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to place order", user_id=3)
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed (after retries, where retrying applies)."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error during {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
