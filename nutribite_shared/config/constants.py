"""
Centralized constants for the ordering core.

Usage:
    from nutribite_shared.config.constants import OrderStatus, Roles

    if order.status == OrderStatus.DRAFT:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """Role claims carried in the session token."""

    ADMIN: Final[str] = "ADMIN"
    CUSTOMER: Final[str] = "CUSTOMER"
    COURIER: Final[str] = "COURIER"

    ALL: Final[list[str]] = [ADMIN, CUSTOMER, COURIER]


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order lifecycle: draft (created by checkout) -> confirmed (terminal)."""

    DRAFT: Final[str] = "draft"
    CONFIRMED: Final[str] = "confirmed"

    ALL: Final[list[str]] = [DRAFT, CONFIRMED]


class PriceAdjustMode:
    """How a percent price adjustment is applied."""

    INCREASE: Final[str] = "increase"
    DECREASE: Final[str] = "decrease"


# =============================================================================
# Notification Events
# =============================================================================


class NotificationEvents:
    """Event types published to the notification sink."""

    STOCK_LOW: Final[str] = "STOCK_LOW"
    ORDER_CHECKED_OUT: Final[str] = "ORDER_CHECKED_OUT"
    ORDER_CONFIRMED: Final[str] = "ORDER_CONFIRMED"


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Validation limits."""

    MAX_QUANTITY: Final[int] = 999
    MAX_STOCK: Final[int] = 1_000_000
    MAX_IDEMPOTENCY_KEY_LENGTH: Final[int] = 100

    # Pagination
    DEFAULT_PAGE_SIZE: Final[int] = 20
    MAX_PAGE_SIZE: Final[int] = 100
    MAX_SEARCH_TERM_LENGTH: Final[int] = 100


# Schedule key used for cart lines whose recipe has no category
UNCATEGORIZED_KEY: Final[str] = "0"
