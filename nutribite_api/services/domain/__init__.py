"""
Domain Services.

Services contain business logic and own transaction boundaries. They use
Repositories for data access.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from nutribite_api.services.domain import CartService

    service = CartService(db)
    result = service.add(user_id, product_id, quantity=2)
"""

from .pricing import PriceBreakdown, price, line_total
from .cart_service import CartService, CartLineResult, CartSummary
from .stock_service import (
    StockService,
    StockUpdateResult,
    PriceUpdateResult,
    resolve_price_factor,
    validate_stock_value,
)
from .checkout_service import CheckoutService, CheckoutResult
from .order_service import OrderService, RebuildResult
from .catalog_service import CatalogService, CatalogPage, CategoryCount

__all__ = [
    "PriceBreakdown",
    "price",
    "line_total",
    "CartService",
    "CartLineResult",
    "CartSummary",
    "StockService",
    "StockUpdateResult",
    "PriceUpdateResult",
    "resolve_price_factor",
    "validate_stock_value",
    "CheckoutService",
    "CheckoutResult",
    "OrderService",
    "RebuildResult",
    "CatalogService",
    "CatalogPage",
    "CategoryCount",
]
