"""
API routers.
"""

from .admin import router as admin_router
from .cart import router as cart_router
from .catalog import router as catalog_router
from .health import router as health_router
from .orders import router as orders_router

__all__ = [
    "admin_router",
    "cart_router",
    "catalog_router",
    "health_router",
    "orders_router",
]
