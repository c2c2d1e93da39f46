"""
Admin API router - combines the admin sub-routers.

- menu: catalog search including hidden products, stock and price edits

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from .menu import router as menu_router


router = APIRouter(prefix="/api/admin")

router.include_router(menu_router)

__all__ = ["router"]
