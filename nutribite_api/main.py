"""
REST API main application.
Entry point for the FastAPI server of the ordering core.
"""

from fastapi import FastAPI

from nutribite_shared.config.settings import settings
from nutribite_shared.infrastructure.db import Database
from nutribite_shared.security.rate_limit import limiter
from nutribite_api.core import (
    build_lifespan,
    configure_cors,
    register_exception_handlers,
    register_middlewares,
)
from nutribite_api.routers import (
    admin_router,
    cart_router,
    catalog_router,
    health_router,
    orders_router,
)


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the application.

    A Database passed in (tests, scripts) is used as-is; otherwise one is
    created from settings when the app starts.
    """
    app = FastAPI(
        title="NutriBite Ordering API",
        description="Catalog, cart, checkout and inventory for the meal delivery storefront",
        version="0.1.0",
        lifespan=build_lifespan(database),
    )
    if database is not None:
        app.state.database = database

    # Rate limiting
    app.state.limiter = limiter
    register_exception_handlers(app)

    register_middlewares(app)
    configure_cors(app)

    app.include_router(health_router)
    app.include_router(catalog_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(admin_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "nutribite_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
