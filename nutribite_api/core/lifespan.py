"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from nutribite_shared.config.settings import settings
from nutribite_shared.config.logging import setup_logging, api_logger as logger
from nutribite_shared.infrastructure.db import Database
from nutribite_shared.infrastructure.notifications import build_publisher
from nutribite_api.models import Base


def build_lifespan(
    database: Database | None = None,
) -> Callable[[FastAPI], AsyncIterator[None]]:
    """
    Lifespan bound to an optional pre-built Database.

    Without one, the pool is built from settings at startup and disposed
    at shutdown; a database passed in is owned by the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()

        # Validate production secrets before startup
        secret_errors = settings.validate_production_secrets()
        if secret_errors:
            for error in secret_errors:
                logger.error("Configuration error", error=error)
            if settings.environment == "production":
                raise RuntimeError(
                    f"Production configuration errors: {'; '.join(secret_errors)}. "
                    "Server will not start with insecure configuration."
                )
            logger.warning("Running with insecure defaults (acceptable for development only)")

        logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

        owns_database = database is None
        app.state.database = database or Database.from_settings(settings)

        Base.metadata.create_all(bind=app.state.database.engine)
        logger.info("Database tables created/verified")

        if getattr(app.state, "notifier", None) is None:
            app.state.notifier = build_publisher(settings)

        yield

        logger.info("Shutting down REST API")

        await app.state.notifier.close()
        logger.info("Notification publisher closed")

        if owns_database:
            app.state.database.dispose()
            logger.info("Database pool disposed")

    return lifespan
