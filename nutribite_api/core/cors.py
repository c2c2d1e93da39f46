"""
CORS for the storefront and admin dashboard.

ALLOWED_ORIGINS (comma-separated) replaces the local dev origins.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nutribite_shared.config.settings import settings
from nutribite_shared.infrastructure.correlation import REQUEST_ID_HEADER


DEV_ORIGINS = tuple(
    f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in (3000, 5173)
)

ALLOWED_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Accept", "Authorization", "Content-Type", "Idempotency-Key", REQUEST_ID_HEADER]


def get_cors_origins() -> list[str]:
    configured = [origin.strip() for origin in (settings.allowed_origins or "").split(",")]
    return [origin for origin in configured if origin] or list(DEV_ORIGINS)


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
        # no preflight caching while developing
        max_age=0 if settings.environment == "development" else 600,
    )
