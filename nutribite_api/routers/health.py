"""
Health check endpoints.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from nutribite_shared.config.settings import settings


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """Service status without checking dependencies."""
    return {
        "status": "healthy",
        "service": "nutribite-api",
        "environment": settings.environment,
    }


@router.get("/health/detailed")
def detailed_health_check(request: Request):
    """Also checks database connectivity; 503 when it is down."""
    checks = {
        "service": "nutribite-api",
        "environment": settings.environment,
        "dependencies": {},
    }
    try:
        with request.app.state.database.session() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
        checks["status"] = "healthy"
    except SQLAlchemyError as e:
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        checks["status"] = "degraded"
        return JSONResponse(content=checks, status_code=503)
    return checks
