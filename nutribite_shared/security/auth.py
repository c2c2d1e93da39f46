"""
Session identity.

Identity is owned by an external provider that issues a signed JWT. The
ordering core only verifies it and reads two claims: "sub" (user id) and
"roles". The token is accepted from the session cookie or from an
"Authorization: Bearer" header.
"""

from __future__ import annotations

import time
from typing import Any

import jwt
from fastapi import Depends, Header, Request

from nutribite_shared.config.constants import Roles
from nutribite_shared.config.logging import get_logger
from nutribite_shared.config.settings import settings
from nutribite_shared.utils.exceptions import ForbiddenError, UnauthorizedError

logger = get_logger(__name__)


def sign_session_token(
    user_id: int,
    roles: list[str] | None = None,
    ttl_seconds: int | None = None,
) -> str:
    """
    Sign a session token.

    Used by the CLI and the test-suite; in production tokens come from the
    identity provider sharing SESSION_SECRET.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.session_ttl_minutes * 60
    now = int(time.time())
    data = {
        "sub": str(user_id),
        "roles": roles if roles is not None else [Roles.CUSTOMER],
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(data, settings.session_secret, algorithm=settings.session_algorithm)


def verify_session_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Returns:
        {"user_id": int, "roles": list[str]}

    Raises:
        UnauthorizedError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session has expired")
    except jwt.InvalidTokenError as e:
        # Generic message to the client, actual reason in the log
        logger.warning("Session token validation failed", error=str(e))
        raise UnauthorizedError("Invalid session")

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid session: malformed subject claim")

    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        raise UnauthorizedError("Invalid session: malformed roles claim")

    return {"user_id": user_id, "roles": [str(r) for r in roles]}


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return token.strip()


def current_user_context(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency returning the caller's identity.

    Usage:
        @router.get("/api/cart")
        def get_cart(user: dict = Depends(current_user_context)):
            user_id = user["user_id"]
    """
    token = _bearer_token(authorization) or request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError()
    return verify_session_token(token)


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the user has at least one of the allowed roles.

    Raises:
        ForbiddenError: If user lacks every allowed role.
    """
    if not set(ctx.get("roles", [])).intersection(allowed):
        raise ForbiddenError(
            f"this action (requires role: {', '.join(allowed)})",
            user_id=ctx.get("user_id"),
        )


def require_admin(user: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    """FastAPI dependency for admin-only routes."""
    require_roles(user, [Roles.ADMIN])
    return user
