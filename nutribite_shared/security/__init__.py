"""
Security: session token verification and rate limiting.
"""

from nutribite_shared.security.auth import (
    sign_session_token,
    verify_session_token,
    current_user_context,
    require_roles,
    require_admin,
)
from nutribite_shared.security.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "sign_session_token",
    "verify_session_token",
    "current_user_context",
    "require_roles",
    "require_admin",
    "limiter",
    "rate_limit_exceeded_handler",
]
