"""
Application wiring: lifespan, middlewares, CORS and exception handlers.
"""

from .cors import configure_cors
from .errors import register_exception_handlers
from .lifespan import build_lifespan
from .middlewares import register_middlewares

__all__ = [
    "build_lifespan",
    "configure_cors",
    "register_exception_handlers",
    "register_middlewares",
]
