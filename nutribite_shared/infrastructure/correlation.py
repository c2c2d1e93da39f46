"""
Request correlation.

Every request gets an id (taken from X-Request-ID when the caller sends a
sane one, generated otherwise). The id is echoed in the response, stored on
request.state and kept in a context variable so every log line written while
handling the request carries it.
"""

import logging
import re
import time
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from nutribite_shared.config.logging import get_logger

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied ids are only trusted when short and printable
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

_request_id: ContextVar[str] = ContextVar("nutribite_request_id", default="")

logger = get_logger(__name__)


def get_request_id() -> str:
    return _request_id.get()


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and log its outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = _request_id.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.debug(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response
        finally:
            _request_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Copies the current request id onto log records ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        return True
