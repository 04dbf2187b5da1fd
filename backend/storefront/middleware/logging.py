"""
Storefront Backend — Request Logging Middleware
=================================================

What:  One access log line per HTTP request: method, path (with query
       string), status, duration and request ID.
When:  Inside RequestIDMiddleware, so the request ID is already set.

Level by status:
    5xx → ERROR, 4xx → WARNING, otherwise INFO.

Request bodies are never logged; login and registration bodies carry
plaintext passwords.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from storefront.middleware.request_id import request_id_var

logger = logging.getLogger("storefront.access")

# Probed every few seconds by container health checks
_SILENT_PATHS = frozenset({"/health"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SILENT_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"

        logger.log(
            _level_for(response.status_code),
            "[%s] %s %s → %d (%.1fms)",
            request_id_var.get(""),
            request.method,
            target,
            response.status_code,
            elapsed_ms,
        )
        return response
