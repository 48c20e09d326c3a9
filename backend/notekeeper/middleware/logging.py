"""
Notekeeper Backend — Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration,
       request id and client address.
When:  Runs inside RequestIDMiddleware, so the correlation id is available.

Log level follows the status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies are never logged; note content is user data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.middleware.request_id import request_id_var

logger = logging.getLogger("notekeeper.access")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logger; /health is skipped because probes would drown it."""

    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("")
        client_host = request.client.host if request.client else "unknown"
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s request for %s -> %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_host,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_host,
            },
        )
        return response
