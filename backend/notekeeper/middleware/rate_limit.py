"""
Notekeeper Backend — Admission Middleware
==========================================

What:  Consults the admission gate before a request reaches any route.
Why:   Bounds request throughput for the whole API.
How:   Derives a rate-limit key, calls gate.enforce(key), and either passes
       the request on, answers 429, or answers 500 if the gate itself failed.
Who:   Applied to every request via Starlette middleware.

Key Scope (RATE_LIMIT_KEY_SCOPE):
    global: every caller shares one budget under RATE_LIMIT_GLOBAL_KEY.
            This is the default and makes the limit a process-wide throttle.
    client: one budget per caller IP, taken from the socket peer. Behind a
            reverse proxy, run uvicorn with --proxy-headers and
            --forwarded-allow-ips=<proxy address> so the peer is the real
            caller; forwarding headers are never read here.

Responses:
    429 {"message": "Too Many Requests"} with Retry-After and X-RateLimit-* headers
    500 {"message": "Internal Server Error"} when the gate backend is unreachable
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notekeeper.admission.base import AdmissionGate
from notekeeper.config import Settings
from notekeeper.exceptions import AdmissionDeniedError, AdmissionGateError
from notekeeper.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit_key(request: Request, settings: Settings) -> str:
    if settings.rate_limit_key_scope == "client":
        return f"ip:{client_ip(request)}"
    return settings.rate_limit_global_key


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Admission control for every non-excluded request.

    The gate and settings are read from app.state, where create_app()
    placed them. A missing gate (RATE_LIMIT_ENABLED=false) lets everything
    through.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        gate: Optional[AdmissionGate] = getattr(request.app.state, "admission_gate", None)
        if gate is None:
            return await call_next(request)

        settings: Settings = request.app.state.settings
        key = rate_limit_key(request, settings)

        try:
            decision = await gate.enforce(key)
        except AdmissionDeniedError as exc:
            logger.warning(
                "[%s] Rate limit exceeded for key %s: %d requests in %ds window",
                request_id_var.get(""),
                key,
                gate.limit,
                gate.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={"message": exc.message},
                headers={
                    "Retry-After": str(exc.retry_after),
                    "X-RateLimit-Limit": str(gate.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )
        except AdmissionGateError as exc:
            logger.error(
                "[%s] Rate limiter error: %s | Context: %s",
                request_id_var.get(""),
                exc.message,
                exc.context,
            )
            return JSONResponse(
                status_code=500,
                content={"message": "Internal Server Error"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
