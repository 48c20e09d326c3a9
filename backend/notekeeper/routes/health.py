"""
Notekeeper Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and pings the admission gate
       backend. Never rate limited (see RateLimitMiddleware.EXCLUDED_PATHS).

Status levels:
    healthy:   database and rate limiter reachable
    degraded:  rate limiter unreachable (every gated request would fail)
    unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from notekeeper import __version__
from notekeeper.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    db_status = "connected"
    limiter_status = "available"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    gate = request.app.state.admission_gate
    if gate is None:
        limiter_status = "disabled"
    elif not await gate.ping():
        limiter_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        rate_limiter=limiter_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
