"""
Notekeeper Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the process-wide handles (database engine,
       session factory, admission gate), stores them on app.state, registers
       middleware, exception handlers and routes.
Who:   uvicorn imports `notekeeper.main:app`; tests call create_app() with
       their own Settings.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────┐ ┌──────────┐ ┌─────────┐ ┌────────────┐   │
    │  │ CORS │→│ Req ID   │→│ Logging │→│ Rate Limit │   │
    │  └──────┘ └──────────┘ └─────────┘ └────────────┘   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────┐ ┌─────────────────┐   │
    │  │ /api/notes (CRUD)        │ │ GET /health     │   │
    │  └──────────────────────────┘ └─────────────────┘   │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→500* │ NotFound→404 │ DB→500      │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘
    * configurable through VALIDATION_ERROR_STATUS

Lifecycle:
    Startup:  logging, settings validation, optional table creation,
              rate limiter connectivity probe
    Shutdown: close the admission gate, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notekeeper import __version__
from notekeeper.admission import build_admission_gate
from notekeeper.config import Settings, settings as default_settings
from notekeeper.database import (
    build_engine,
    build_session_factory,
    create_tables,
    dispose_engine,
)
from notekeeper.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.rate_limit import RateLimitMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.routes import health, notes

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {"message": "Internal Server Error"}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout
    (Docker and most process managers capture stdout).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # The access middleware already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("Notekeeper backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports the broken dependency
        logger.error("Configuration error: %s", str(e))

    if settings.db_create_all:
        await create_tables(app.state.engine)
        logger.info("Database tables created")

    gate = app.state.admission_gate
    if gate is not None:
        if await gate.ping():
            logger.info(
                "Rate limiter ready: %s backend, %d requests / %ds, %s scope",
                settings.rate_limit_backend,
                settings.rate_limit_requests,
                settings.rate_limit_window,
                settings.rate_limit_key_scope,
            )
        else:
            logger.error("Rate limiter backend unreachable; gated requests will fail")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Notekeeper backend shutting down...")
    if gate is not None:
        await gate.close()
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _validation_response(request: Request, message: str, context: dict) -> JSONResponse:
    """
    Render a validation failure with the configured status.

    500 keeps the generic server-error body; 400/422 report the reason.
    """
    rid = request_id_var.get("")
    status_code = request.app.state.settings.validation_error_status
    logger.warning("[%s] Validation error: %s | Context: %s", rid, message, context)
    if status_code == 500:
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to status codes and bodies.

    Handler hierarchy:
        ValidationError / RequestValidationError → VALIDATION_ERROR_STATUS
        NotFoundError                            → 404
        DatabaseError                            → 500
        Exception (fallback)                     → 500

    Response bodies never include internals; details are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return _validation_response(request, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return _validation_response(
            request, "Request body must be a JSON object", {"errors": exc.errors()}
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": exc.message})

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every handle the request path needs is built here and hung on app.state;
    nothing downstream reaches for a module-level singleton.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Notekeeper API",
        description="Notes CRUD API with sliding-window rate limiting.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.admission_gate = build_admission_gate(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # added RateLimit → Logging → RequestID → CORS,
    # executed CORS → RequestID → Logging → RateLimit.
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
        ],
    )

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
