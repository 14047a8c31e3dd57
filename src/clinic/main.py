"""
Clinic Records Service - Application Entry Point.

This module wires together:
- FastAPI application factory with middleware
- Structured logging (structlog)
- CORS, security-headers and request-ID middleware
- Global exception handlers
- Lifespan: DB health check on startup, pool disposal on shutdown
"""
from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .api.v1 import router as v1_router
from .core.config import get_settings
from .core.exceptions import AppException
from .core.responses import ErrorResponse
from .db.session import close_db, get_db_manager


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging() -> None:
    """Configure structured logging via structlog."""
    settings = get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            (
                structlog.dev.ConsoleRenderer()
                if settings.is_development
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (SQLAlchemy, uvicorn) log through stdlib logging
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=log_level,
        stream=sys.stdout,
    )


# ---------------------------------------------------------------------------
# Security-headers middleware
# ---------------------------------------------------------------------------

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        docs_paths = {"/docs", "/redoc", "/openapi.json"}
        if request.url.path in docs_paths and not get_settings().is_production:
            # Swagger UI assets come from jsdelivr
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https://fastapi.tiangolo.com; "
                "frame-ancestors 'none'"
            )
        else:
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


# ---------------------------------------------------------------------------
# Request-ID middleware
# ---------------------------------------------------------------------------

class RequestIDMiddleware(BaseHTTPMiddleware):
    """Give every request an ID and bind it to the structlog context.

    An incoming ``X-Request-ID`` header is reused; the ID is echoed back in
    the response header of the same name.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging, database ping (and table creation in development).
    Shutdown: dispose the connection pool.
    """
    settings = get_settings()
    logger = structlog.get_logger()

    configure_logging()
    logger.info(
        "application_starting",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
    )

    db_manager = get_db_manager()
    db_health = await db_manager.health_check()
    logger.info("database_health_checked", status=db_health["status"])
    if settings.is_development and db_health["status"] == "healthy":
        await db_manager.create_all()

    yield

    logger.info("application_stopping")
    await close_db()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    tags_metadata = [
        {"name": "Health", "description": "Liveness, readiness and status checks."},
        {"name": "Authentication", "description": "Signup, login with clinic selection, current user."},
        {"name": "Patients", "description": "Registration with numbering, billing and initial visit."},
        {"name": "Doctors", "description": "Doctor profiles; writes restricted to clinic admins."},
        {"name": "Staff", "description": "Staff profiles; writes restricted to clinic admins."},
        {"name": "Visits", "description": "Visits and the registration fee waiver window."},
        {"name": "Operations", "description": "Operations and their bills."},
        {"name": "Prescriptions", "description": "Medications issued during visits."},
        {"name": "Billing", "description": "List, read and settle bills."},
        {"name": "Inventory", "description": "Clinic stock items (admin only)."},
    ]

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
# Clinic Records API

Multi-clinic patient records with tenant-scoped role-based access.

Every authenticated request carries a bearer token scoped to one clinic.
Responses share one envelope: `success`, `status_code`, `message`, `data`, `error`.

All endpoints are versioned under `/api/v1/`.
        """,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        default_response_class=JSONResponse,
        lifespan=lifespan,
        openapi_tags=tags_metadata,
    )

    # ------------------------------------------------------------------
    # Middleware - first registered = innermost wrapper
    # ------------------------------------------------------------------
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.cors_methods_list,
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    app.include_router(v1_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        payload: dict = {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "health": "/api/v1/health",
        }
        if settings.is_development:
            payload["docs"] = "/docs"
        return payload

    return app


def _error_response(status_code: int, code: str, message: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            status_code=status_code,
            message=message,
            error=code,
            details=details or {},
        ).model_dump(mode="json"),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Attach global exception handlers to the application."""
    logger = structlog.get_logger()

    @app.exception_handler(AppException)
    async def _app_exc(request: Request, exc: AppException) -> JSONResponse:
        logger.warning(
            "application_exception",
            error_code=exc.error_code,
            message=exc.message,
            path=request.url.path,
        )
        return _error_response(exc.status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(request: Request, exc: RequestValidationError) -> JSONResponse:
        validation_errors = [
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        logger.warning("request_validation_failed", path=request.url.path, errors=len(validation_errors))
        return _error_response(
            422,
            "VALIDATION_ERROR",
            "Request validation failed",
            {"validation_errors": validation_errors},
        )

    @app.exception_handler(Exception)
    async def _generic_exc(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=request.url.path)
        # Internal details only leave the process in debug mode
        message = str(exc) if get_settings().DEBUG else "An unexpected error occurred"
        return _error_response(500, "INTERNAL_ERROR", message)


# ---------------------------------------------------------------------------
# Module-level application instance (consumed by uvicorn)
# ---------------------------------------------------------------------------
app = create_application()
