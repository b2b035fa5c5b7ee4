"""FastAPI application entry point with global error handling."""
from __future__ import annotations

import os
import sys

# Add src/ to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.exceptions import (
    AggregationError,
    ConflictError,
    NotFoundError,
    RealtyCRMError,
    ValidationError,
)
from core.logging_config import get_logger, setup_logging
from api.routes import (
    health,
    auth,
    users,
    dashboard,
    leads,
    projects,
    units,
    communications,
    customers,
    bookings,
    payments,
    channel_partners,
)

LOGGER = get_logger(__name__)
SETTINGS = get_settings()

_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}


def format_validation_errors(raw_errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{field, message, type}`` entries, one per failure."""
    errors = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_ROOTS and len(loc) > 1:
            loc = loc[1:]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        })
    return errors


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Sets up logging and validates the database. Startup is not blocked by
    a missing database so health checks can still answer.
    """
    json_logging = SETTINGS.log_format == "json"
    setup_logging(level=SETTINGS.log_level, json_format=json_logging)

    LOGGER.info(
        "API application starting",
        extra={"extra_data": {
            "environment": SETTINGS.environment,
            "database": "sqlite" if SETTINGS.is_sqlite else "server",
        }},
    )

    from core.db import init_db, validate_database

    db_status = validate_database()
    if db_status["status"] == "error":
        LOGGER.error(
            "Database validation failed - app will start without database",
            extra={"extra_data": {"errors": db_status["errors"]}},
        )
    elif db_status["status"] == "missing_tables":
        LOGGER.warning(
            "Missing database tables detected - creating them",
            extra={"extra_data": {"missing": db_status["tables_missing"]}},
        )
        init_result = init_db()
        LOGGER.info(
            "Database tables created",
            extra={"extra_data": {"created": init_result["tables_created"]}},
        )
    else:
        LOGGER.info("Database validation passed")

    yield
    LOGGER.info("API application shutting down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance with:
        - CORS middleware
        - Global exception handlers
        - All API routes under /api
    """
    application = FastAPI(
        title="Realty Sales CRM",
        description="Lead, inventory, booking and payment tracking for real-estate sales teams",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    origins = SETTINGS.get_allowed_origins()
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Global Exception Handlers
    # -------------------------------------------------------------------------

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report every failing field of an invalid request."""
        errors = format_validation_errors(exc.errors())
        LOGGER.warning(
            "Request validation failed",
            extra={"extra_data": {"path": request.url.path, "fields": [e["field"] for e in errors]}},
        )
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request data", "errors": errors},
        )

    @application.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle domain validation errors."""
        LOGGER.warning(f"Validation error: {exc}", extra={"extra_data": {"path": request.url.path}})
        return JSONResponse(
            status_code=400,
            content={"message": exc.message, "errors": exc.errors},
        )

    @application.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @application.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        LOGGER.info(f"Conflict: {exc}", extra={"extra_data": {"path": request.url.path}})
        return JSONResponse(status_code=409, content={"message": str(exc)})

    @application.exception_handler(IntegrityError)
    async def integrity_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """Unique and foreign key violations that slipped past the service checks."""
        LOGGER.warning(
            f"Integrity error: {exc.orig}",
            extra={"extra_data": {"path": request.url.path}},
        )
        return JSONResponse(
            status_code=409,
            content={"message": "Request conflicts with existing data"},
        )

    @application.exception_handler(AggregationError)
    async def aggregation_handler(request: Request, exc: AggregationError) -> JSONResponse:
        LOGGER.error(f"Aggregation error: {exc}", extra={"extra_data": {"path": request.url.path}})
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to fetch dashboard metrics"},
        )

    @application.exception_handler(RealtyCRMError)
    async def app_error_handler(request: Request, exc: RealtyCRMError) -> JSONResponse:
        """Handle all other application errors without leaking details."""
        LOGGER.error(f"Application error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"},
        )

    @application.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render HTTP errors (401, 403, unknown routes) with the same body shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @application.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error(
            f"Unhandled error: {exc}",
            exc_info=True,
            extra={"extra_data": {"path": request.url.path}},
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"},
        )

    # -------------------------------------------------------------------------
    # Include Routers
    # -------------------------------------------------------------------------

    @application.get("/health")
    async def root_health_check() -> Dict[str, str]:
        """Lightweight liveness check - no dependencies."""
        return {"status": "ok", "service": "realty-crm"}

    application.include_router(health.router, prefix="/api/health", tags=["Health"])
    application.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    application.include_router(users.router, prefix="/api/users", tags=["Users"])
    application.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
    application.include_router(leads.router, prefix="/api/leads", tags=["Leads"])
    application.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
    application.include_router(units.router, prefix="/api/units", tags=["Units"])
    application.include_router(
        communications.router, prefix="/api/communications", tags=["Communications"]
    )
    application.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
    application.include_router(bookings.router, prefix="/api/bookings", tags=["Bookings"])
    application.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
    application.include_router(
        channel_partners.router, prefix="/api/channel-partners", tags=["Channel Partners"]
    )

    return application


# Create the application instance
app = create_app()
