from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inspectflow.core.errors import (
    ConflictError,
    InspectFlowError,
    NotFoundError,
    RoleNotPermittedError,
    StoreUnavailableError,
    ValidationFailedError,
)
from inspectflow.core.logging import actor_role_var, configure_logging, correlation_id_var
from inspectflow.core.settings import get_app_settings
from inspectflow.db.run_migrations import main as run_alembic
from inspectflow.db.seed import seed_all
from inspectflow.schemas.common import ErrorInfo, ErrorResponse, HealthResponse

# Routers
from inspectflow.api.routes.gauges import router as gauges_router
from inspectflow.api.routes.orders import router as orders_router
from inspectflow.api.routes.packets import router as packets_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Orders", "description": "Inspection orders and their status."},
    {"name": "Gauges", "description": "Gauge catalog with calibration status."},
    {"name": "Packets", "description": "Inspection packets, 8-RD reports, gauge use and sign-off."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id and actor_role for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    role = request.headers.get("X-Actor-Role")
    token_corr = correlation_id_var.set(corr)
    token_role = actor_role_var.set(role)
    request.state.correlation_id = corr
    request.state.actor_role = role

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        actor_role_var.reset(token_role)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        actor_role=getattr(request.state, "actor_role", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


# Most specific first; the first matching base decides the status code.
_DOMAIN_ERRORS = (
    (ValidationFailedError, 422, "validation_error"),
    (RoleNotPermittedError, 403, "role_not_permitted"),
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
    (StoreUnavailableError, 503, "store_unavailable"),
)


@app.exception_handler(InspectFlowError)
async def domain_exception_handler(request: Request, exc: InspectFlowError):
    """
    Map engine exceptions onto HTTP status codes with the standard error envelope.
    """
    for cls, status_code, error_type in _DOMAIN_ERRORS:
        if isinstance(exc, cls):
            break
    else:
        status_code, error_type = 400, "inspection_error"
    if status_code >= 500:
        logger.error("Request failed: %s", exc)
    else:
        logger.info("Request rejected (%s): %s", error_type, exc.message)
    return _build_error_response(
        request=request,
        status_code=status_code,
        error_type=error_type,
        message=exc.message,
        details=exc.details or None,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=jsonable_errors(exc),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic may put exception objects in ctx; keep the envelope JSON-safe
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    This ensures the database schema is up to date. Seeding is opt-in via settings.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            # The app still serves pure endpoints; store calls will report the outage.
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


api = APIRouter(prefix="/api")


# PUBLIC_INTERFACE
@api.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> HealthResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        HealthResponse: service status and version.
    """
    return HealthResponse(status="ok", version=settings.APP_VERSION)


api.include_router(orders_router)
api.include_router(gauges_router)
api.include_router(packets_router)

app.include_router(api)
