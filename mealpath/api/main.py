"""FastAPI application for the MealPath API.

Provides the main application instance with routers, middleware,
and exception handlers configured.
"""

import logging
import sys
import time as _time
import uuid
from contextlib import asynccontextmanager
from importlib.metadata import version as _pkg_version

from fastapi import FastAPI, Request

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("mealpath").setLevel(logging.INFO)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealpath.api.routes import admin, auth, cart, catalog, orders
from mealpath.config import get_settings
from mealpath.db.connection import close_db, get_db_context, init_db
from mealpath.errors import DomainError, InternalError
from mealpath.utils.paths import ensure_dirs_exist

logger = logging.getLogger(__name__)

# Module-level state for health endpoint
_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async lifespan: storage, schema and admin seed on startup, pool disposal on shutdown."""
    global _startup_time

    from mealpath.services.auth_service import seed_admin

    _startup_time = _time.time()
    ensure_dirs_exist()
    init_db()

    # Seeding failures are logged, not propagated; the API still serves.
    try:
        with get_db_context() as db:
            seed_admin(db)
    except Exception as e:
        logger.error("Admin seeding failed (non-blocking): %s", e)

    yield

    close_db()


app = FastAPI(
    title="MealPath API",
    description="Account provisioning, carts, checkout and order lifecycle",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS allowlist is env-driven. If unset, CORS is disabled (same-origin only).
allowed_origins = get_settings().allowed_origins
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle DomainError exceptions with consistent format.

    Args:
        request: The incoming request.
        exc: The DomainError exception.

    Returns:
        JSONResponse with ``{kind, code, message}``.
    """
    if isinstance(exc, InternalError):
        logger.error(
            "Internal error on %s %s [%s]: %s",
            request.method, request.url.path, exc.correlation_id, exc.message,
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures under a correlation id and hide the details."""
    correlation_id = str(uuid.uuid4())
    logger.exception(
        "Unhandled error on %s %s [%s]", request.method, request.url.path, correlation_id
    )
    error = InternalError(correlation_id=correlation_id)
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(catalog.router, prefix="/api/v1")
app.include_router(cart.router, prefix="/api/v1")
app.include_router(orders.router, prefix="/api/v1")


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status, version and uptime.
    """
    uptime = int(_time.time() - _startup_time) if _startup_time else 0

    # Version from package metadata (matches pyproject.toml)
    try:
        version = _pkg_version("mealpath")
    except Exception:
        version = "unknown"

    return {
        "status": "healthy",
        "version": version,
        "uptime_seconds": uptime,
    }
