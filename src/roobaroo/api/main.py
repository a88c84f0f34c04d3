"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import AsyncConnectionPool

from roobaroo.adapters.repository.postgres import run_migrations
from roobaroo.api.dependencies import (
    get_app_settings,
    get_client_address,
    get_optional_repository,
)
from roobaroo.api.error_handlers import rate_limited_response, register_error_handlers
from roobaroo.api.models import HealthResponse
from roobaroo.api.routes import router as registration_router
from roobaroo.config.observability import configure_logging
from roobaroo.config.settings import Settings, get_settings
from roobaroo.domain.exceptions import RateLimitExceeded, StorageError
from roobaroo.domain.ports import RegistrationRepository
from roobaroo.domain.rate_limit import FixedWindowRateLimiter, RateLimitPolicy

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "registration",
        "description": "Event registration capture - submit, describe and count registrations",
    },
    {
        "name": "health",
        "description": "Liveness and database status",
    },
]

GLOBAL_RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

# Sent on every response. The CSP is skipped on the interactive docs pages,
# which load their scripts from a CDN.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}
CONTENT_SECURITY_POLICY = (
    "default-src 'self'; base-uri 'self'; frame-ancestors 'self'; "
    "object-src 'none'; form-action 'self'"
)

health_router = APIRouter(tags=["health"])


@health_router.get("/api/health", response_model=HealthResponse)
async def health_check(
    repository: RegistrationRepository | None = Depends(get_optional_repository),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """
    Health check endpoint with database status.

    Always returns 200 OK while the process is serving; the database field
    reports whether a round trip to PostgreSQL currently succeeds, and is
    "Disconnected" while no connection pool is open.
    """
    database = "Disconnected"
    if repository is not None:
        try:
            await repository.ping()
            database = "Connected"
        except StorageError:
            logger.warning("Health check: database ping failed")

    return HealthResponse(
        status="OK",
        message="ROOBAROO registration backend is running!",
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        database=database,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Closes connection pool on shutdown
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    await pool.open()

    # Run migrations
    logger.info("Running database migrations...")
    try:
        await run_migrations(pool)
    except Exception:
        await pool.close()
        raise

    # Store pool in app state for dependency injection
    app.state.pool = pool

    logger.info(f"Application startup complete (environment: {settings.environment})")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.pool = None
    await pool.close()
    logger.info("Database connection pool closed")


def _timezone(name: str) -> tzinfo:
    if name.strip().upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


async def enforce_global_rate_limit(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Apply the process-wide per-address budget to every request."""
    limiter: FixedWindowRateLimiter = request.app.state.global_limiter
    address = get_client_address(request)
    decision = limiter.hit(address)
    if not decision.allowed:
        logger.warning("Global rate limit exceeded for %s", address)
        return rate_limited_response(
            RateLimitExceeded(decision.reset_after, GLOBAL_RATE_LIMIT_MESSAGE)
        )
    return await call_next(request)


async def apply_security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if request.url.path not in (request.app.docs_url, request.app.redoc_url):
        response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Rate limiters are created here, once per application, and live in
    app.state so every request shares the same counters.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="roobaroo",
        description="Event registration API - validated, deduplicated signups for the payment step",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.pool = None
    app.state.stats_timezone = _timezone(settings.stats_timezone)
    app.state.global_limiter = FixedWindowRateLimiter(
        RateLimitPolicy(
            window_seconds=settings.global_rate_limit_window_seconds,
            max_requests=settings.global_rate_limit_max,
        )
    )
    app.state.registration_limiter = FixedWindowRateLimiter(
        RateLimitPolicy(
            window_seconds=settings.register_rate_limit_window_seconds,
            max_requests=settings.register_rate_limit_max,
        )
    )

    register_error_handlers(app, production=settings.is_production)

    # Added before CORS so CORS wraps them: preflights skip the limiter and
    # 429 responses still carry CORS and security headers.
    app.middleware("http")(enforce_global_rate_limit)
    app.middleware("http")(apply_security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=False,
    )

    app.include_router(health_router)
    app.include_router(registration_router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
