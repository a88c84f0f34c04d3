"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services,
infrastructure adapters and the per-process rate limiters into routes.
Long-lived objects (pool, limiters, settings) are created by the
application factory and read from app.state.
"""

import json
import logging

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError

from roobaroo.adapters.repository.postgres import PostgresRegistrationRepository
from roobaroo.api.models import RegisterRequest
from roobaroo.config.settings import Settings
from roobaroo.domain.exceptions import RateLimitExceeded, StorageConnectionError
from roobaroo.domain.ports import RegistrationRepository
from roobaroo.domain.rate_limit import FixedWindowRateLimiter
from roobaroo.domain.registration import RegistrationService

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_client_address(request: Request) -> str:
    """
    Network address used for rate limiting and audit.

    The first X-Forwarded-For hop is used only when trust_forwarded_for is
    enabled; otherwise the header is ignored so clients cannot spoof it.
    """
    settings: Settings = request.app.state.settings
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None:
        return request.client.host
    return "unknown"


def get_pool(request: Request) -> AsyncConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    pool = request.app.state.pool
    if pool is None:
        raise StorageConnectionError("Database pool not initialized")
    return pool


def get_repository(request: Request) -> RegistrationRepository:
    """Create repository with connection pool from app state."""
    return PostgresRegistrationRepository(get_pool(request))


def get_optional_repository(request: Request) -> RegistrationRepository | None:
    """Repository for status checks; None while no pool is open (before startup, after shutdown)."""
    if request.app.state.pool is None:
        return None
    return get_repository(request)


def get_registration_service(
    request: Request,
    repository: RegistrationRepository = Depends(get_repository),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires the repository and the statistics timezone into the domain service.
    """
    return RegistrationService(
        repository=repository,
        stats_timezone=request.app.state.stats_timezone,
    )


def get_registration_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.registration_limiter


def enforce_registration_rate_limit(
    limiter: FixedWindowRateLimiter = Depends(get_registration_limiter),
    address: str = Depends(get_client_address),
) -> None:
    """
    Gate the registration endpoint on the stricter per-address budget.

    Runs before the request body reaches the validator or the service.

    Raises:
        RateLimitExceeded: Address used up its registration attempts
    """
    decision = limiter.hit(address)
    if decision.allowed:
        return

    minutes = max(1, round(limiter.policy.window_seconds / 60))
    logger.warning("Registration rate limit exceeded for %s", address)
    raise RateLimitExceeded(
        retry_after=decision.reset_after,
        message=f"Too many registration attempts. Please try again in {minutes} minutes.",
    )


FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def get_registration_payload(request: Request) -> RegisterRequest:
    """
    Read the registration body from JSON or from an HTML form post.

    Both encodings produce the same RegisterRequest, so they pass through
    the same domain validator.

    Raises:
        RequestValidationError: Body is not valid JSON or not an object
    """
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        raw: object = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        try:
            raw = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
            ) from exc

    try:
        return RegisterRequest.model_validate(raw)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]
        ) from exc
