"""
Error handlers - global exception handlers and the shared error body.

Every error response has the shape
    {"success": false, "error": <text>, "code"?: <CODE>, "details"?: [...]}

Handlers:
    - RateLimitExceeded       -> 429 RATE_LIMIT_EXCEEDED with Retry-After
    - RegistrationValidationError -> 400 with field messages
    - DuplicateEmailError     -> 409 DUPLICATE_EMAIL
    - StorageError            -> 500 INTERNAL_ERROR, storage text never shown
    - RequestValidationError  -> 400 (undecodable or mistyped body)
    - HTTPException           -> same status, 404 lists the available endpoints
    - Exception (catch-all)   -> 500, message only outside production
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from roobaroo.api.models import ErrorResponse
from roobaroo.domain.exceptions import (
    DuplicateEmailError,
    RateLimitExceeded,
    RegistrationValidationError,
    StorageError,
)

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = (
    "GET /api/health, POST /api/register, GET /api/register, GET /api/stats, GET /api/test-db"
)
DUPLICATE_EMAIL_MESSAGE = "This email is already registered for the event"
REGISTRATION_FAILED_MESSAGE = "Registration failed. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(
    status_code: int,
    error: str,
    code: str | None = None,
    details: list[str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a JSON error response in the API's common shape."""
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def validation_error_response(exc: RegistrationValidationError) -> JSONResponse:
    """
    400 body for rejected payloads.

    Validator failures carry no code; a rejection by the store's own
    constraints is tagged VALIDATION_ERROR.
    """
    if exc.missing_fields:
        return error_response(400, "Missing required fields", details=exc.violations)
    if exc.from_store:
        return error_response(
            400, "Validation failed", code=exc.code, details=exc.violations
        )
    return error_response(400, "Validation failed", details=exc.violations)


def duplicate_email_response() -> JSONResponse:
    return error_response(
        status.HTTP_409_CONFLICT, DUPLICATE_EMAIL_MESSAGE, code=DuplicateEmailError.code
    )


def rate_limited_response(exc: RateLimitExceeded) -> JSONResponse:
    retry_after = max(1, math.ceil(exc.retry_after))
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        exc.message,
        code=exc.code,
        headers={"Retry-After": str(retry_after)},
    )


def internal_error_response(error: str = REGISTRATION_FAILED_MESSAGE) -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, error, code="INTERNAL_ERROR"
    )


def register_error_handlers(app: FastAPI, production: bool = False) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return rate_limited_response(exc)

    @app.exception_handler(RegistrationValidationError)
    async def registration_validation_handler(
        request: Request, exc: RegistrationValidationError
    ) -> JSONResponse:
        return validation_error_response(exc)

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(request: Request, exc: DuplicateEmailError) -> JSONResponse:
        return duplicate_email_response()

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure on {request.url.path}: {exc}", exc_info=exc)
        return internal_error_response(INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Invalid request body on {request.url.path}: {exc.errors()}")
        details = [
            f"{'.'.join(str(loc) for loc in e['loc'] if loc != 'body') or 'body'}: {e['msg']}"
            for e in exc.errors()
        ]
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", details=details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            error = f"Endpoint not found. Available endpoints: {AVAILABLE_ENDPOINTS}"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            error = "Method not allowed"
        else:
            error = str(exc.detail)
        return error_response(exc.status_code, error, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all - internal details only outside production."""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return internal_error_response(INTERNAL_ERROR_MESSAGE if production else str(exc))
