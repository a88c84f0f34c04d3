"""
API routes - Registration, statistics and database check endpoints.

- POST /api/register  - Submit a registration
- GET  /api/register  - Describe the registration API
- GET  /api/stats     - Registration counts
- GET  /api/test-db   - Database connectivity check
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from roobaroo.api.dependencies import (
    enforce_registration_rate_limit,
    get_app_settings,
    get_client_address,
    get_registration_payload,
    get_registration_service,
)
from roobaroo.api.error_handlers import (
    duplicate_email_response,
    error_response,
    internal_error_response,
    validation_error_response,
)
from roobaroo.api.models import (
    ErrorResponse,
    RegisterRequest,
    RegisterResponse,
    RegistrationData,
    RegistrationStatsData,
    StatsResponse,
)
from roobaroo.config.settings import Settings
from roobaroo.domain.exceptions import (
    DuplicateEmailError,
    RegistrationValidationError,
    StorageError,
)
from roobaroo.domain.ports import AttendanceStatus
from roobaroo.domain.registration import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["registration"])

DATABASE_NAME = "PostgreSQL"

_REGISTER_BODY_SCHEMA = RegisterRequest.model_json_schema()

TROUBLESHOOTING = [
    "1. Check DATABASE_URL in your environment or .env file",
    "2. Verify the PostgreSQL server is running and reachable",
    "3. Check that this host is allowed by the server's network rules",
    "4. Ensure the database user has permission to read the registrations table",
]


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_registration_rate_limit)],
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields or validation failure"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        429: {"model": ErrorResponse, "description": "Too many registration attempts"},
        500: {"model": ErrorResponse, "description": "Registration could not be stored"},
    },
    summary="Register for the event",
    description="Submit name, email, phone and attendance status as JSON or as a form post. "
    "Each email can register once; each client address may try 5 times per 15 minutes.",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": _REGISTER_BODY_SCHEMA},
                "application/x-www-form-urlencoded": {"schema": _REGISTER_BODY_SCHEMA},
            },
        }
    },
)
async def register(
    request_data: RegisterRequest = Depends(get_registration_payload),
    client_address: str = Depends(get_client_address),
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse | JSONResponse:
    """
    Register a visitor and return the confirmation used by the payment step.

    - **name**: 2-100 characters
    - **email**: Valid email address, unique per registration
    - **phone**: 10 digits; spaces, dashes and brackets are ignored
    - **status**: "single" or "couple"
    """
    try:
        view = await service.submit(request_data.model_dump(), client_address)
    except RegistrationValidationError as exc:
        return validation_error_response(exc)
    except DuplicateEmailError:
        return duplicate_email_response()
    except StorageError:
        logger.exception("Registration could not be stored")
        return internal_error_response()

    return RegisterResponse(
        message="Registration submitted successfully!",
        data=RegistrationData(
            id=view.id,
            name=view.name,
            email=view.email,
            status=view.status.value,
            registrationDate=view.registration_date,
            submittedAt=view.submitted_at,
        ),
    )


@router.get("/register", summary="Describe the registration API")
async def describe_registration(
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    minutes = round(settings.register_rate_limit_window_seconds / 60)
    return {
        "message": "ROOBAROO Registration API",
        "method": "POST",
        "endpoint": "/api/register",
        "requiredFields": ["name", "email", "phone", "status"],
        "statusOptions": [s.value for s in AttendanceStatus],
        "example": {
            "name": "John Doe",
            "email": "john@example.com",
            "phone": "9876543210",
            "status": "single",
        },
        "database": DATABASE_NAME,
        "rateLimit": f"{settings.register_rate_limit_max} requests per {minutes} minutes per IP",
    }


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"model": ErrorResponse, "description": "Statistics unavailable"}},
    summary="Registration statistics",
)
async def stats(
    service: RegistrationService = Depends(get_registration_service),
) -> StatsResponse | JSONResponse:
    try:
        result = await service.statistics()
    except StorageError:
        logger.exception("Stats query failed")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch statistics"
        )

    return StatsResponse(
        stats=RegistrationStatsData(
            totalRegistrations=result.total,
            singleRegistrations=result.single,
            coupleRegistrations=result.couple,
            todayRegistrations=result.today,
            lastUpdated=result.last_updated,
        )
    )


@router.get("/test-db", summary="Database connectivity check")
async def test_db(
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    try:
        total = await service.count_registrations()
    except StorageError as exc:
        logger.error(f"Database test failed: {exc}")
        details = "Database is unavailable" if settings.is_production else str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Database connection failed",
                "details": details,
                "troubleshooting": TROUBLESHOOTING,
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "message": "Database connection successful!",
            "database": DATABASE_NAME,
            "totalRegistrations": total,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
