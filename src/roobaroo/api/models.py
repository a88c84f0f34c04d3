"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field rules are enforced by the domain validator, not here, so that every
violation is reported in the registration error body.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request model for event registration."""

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "name": "John Doe",
                "email": "john@example.com",
                "phone": "9876543210",
                "status": "single",
            }
        },
    )

    name: str | None = Field(None, description="Full name (2-100 characters)")
    email: str | None = Field(None, description="Email address, unique per registration")
    phone: str | None = Field(None, description="10-digit phone number; separators are ignored")
    status: str | None = Field(None, description='Attendance status: "single" or "couple"')


class RegistrationData(BaseModel):
    """Public view of a stored registration."""

    id: UUID
    name: str
    email: str
    status: str
    registrationDate: datetime
    submittedAt: datetime


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    success: bool = True
    message: str
    data: RegistrationData


class RegistrationStatsData(BaseModel):
    totalRegistrations: int
    singleRegistrations: int
    coupleRegistrations: int
    todayRegistrations: int
    lastUpdated: datetime


class StatsResponse(BaseModel):
    success: bool = True
    stats: RegistrationStatsData


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
    environment: str
    database: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    success: bool = False
    error: str
    code: str | None = None
    details: list[str] | None = None
