"""
Port interfaces and domain types.

This module defines the Registration entity, the value objects the
service hands to the API layer, and the repository port that storage
adapters implement.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID


class AttendanceStatus(str, Enum):
    """Attendance option chosen by the visitor."""

    SINGLE = "single"
    COUPLE = "couple"


class PaymentStatus(str, Enum):
    """
    Payment state of a registration.

    Every registration starts as PENDING. Transitions to COMPLETED or
    FAILED belong to the payment step and are never performed here.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Registration:
    """One attendee's persisted signup."""

    id: UUID
    name: str
    email: str
    phone: str
    status: AttendanceStatus
    payment_status: PaymentStatus
    registration_date: datetime
    source_address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RegistrationFilter:
    """Optional criteria for counting registrations. Unset fields match everything."""

    status: AttendanceStatus | None = None
    registered_since: datetime | None = None


@dataclass(frozen=True)
class PublicRegistrationView:
    """Confirmation returned to the submitter; feeds the payment step."""

    id: UUID
    name: str
    email: str
    status: AttendanceStatus
    registration_date: datetime
    submitted_at: datetime


@dataclass(frozen=True)
class RegistrationStats:
    total: int
    single: int
    couple: int
    today: int
    last_updated: datetime


class RegistrationRepository(Protocol):
    """Port interface for registration persistence."""

    async def find_by_email(self, email: str) -> Registration | None:
        """
        Look up a registration by normalized email.

        Args:
            email: Normalized (trimmed, lowercased) email address

        Returns:
            The stored Registration, or None if the email is unknown
        """
        ...

    async def create(self, registration: Registration) -> Registration:
        """
        Persist a new registration.

        The store enforces email uniqueness at write time. This is the
        authoritative duplicate guard; any read-before-write check done by
        callers is only a fast path.

        Args:
            registration: Fully validated registration

        Returns:
            The stored registration including store-maintained timestamps

        Raises:
            UniqueConstraintError: Email already present at write time
            SchemaValidationError: Store rejected a field value
            StorageConnectionError: Store unreachable
            StorageError: Any other storage failure
        """
        ...

    async def count(self, criteria: RegistrationFilter | None = None) -> int:
        """Count registrations matching the optional criteria."""
        ...

    async def ping(self) -> None:
        """
        Round-trip to the store.

        Raises:
            StorageConnectionError: Store unreachable
        """
        ...
