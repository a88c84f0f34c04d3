"""
Registration domain service.

Submission flow
===============

1. Validate and normalize the raw payload (RegistrationValidationError).
2. Fast path: look the normalized email up and reject known duplicates
   (DuplicateEmailError) without attempting a write.
3. Build a Registration (payment pending, registered now, source address
   recorded) and hand it to the repository.
4. The repository's uniqueness constraint is the authoritative guard.
   Two concurrent submissions for the same email can both pass step 2;
   the loser's write fails with UniqueConstraintError, which is reported
   as the same DuplicateEmailError.
5. Return the public confirmation view.

A write either lands completely or not at all, so nothing is visible
between steps 3 and 5. Only taxonomy exceptions leave this module.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo

from .exceptions import (
    DuplicateEmailError,
    RegistrationValidationError,
    SchemaValidationError,
    UniqueConstraintError,
)
from .ports import (
    AttendanceStatus,
    PaymentStatus,
    PublicRegistrationView,
    Registration,
    RegistrationFilter,
    RegistrationRepository,
    RegistrationStats,
)
from .privacy import mask_email
from .validation import validate_registration

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RegistrationService:
    """
    Domain service for event registration.

    Orchestrates validation, duplicate detection and persistence, and
    computes the public statistics.
    """

    repository: RegistrationRepository
    clock: Callable[[], datetime] = _utcnow
    stats_timezone: tzinfo = field(default=timezone.utc)

    async def submit(
        self, payload: Mapping[str, object], client_address: str | None
    ) -> PublicRegistrationView:
        """
        Register a visitor.

        Args:
            payload: Raw name, email, phone and status values
            client_address: Submitting client's network address (audit only)

        Returns:
            Public view of the stored registration

        Raises:
            RegistrationValidationError: Payload violates a field rule, or
                the store rejected a field value
            DuplicateEmailError: Email already registered
            StorageError: Any other persistence failure
        """
        data = validate_registration(payload)
        masked = mask_email(data.email)
        logger.info("New registration request: email=%s status=%s", masked, data.status.value)

        try:
            existing = await self.repository.find_by_email(data.email)
        except SchemaValidationError as exc:
            logger.error("Store rejected a validated email lookup: %s", exc)
            raise RegistrationValidationError([str(exc)], from_store=True) from exc

        if existing is not None:
            logger.warning("Duplicate registration rejected (pre-check): %s", masked)
            raise DuplicateEmailError(data.email)

        registration = Registration(
            id=uuid.uuid4(),
            name=data.name,
            email=data.email,
            phone=data.phone,
            status=data.status,
            payment_status=PaymentStatus.PENDING,
            registration_date=self.clock(),
            source_address=client_address,
        )

        try:
            saved = await self.repository.create(registration)
        except UniqueConstraintError:
            logger.warning("Duplicate registration rejected (unique index): %s", masked)
            raise DuplicateEmailError(data.email) from None
        except SchemaValidationError as exc:
            logger.error("Store rejected a validated registration: %s", exc)
            raise RegistrationValidationError([str(exc)], from_store=True) from exc

        logger.info("Registration saved: id=%s email=%s", saved.id, masked)
        return PublicRegistrationView(
            id=saved.id,
            name=saved.name,
            email=saved.email,
            status=saved.status,
            registration_date=saved.registration_date,
            submitted_at=self.clock(),
        )

    async def statistics(self) -> RegistrationStats:
        """
        Count registrations in total, per attendance status, and since
        local midnight in stats_timezone.
        """
        now = self.clock()
        midnight = now.astimezone(self.stats_timezone).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        total, single, couple, today = await asyncio.gather(
            self.repository.count(),
            self.repository.count(RegistrationFilter(status=AttendanceStatus.SINGLE)),
            self.repository.count(RegistrationFilter(status=AttendanceStatus.COUPLE)),
            self.repository.count(RegistrationFilter(registered_since=midnight)),
        )
        return RegistrationStats(
            total=total,
            single=single,
            couple=couple,
            today=today,
            last_updated=now,
        )

    async def count_registrations(self) -> int:
        """Total number of registrations; doubles as a connectivity check."""
        return await self.repository.count()
