"""
Domain layer - Pure business logic with zero framework imports.

This package contains the validation, rate limiting and registration
logic of the event signup service, together with the port interfaces
that storage adapters implement.
"""

from .exceptions import (
    DuplicateEmailError,
    RateLimitExceeded,
    RegistrationError,
    RegistrationValidationError,
    SchemaValidationError,
    StorageConnectionError,
    StorageError,
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
from .rate_limit import FixedWindowRateLimiter, RateLimitDecision, RateLimitPolicy
from .registration import RegistrationService
from .validation import NormalizedRegistration, collect_violations, validate_registration

__all__ = [
    "AttendanceStatus",
    "DuplicateEmailError",
    "FixedWindowRateLimiter",
    "NormalizedRegistration",
    "PaymentStatus",
    "PublicRegistrationView",
    "RateLimitDecision",
    "RateLimitExceeded",
    "RateLimitPolicy",
    "Registration",
    "RegistrationError",
    "RegistrationFilter",
    "RegistrationRepository",
    "RegistrationService",
    "RegistrationStats",
    "RegistrationValidationError",
    "SchemaValidationError",
    "StorageConnectionError",
    "StorageError",
    "UniqueConstraintError",
    "collect_violations",
    "validate_registration",
]
