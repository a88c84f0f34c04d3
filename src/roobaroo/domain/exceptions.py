"""
Domain exceptions - Closed error taxonomy for event registration.

Every failure that can leave the domain layer is one of these types.
Storage adapters translate engine-specific errors into the StorageError
family so that no driver exception ever reaches the API layer.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    code = "INTERNAL_ERROR"


class RegistrationValidationError(RegistrationError):
    """Submitted payload violates one or more field rules."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        violations: list[str],
        missing_fields: bool = False,
        from_store: bool = False,
    ) -> None:
        super().__init__("; ".join(violations))
        self.violations = list(violations)
        self.missing_fields = missing_fields
        self.from_store = from_store


class DuplicateEmailError(RegistrationError):
    """Normalized email is already registered."""

    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str) -> None:
        super().__init__(email)
        self.email = email


class RateLimitExceeded(RegistrationError):
    """Client address exhausted its request budget for the current window."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: float, message: str = "Too many requests") -> None:
        super().__init__(message)
        self.retry_after = retry_after
        self.message = message


class StorageError(RegistrationError):
    """Opaque persistence failure."""

    pass


class UniqueConstraintError(StorageError):
    """Write rejected by the store's uniqueness index."""

    pass


class SchemaValidationError(StorageError):
    """Write rejected by the store's own field constraints."""

    pass


class StorageConnectionError(StorageError):
    """Store unreachable or connection pool exhausted."""

    pass
