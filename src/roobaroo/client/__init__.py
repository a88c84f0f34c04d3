"""Python client for the registration API."""

from .submission import OutcomeKind, RegistrationClient, SubmissionOutcome, format_price

__all__ = ["OutcomeKind", "RegistrationClient", "SubmissionOutcome", "format_price"]
