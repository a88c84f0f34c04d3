"""
Registration client - the submission side of the signup flow.

Sends one registration attempt to the API and turns every possible
result into an outcome with a message fit to show the visitor.

Timeouts and stored registrations
=================================

A submission is abandoned after `timeout` seconds (15 by default) but the
server keeps processing it. The registration can therefore be stored even
though this client reported TIMEOUT. This is accepted behaviour, not a bug:
resubmitting the same details will then come back as DUPLICATE_EMAIL, which
confirms the earlier attempt went through.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
HEALTH_TIMEOUT = 5.0

MESSAGES = {
    "duplicate": "This email is already registered for the event. "
    "Please use a different email or contact support.",
    "rate_limited": "Too many registration attempts. Please try again in 15 minutes.",
    "timeout": "Request timeout. The server might be sleeping. "
    "Please wait 30 seconds and try again.",
    "network": "Network error. Please check your connection and try again.",
    "generic": "Registration failed. Please try again.",
}

# Ticket price in rupees per attendance status, quoted once a signup succeeds
TICKET_PRICES = {"single": 799, "couple": 1400}


def format_price(status: str) -> str | None:
    """Display price for an attendance status, e.g. "₹799"; None for an unknown status."""
    amount = TICKET_PRICES.get(status.strip().lower())
    return f"₹{amount}" if amount is not None else None


class OutcomeKind(Enum):
    SUCCESS = "success"
    DUPLICATE_EMAIL = "duplicate_email"
    RATE_LIMITED = "rate_limited"
    INVALID = "invalid"
    TIMEOUT = "timeout"
    NETWORK = "network"
    SERVER_ERROR = "server_error"


@dataclass(frozen=True)
class SubmissionOutcome:
    kind: OutcomeKind
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    details: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def registration_id(self) -> str | None:
        value = self.data.get("id")
        return str(value) if value is not None else None

    @property
    def amount_due(self) -> str | None:
        """Price to pay for a successful registration, from its stored status."""
        status = self.data.get("status")
        if not self.ok or not isinstance(status, str):
            return None
        return format_price(status)


class RegistrationClient:
    """
    Thin httpx client for the registration API.

    Args:
        base_url: API root, e.g. "http://localhost:5000/api"
        timeout: Seconds before a submission is abandoned
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RegistrationClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def submit(self, name: str, email: str, phone: str, status: str) -> SubmissionOutcome:
        """
        Make exactly one registration attempt. Never retries.

        See the module docstring for what a TIMEOUT outcome implies.
        """
        payload = {
            "name": name.strip(),
            "email": email.strip(),
            "phone": phone.strip(),
            "status": status,
        }
        try:
            response = self._client.post("/register", json=payload)
        except httpx.TimeoutException:
            logger.warning("Registration request timed out")
            return SubmissionOutcome(OutcomeKind.TIMEOUT, MESSAGES["timeout"])
        except httpx.TransportError as exc:
            logger.warning("Registration request failed: %s", exc)
            return SubmissionOutcome(OutcomeKind.NETWORK, MESSAGES["network"])

        return _interpret(response)

    def check_backend(self) -> bool:
        """True when GET /health answers 2xx within five seconds."""
        try:
            response = self._client.get("/health", timeout=HEALTH_TIMEOUT)
        except httpx.HTTPError:
            logger.warning("Backend might be sleeping; it wakes up on first registration")
            return False
        return response.is_success

    def fetch_stats(self) -> dict[str, Any] | None:
        """Registration statistics, or None if they cannot be fetched."""
        try:
            response = self._client.get("/stats")
        except httpx.HTTPError as exc:
            logger.info("Stats not available: %s", exc)
            return None
        if not response.is_success:
            return None
        try:
            return response.json().get("stats")
        except ValueError:
            return None


def _interpret(response: httpx.Response) -> SubmissionOutcome:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    if response.is_success:
        return SubmissionOutcome(
            OutcomeKind.SUCCESS,
            body.get("message") or "Registration submitted successfully!",
            data=body.get("data") or {},
        )

    code = body.get("code")
    details = body.get("details") or []
    if not isinstance(details, list):
        details = [str(details)]

    if code == "DUPLICATE_EMAIL":
        return SubmissionOutcome(OutcomeKind.DUPLICATE_EMAIL, MESSAGES["duplicate"])
    if code == "RATE_LIMIT_EXCEEDED":
        return SubmissionOutcome(OutcomeKind.RATE_LIMITED, MESSAGES["rate_limited"])
    if response.status_code == 400:
        message = ", ".join(details) if details else body.get("error") or MESSAGES["generic"]
        return SubmissionOutcome(OutcomeKind.INVALID, message, details=details)

    logger.warning("Registration failed with HTTP %s", response.status_code)
    return SubmissionOutcome(
        OutcomeKind.SERVER_ERROR,
        body.get("error") or MESSAGES["generic"],
    )
