"""
Registration payload validation and normalization.

Pure functions over plain data: no I/O, no framework imports.

Rules (all independent, every violation is reported):
- presence: name, email, phone and status are non-empty after trimming
- name: 2 to 100 characters after trimming
- email: local@domain.tld with no whitespace; stored trimmed and lowercased
- phone: exactly 10 ASCII digits once every other character is removed
- status: "single" or "couple", case-insensitive; stored lowercased
- no field may contain control characters once trimmed

Violation order: presence checks first, then field checks in the order
name, email, phone, status. Field checks only run for present fields; a
field with control characters gets only the "invalid characters" message.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass

from .exceptions import RegistrationValidationError
from .ports import AttendanceStatus

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PHONE_DIGITS = 10

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_NON_DIGITS = re.compile(r"[^0-9]")
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")

# (field, message when missing) in reporting order
REQUIRED_FIELDS = (
    ("name", "Name is required"),
    ("email", "Email is required"),
    ("phone", "Phone number is required"),
    ("status", "Status is required"),
)


@dataclass(frozen=True)
class NormalizedRegistration:
    """Payload in canonical stored form."""

    name: str
    email: str
    phone: str
    status: AttendanceStatus


def normalize_name(name: str) -> str:
    return name.strip()


def normalize_email(email: str) -> str:
    """Trim and lowercase. Idempotent."""
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    """Drop every character that is not an ASCII digit. Idempotent."""
    return _NON_DIGITS.sub("", phone)


def normalize_status(status: str) -> str:
    return status.strip().lower()


def _text(payload: Mapping[str, object], field: str) -> str:
    value = payload.get(field)
    if value is None:
        return ""
    return str(value)


def collect_violations(payload: Mapping[str, object]) -> tuple[list[str], bool]:
    """
    Check a raw payload against every field rule.

    Args:
        payload: Mapping with the raw name, email, phone and status values

    Returns:
        (violations, missing_fields) where violations is ordered as
        described in the module docstring and missing_fields tells whether
        any presence check failed
    """
    violations: list[str] = []
    present: dict[str, str] = {}

    for field, message in REQUIRED_FIELDS:
        value = _text(payload, field)
        if value.strip():
            present[field] = value
        else:
            violations.append(message)
    missing_fields = bool(violations)

    garbled = {
        field for field, value in present.items() if _CONTROL_CHARACTERS.search(value.strip())
    }

    if "name" in garbled:
        violations.append("Name contains invalid characters")
    elif "name" in present:
        name_length = len(normalize_name(present["name"]))
        if name_length < NAME_MIN_LENGTH:
            violations.append(f"Name must be at least {NAME_MIN_LENGTH} characters long")
        elif name_length > NAME_MAX_LENGTH:
            violations.append(f"Name cannot exceed {NAME_MAX_LENGTH} characters")

    if "email" in garbled:
        violations.append("Email contains invalid characters")
    elif "email" in present and not EMAIL_PATTERN.fullmatch(normalize_email(present["email"])):
        violations.append("Please provide a valid email address")

    if "phone" in garbled:
        violations.append("Phone number contains invalid characters")
    elif "phone" in present and len(normalize_phone(present["phone"])) != PHONE_DIGITS:
        violations.append(f"Phone number must be exactly {PHONE_DIGITS} digits")

    if "status" in garbled:
        violations.append("Status contains invalid characters")
    elif "status" in present:
        allowed = {status.value for status in AttendanceStatus}
        if normalize_status(present["status"]) not in allowed:
            violations.append('Status must be either "single" or "couple"')

    return violations, missing_fields


def validate_registration(payload: Mapping[str, object]) -> NormalizedRegistration:
    """
    Validate and normalize a raw registration payload.

    Raises:
        RegistrationValidationError: If any rule is violated; carries the
            full ordered list of violation messages
    """
    violations, missing_fields = collect_violations(payload)
    if violations:
        raise RegistrationValidationError(violations, missing_fields=missing_fields)

    return NormalizedRegistration(
        name=normalize_name(_text(payload, "name")),
        email=normalize_email(_text(payload, "email")),
        phone=normalize_phone(_text(payload, "phone")),
        status=AttendanceStatus(normalize_status(_text(payload, "status"))),
    )
