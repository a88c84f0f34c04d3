"""
Unit tests for registration payload validation.

Tests verify:
- Presence checks and their messages
- Field rules (name length, email format, phone digits, status)
- Violation ordering
- Normalization and its idempotence
"""

import pytest

from roobaroo.domain.exceptions import RegistrationValidationError
from roobaroo.domain.ports import AttendanceStatus
from roobaroo.domain.validation import (
    collect_violations,
    normalize_email,
    normalize_phone,
    validate_registration,
)


def payload(**overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "name": "John Doe",
        "email": "john@example.com",
        "phone": "9876543210",
        "status": "single",
    }
    base.update(overrides)
    return base


class TestPresence:
    """Tests for required-field checks."""

    def test_all_fields_missing(self) -> None:
        """Every missing field is reported, in name/email/phone/status order."""
        violations, missing = collect_violations({})
        assert violations == [
            "Name is required",
            "Email is required",
            "Phone number is required",
            "Status is required",
        ]
        assert missing is True

    def test_whitespace_only_counts_as_missing(self) -> None:
        """Fields that are blank after trimming are missing."""
        violations, missing = collect_violations(payload(name="   ", status="\t"))
        assert violations == ["Name is required", "Status is required"]
        assert missing is True

    def test_none_counts_as_missing(self) -> None:
        violations, _ = collect_violations(payload(phone=None))
        assert violations == ["Phone number is required"]

    def test_presence_before_field_checks(self) -> None:
        """Presence violations come before field-specific ones."""
        violations, missing = collect_violations(payload(name="", email="bad"))
        assert violations == ["Name is required", "Please provide a valid email address"]
        assert missing is True

    def test_missing_field_raises_with_flag(self) -> None:
        with pytest.raises(RegistrationValidationError) as exc_info:
            validate_registration(payload(email=""))
        assert exc_info.value.missing_fields is True
        assert exc_info.value.violations == ["Email is required"]


class TestFieldRules:
    """Tests for per-field rules."""

    def test_all_invalid_fields_reported_in_order(self) -> None:
        """Name, email, phone and status violations are all collected, in order."""
        violations, missing = collect_violations(
            {"name": "A", "email": "bad", "phone": "12", "status": "solo"}
        )
        assert violations == [
            "Name must be at least 2 characters long",
            "Please provide a valid email address",
            "Phone number must be exactly 10 digits",
            'Status must be either "single" or "couple"',
        ]
        assert missing is False

    def test_name_minimum_boundary_accepted(self) -> None:
        assert collect_violations(payload(name="Jo"))[0] == []

    def test_name_length_measured_after_trimming(self) -> None:
        violations, _ = collect_violations(payload(name="  J  "))
        assert violations == ["Name must be at least 2 characters long"]

    def test_name_maximum_boundary(self) -> None:
        assert collect_violations(payload(name="x" * 100))[0] == []
        violations, _ = collect_violations(payload(name="x" * 101))
        assert violations == ["Name cannot exceed 100 characters"]

    @pytest.mark.parametrize(
        "email",
        ["plainaddress", "no-at.example.com", "user@nodot", "us er@example.com", "user@@example.com"],
    )
    def test_invalid_emails_rejected(self, email: str) -> None:
        violations, _ = collect_violations(payload(email=email))
        assert violations == ["Please provide a valid email address"]

    def test_email_with_surrounding_whitespace_accepted(self) -> None:
        assert collect_violations(payload(email="  john@example.com  "))[0] == []

    @pytest.mark.parametrize("phone", ["123-456-7890", "(987) 654 3210", "98765 43210"])
    def test_phone_separators_ignored(self, phone: str) -> None:
        assert collect_violations(payload(phone=phone))[0] == []

    @pytest.mark.parametrize("phone", ["12345", "12345678901", "phone"])
    def test_wrong_digit_count_rejected(self, phone: str) -> None:
        violations, _ = collect_violations(payload(phone=phone))
        assert violations == ["Phone number must be exactly 10 digits"]

    def test_non_ascii_digits_do_not_count(self) -> None:
        """Only ASCII digits survive normalization."""
        violations, _ = collect_violations(payload(phone="١٢٣٤٥٦٧٨٩٠"))
        assert violations == ["Phone number must be exactly 10 digits"]

    @pytest.mark.parametrize("status", ["single", "Single", "COUPLE", " couple "])
    def test_status_case_insensitive(self, status: str) -> None:
        assert collect_violations(payload(status=status))[0] == []

    def test_unknown_status_rejected(self) -> None:
        violations, _ = collect_violations(payload(status="group"))
        assert violations == ['Status must be either "single" or "couple"']

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("name", "Jo\x00hn", "Name contains invalid characters"),
            ("email", "john\x00@example.com", "Email contains invalid characters"),
            ("phone", "98765\x0743210", "Phone number contains invalid characters"),
            ("status", "sin\x7fgle", "Status contains invalid characters"),
        ],
    )
    def test_control_characters_rejected(self, field: str, value: str, message: str) -> None:
        violations, missing = collect_violations(payload(**{field: value}))
        assert violations == [message]
        assert missing is False

    def test_control_characters_reported_in_field_order(self) -> None:
        violations, _ = collect_violations(payload(name="A\x01", status="x\x00"))
        assert violations == [
            "Name contains invalid characters",
            "Status contains invalid characters",
        ]

    def test_surrounding_control_whitespace_is_trimmed(self) -> None:
        """Tabs and newlines around a value are trimmed like spaces."""
        assert collect_violations(payload(name="\tJohn Doe\n"))[0] == []


class TestNormalization:
    """Tests for the normalized output of validate_registration."""

    def test_boundary_example_normalized(self) -> None:
        """Two-character name, dashed phone and capitalized status are accepted."""
        result = validate_registration(
            {"name": "Jo", "email": "jo@x.co", "phone": "123-456-7890", "status": "Single"}
        )
        assert result.name == "Jo"
        assert result.email == "jo@x.co"
        assert result.phone == "1234567890"
        assert result.status is AttendanceStatus.SINGLE

    def test_fields_trimmed_and_lowercased(self) -> None:
        result = validate_registration(
            payload(name="  Jane Roe ", email="  Jane@Example.COM ", status="COUPLE")
        )
        assert result.name == "Jane Roe"
        assert result.email == "jane@example.com"
        assert result.status is AttendanceStatus.COUPLE

    def test_numeric_phone_accepted(self) -> None:
        """Non-string values are validated through their text form."""
        result = validate_registration(payload(phone=9876543210))
        assert result.phone == "9876543210"

    def test_phone_normalization_idempotent(self) -> None:
        once = normalize_phone("(987) 654-3210")
        assert once == "9876543210"
        assert normalize_phone(once) == once

    def test_email_normalization_idempotent_and_case_insensitive(self) -> None:
        assert normalize_email("John@Example.COM") == normalize_email("john@example.com")
        once = normalize_email(" John@Example.COM ")
        assert normalize_email(once) == once

    def test_validation_is_deterministic(self) -> None:
        raw = {"name": "A", "email": "bad", "phone": "12", "status": "solo"}
        assert collect_violations(raw) == collect_violations(raw)

    def test_input_not_mutated(self) -> None:
        raw = payload(email="  John@Example.COM ")
        validate_registration(raw)
        assert raw["email"] == "  John@Example.COM "
