"""Helpers for keeping personal data out of log output."""

import re

_EMAIL_MASK = re.compile(r"^(.{3}).+(@.+)$")


def mask_email(email: str) -> str:
    """
    Keep the first three characters of the local part and the domain.

    "john.doe@example.com" -> "joh***@example.com". Addresses too short
    to mask are returned unchanged.
    """
    return _EMAIL_MASK.sub(r"\1***\2", email)
