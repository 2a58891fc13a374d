"""Format checks shared by the API and the client widget."""

from __future__ import annotations

import re

from prepwise_payments.config import settings
from prepwise_payments.errors import InvalidInput

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_code(code: str | None, length: int | None = None) -> bool:
    """Return ``True`` if *code* is exactly *length* ASCII digits."""
    length = length or settings.otp_length
    if not isinstance(code, str) or len(code) != length:
        return False
    return all(ch in "0123456789" for ch in code)


def validate_code(code: str | None, length: int | None = None) -> str:
    """Return *code* unchanged or raise :class:`InvalidInput`."""
    if not is_valid_code(code, length):
        length = length or settings.otp_length
        raise InvalidInput(f"Please enter a valid {length}-digit verification code")
    return code


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def normalize_email(email: str | None) -> str:
    """Validate *email* and return it trimmed and lower-cased."""
    cleaned = (email or "").strip()
    if not is_valid_email(cleaned):
        raise InvalidInput("Invalid email format")
    return cleaned.lower()
