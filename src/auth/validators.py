"""Validation utilities for user input.

Provides validation for:
- Bangladeshi mobile phone numbers
- Password strength
"""

import re
from typing import NamedTuple


# Phone: local mobile format 01XXXXXXXXX (11 digits), optional 880 country code
PHONE_DIGIT_LENGTH = 11
PHONE_COUNTRY_CODE = "880"
PHONE_OPERATOR_PREFIXES = frozenset({"013", "014", "015", "016", "017", "018", "019"})

PASSWORD_MIN_LENGTH = 8


class ValidationResult(NamedTuple):
    """Result of a validation check."""

    valid: bool
    message: str | None = None
    formatted: str | None = None


def normalize_phone(phone: str) -> str:
    """Reduce a phone number to its 11 local digits.

    Example:
        >>> normalize_phone("+880 1712-345678")
        '01712345678'
    """
    digits = re.sub(r"\D", "", phone)
    if digits.startswith(PHONE_COUNTRY_CODE) and len(digits) == PHONE_DIGIT_LENGTH + 2:
        digits = digits[2:]
    return digits


def validate_phone(phone: str) -> ValidationResult:
    """Validate a Bangladeshi mobile phone number.

    Examples:
        >>> validate_phone("01712345678")
        ValidationResult(valid=True, message=None, formatted='01712345678')
        >>> validate_phone("12345")
        ValidationResult(valid=False, message='Phone number must have 11 digits', formatted=None)
    """
    digits = normalize_phone(phone)

    if len(digits) != PHONE_DIGIT_LENGTH:
        return ValidationResult(False, "Phone number must have 11 digits")

    if digits[:3] not in PHONE_OPERATOR_PREFIXES:
        return ValidationResult(False, "Unknown mobile operator prefix")

    return ValidationResult(True, formatted=digits)


def validate_password(password: str) -> ValidationResult:
    """Validate password strength.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(False, "Password must have at least 8 characters")

    if not re.search(r"[A-Za-z]", password):
        return ValidationResult(False, "Password must contain a letter")

    if not re.search(r"\d", password):
        return ValidationResult(False, "Password must contain a digit")

    return ValidationResult(True)
