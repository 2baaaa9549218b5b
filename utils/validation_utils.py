"""
utils/validation_utils.py

Purpose: Input validation

- Phone number normalization to E.164
- Destination format checks
- Masking for log output
"""

import re
from typing import Optional

from app.core.exceptions import ValidationError
from utils.constants import (
    ERROR_PHONE_REQUIRED,
    ERROR_INVALID_PHONE_FORMAT,
)


E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
E164_MAX_LENGTH = 16


def format_phone_number(raw: str) -> str:
    """
    Formats user input into an E.164-shaped destination.

    Bare 10-digit numbers are assumed to be North American and get a
    +1 prefix. This is a fixed country code policy, not a general
    E.164 parser.

    Args:
        raw: Phone number as typed by the user

    Returns:
        Candidate destination (may still fail is_valid_phone_number)

    Examples:
        "(555) 123-4567"  -> "+15551234567"
        "1 555 123 4567"  -> "+15551234567"
        "+44 20 7946 0958" -> "+44 20 7946 0958"
    """
    digits = re.sub(r"\D", "", raw)

    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"

    return raw if raw.startswith("+") else f"+{digits}"


def is_valid_phone_number(destination: str) -> bool:
    """
    Validates a destination against the E.164 shape.

    Args:
        destination: Output of format_phone_number

    Returns:
        True if "+" followed by 2-15 digits (no leading zero), max 16 chars
    """
    if not destination:
        return False

    return bool(E164_PATTERN.match(destination)) and len(destination) <= E164_MAX_LENGTH


def normalize_phone_number(raw: Optional[str]) -> str:
    """
    Formats and validates a phone number in one step.

    Raises:
        ValidationError: If the input is missing or not a valid destination
    """
    if not raw or not raw.strip():
        raise ValidationError(ERROR_PHONE_REQUIRED)

    destination = format_phone_number(raw.strip())

    if not is_valid_phone_number(destination):
        raise ValidationError(
            ERROR_INVALID_PHONE_FORMAT,
            details={"phoneNumber": destination}
        )

    return destination


def mask_phone_number(destination: str) -> str:
    """
    Hides the middle of a phone number for logging.

    "+15551234567" -> "+1555***4567"
    """
    if not destination or len(destination) <= 8:
        return destination or ""

    return f"{destination[:5]}***{destination[-4:]}"
