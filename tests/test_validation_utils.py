import pytest

from app.core.exceptions import ValidationError
from utils.validation_utils import (
    format_phone_number,
    is_valid_phone_number,
    normalize_phone_number,
    mask_phone_number,
)


@pytest.mark.parametrize("raw, expected", [
    ("5551234567", "+15551234567"),
    ("(555) 123-4567", "+15551234567"),
    ("555.123.4567", "+15551234567"),
    ("15551234567", "+15551234567"),
    ("1-555-123-4567", "+15551234567"),
    ("+1 (555) 123-4567", "+15551234567"),
    ("+447946095812", "+447946095812"),
    ("447946095812", "+447946095812"),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_format_keeps_plus_prefixed_input_verbatim():
    # Not 10/11 digits, so the raw text is kept as typed
    assert format_phone_number("+44 20 7946 0958") == "+44 20 7946 0958"


@pytest.mark.parametrize("canonical", ["+15551234567", "+447946095812", "+12"])
def test_format_is_idempotent_on_canonical_input(canonical):
    assert format_phone_number(canonical) == canonical
    assert format_phone_number(format_phone_number(canonical)) == canonical


@pytest.mark.parametrize("destination, valid", [
    ("+15551234567", True),
    ("+12", True),
    ("+123456789012345", True),
    ("+1234567890123456", False),  # 16 digits
    ("+0123456789", False),        # leading zero
    ("+1", False),                 # too short
    ("15551234567", False),        # no plus
    ("+44 20 7946 0958", False),   # spaces
    ("", False),
])
def test_is_valid_phone_number(destination, valid):
    assert is_valid_phone_number(destination) is valid


def test_normalize_rejects_missing_number():
    with pytest.raises(ValidationError) as exc:
        normalize_phone_number(None)
    assert exc.value.message == "Phone number is required"

    with pytest.raises(ValidationError):
        normalize_phone_number("   ")


def test_normalize_rejects_invalid_after_formatting():
    with pytest.raises(ValidationError) as exc:
        normalize_phone_number("012 345")
    assert exc.value.status_code == 400
    assert "country code" in exc.value.message


def test_normalize_returns_canonical_destination():
    assert normalize_phone_number(" (555) 123-4567 ") == "+15551234567"


def test_mask_phone_number():
    assert mask_phone_number("+15551234567") == "+1555***4567"
    assert mask_phone_number("+1234") == "+1234"
