"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Timezone-aware "now"
- Code expiry checks
- Rate limit window arithmetic
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Returns the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def calculate_code_expiry(issued_at: datetime, validity_minutes: int = 5) -> datetime:
    """
    Calculates verification code expiry timestamp.
    """
    return issued_at + timedelta(minutes=validity_minutes)


def is_code_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Checks if a code has expired. A code is still valid at exactly expires_at.
    """
    now = now or utc_now()
    return now > expires_at


def is_window_elapsed(window_start: datetime, window_seconds: int, now: datetime) -> bool:
    """
    Checks if a rate limit window has fully elapsed.
    """
    return (now - window_start).total_seconds() > window_seconds


def seconds_until_window_end(window_start: datetime, window_seconds: int, now: datetime) -> int:
    """
    Whole seconds until a rate limit window ends, rounded up and never below 1.
    """
    remaining = window_seconds - (now - window_start).total_seconds()
    return max(1, math.ceil(remaining))
