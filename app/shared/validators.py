"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time_of_day(value: Optional[str]) -> Optional[str]:
    """
    Validate a 24h clock time.

    Returns:
        The time normalized to HH:MM

    Raises:
        ValueError: If the value is not a valid HH:MM time
    """
    if not value:
        return value

    match = re.match(r"^(\d{1,2}):(\d{2})$", value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError("Time must be a valid 24h clock time")

    return f"{hours:02d}:{minutes:02d}"


def validate_work_dates(values: Optional[list[str]]) -> list[str]:
    """
    Validate a list of ISO dates, dropping duplicates and sorting ascending.

    Raises:
        ValueError: If any entry is not a YYYY-MM-DD date
    """
    if not values:
        return []

    parsed = set()
    for value in values:
        try:
            parsed.add(date.fromisoformat(value.strip()))
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid work date: {value!r} (expected YYYY-MM-DD)")

    return [d.isoformat() for d in sorted(parsed)]
