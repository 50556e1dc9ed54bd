"""Shared validation utilities"""

import re
from typing import Optional

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_time(value: Optional[str]) -> Optional[str]:
    """
    Validate a wall-clock time in 24h HH:MM format.

    Raises:
        ValueError: If the value is not HH:MM
    """
    if value is None:
        return value
    value = value.strip()
    if not _TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for an HH:MM string"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def validate_time_range(start: Optional[str], end: Optional[str]) -> None:
    """Both or neither; when both are given the end must come after the start."""
    if (start is None) != (end is None):
        raise ValueError("startTime and endTime must be provided together")
    if start is not None and time_to_minutes(end) <= time_to_minutes(start):
        raise ValueError("endTime must be after startTime")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to E.164.

    Ten-digit numbers are treated as Mexican numbers (+52); numbers already
    carrying a country code are kept as given.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if has_plus and 8 <= len(digits) <= 15:
        return f"+{digits}"
    if len(digits) == 10:
        return f"+52{digits}"

    raise ValueError("Phone number must have 10 digits or include a country code")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email
