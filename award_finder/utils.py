"""
Shared utilities for award-finder.

This module provides common helper functions used across the codebase,
reducing code duplication and ensuring consistent behavior.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

EARTH_RADIUS_MILES = 3958.8

_EPOCH = datetime(1970, 1, 1)


def get_airline_code(flight_number: str) -> str:
    """
    Extract the two-letter airline code from a flight number.

    Examples:
        >>> get_airline_code("ua123")
        'UA'
    """
    return flight_number[:2].upper()


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding; percentages here follow
    the conventional rule (2.5 -> 3).
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_local_time(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO timestamp as a local-naive datetime.

    A trailing 'Z' or UTC offset is ignored: feed timestamps are airport
    local times.

    Raises:
        ValueError: If the string is not an ISO timestamp
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    parsed = datetime.fromisoformat(text)
    return parsed.replace(tzinfo=None)


def to_epoch_ms(value: datetime) -> int:
    """Milliseconds since the epoch of a naive timestamp, read as-is."""
    return int((value.replace(tzinfo=None) - _EPOCH).total_seconds() * 1000)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded half-up (may be negative)."""
    seconds = (end - start).total_seconds()
    return round_half_up(seconds / 60)


def format_duration(minutes: int) -> str:
    """
    Format duration in minutes to human-readable string.

    Examples:
        >>> format_duration(330)
        '5h 30m'
    """
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h {mins}m"


def format_layover(minutes: int) -> str:
    """
    Format a layover, dropping zero parts.

    Examples:
        >>> format_layover(45)
        '45m'
        >>> format_layover(120)
        '2h'
    """
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h" if mins == 0 else f"{hours}h {mins}m"


def format_points(points: Union[int, float]) -> str:
    """
    Format a points price with thousands separators.

    Examples:
        >>> format_points(12500)
        '12,500'
    """
    return f"{int(points):,}"


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> int:
    """
    Great-circle distance between two coordinates.

    Returns:
        Distance in statute miles, rounded to the nearest mile
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round_half_up(EARTH_RADIUS_MILES * c)


def validate_airport_code(code: str) -> str:
    """
    Validate and normalize an airport IATA code.

    Returns:
        Uppercase 3-letter code

    Raises:
        ValueError: If code is not a valid IATA format
    """
    code = code.strip().upper()
    if not re.match(r'^[A-Z]{3}$', code):
        raise ValueError(f"Invalid airport code: {code}. Must be 3 letters.")
    return code


def clean_region(region: Optional[str]) -> Optional[str]:
    """Trim a region label; blank labels count as missing."""
    if region is None:
        return None
    region = region.strip()
    return region or None


__all__ = [
    "get_airline_code",
    "round_half_up",
    "parse_local_time",
    "to_epoch_ms",
    "minutes_between",
    "format_duration",
    "format_layover",
    "format_points",
    "haversine_distance",
    "validate_airport_code",
    "clean_region",
    "EARTH_RADIUS_MILES",
]
