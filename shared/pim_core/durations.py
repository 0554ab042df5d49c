"""
ISO-8601 duration helpers.

The authority encodes every duration as an ISO-8601 period string
(``P3D`` for three days, ``PT8H`` for eight hours).
"""

import re
from datetime import timedelta
from typing import Optional

from .exceptions import ValidationError

_DURATION_RE = re.compile(
    r"^P(?!$)"
    r"(?:(?P<weeks>\d+)W)?"
    r"(?:(?P<days>\d+)D)?"
    r"(?:T(?=\d)"
    r"(?:(?P<hours>\d+)H)?"
    r"(?:(?P<minutes>\d+)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?"
    r")?$"
)


def hours_to_iso(hours: int) -> str:
    """Encode a whole number of hours, e.g. ``8 -> "PT8H"``."""
    if not isinstance(hours, int) or isinstance(hours, bool) or hours <= 0:
        raise ValidationError(
            f"Duration in hours must be a positive integer, got {hours!r}",
            field="hours",
        )
    return f"PT{hours}H"


def days_to_iso(days: int) -> str:
    """Encode a whole number of days, e.g. ``3 -> "P3D"``."""
    if not isinstance(days, int) or isinstance(days, bool) or days <= 0:
        raise ValidationError(
            f"Duration in days must be a positive integer, got {days!r}",
            field="days",
        )
    return f"P{days}D"


def parse_iso_duration(value: str) -> timedelta:
    """
    Parse an ISO-8601 duration into a timedelta.

    Year and month designators are rejected since they have no fixed
    length; the authority never emits them for activation windows.
    """
    match = _DURATION_RE.match(value.strip()) if value else None
    if not match:
        raise ValidationError(f"Not an ISO-8601 duration: {value!r}", field="duration")

    parts = {k: float(v) for k, v in match.groupdict().items() if v}
    return timedelta(
        weeks=parts.get("weeks", 0),
        days=parts.get("days", 0),
        hours=parts.get("hours", 0),
        minutes=parts.get("minutes", 0),
        seconds=parts.get("seconds", 0),
    )


def describe_duration(value: Optional[str]) -> str:
    """Render a duration for humans; falls back to the raw string."""
    if not value:
        return "-"
    try:
        delta = parse_iso_duration(value)
    except ValidationError:
        return value

    total_minutes = int(delta.total_seconds() // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


__all__ = [
    "hours_to_iso",
    "days_to_iso",
    "parse_iso_duration",
    "describe_duration",
]
