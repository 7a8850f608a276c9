"""
Date helpers for GRACC queries.

GRACC wants ISO-8601 strings for range filters and histogram bounds, and the
report accepts ISO strings on the command line.
"""

import re
from datetime import datetime, timezone

ISO_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[T ](?P<time>\d{2}:\d{2}(?::\d{2})?)(?:\.(?P<fraction>\d+))?)?"
    r"(?P<tz>Z|z|[+-]\d{2}(?::?\d{2}\d*)?)?$"
)


def _normalize_offset(tz: str | None) -> str:
    if tz is None or tz in ("Z", "z"):
        return "+00:00"
    sign, digits = tz[0], tz[1:].replace(":", "")
    hours, minutes = digits[:2], digits[2:4] or "00"
    return f"{sign}{hours}:{minutes}"


def iso_string_to_date(value: str) -> datetime:
    """
    Parse a timezone-aware ISO-8601 string into an aware datetime.

    Args:
        value: String such as "2024-03-11T19:22:28+00:00". Offsets carrying a
            stray trailing digit ("+00:000") are tolerated. Strings without an
            offset are read as UTC.

    Returns:
        Timezone-aware datetime
    """
    match = ISO_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid ISO date string: {value!r}")

    time_part = match.group("time") or "00:00:00"
    if len(time_part) == 5:
        time_part += ":00"
    fraction = match.group("fraction")
    if fraction:
        time_part += "." + fraction[:6].ljust(6, "0")

    normalized = f"{match.group('date')}T{time_part}{_normalize_offset(match.group('tz'))}"
    return datetime.fromisoformat(normalized)


def to_iso_string(value: str | datetime) -> str:
    """Render a datetime as a UTC ISO string with millisecond precision; strings pass through."""
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"
