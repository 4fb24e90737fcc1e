# 📦 utils/time_utils.py
# ─────────────────────────────
# Date and HH:MM helpers for the availability resolver
#
# Times stay zero-padded HH:MM strings throughout, so plain string
# comparison gives chronological order.

import re
from datetime import date, datetime, timedelta

from utils.errors import ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

# Index matches date.weekday()
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_date(value) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def format_date(value: date) -> str:
    return value.isoformat()


def parse_time(value) -> str:
    """Validate a zero-padded 24h time and return it as HH:MM.

    Postgres `time` columns come back as HH:MM:SS; seconds are dropped.
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)")
    return value[:5]


def to_minutes(value: str) -> int:
    hours, minutes = parse_time(value).split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def weekday_name(value: date) -> str:
    return WEEKDAYS[value.weekday()]


def parse_weekday(value) -> str:
    """Normalize a weekday name ("Monday", "mon") to its full lowercase form."""
    if isinstance(value, str):
        key = value.strip().lower()
        for name in WEEKDAYS:
            if key == name or key == name[:3]:
                return name
    raise ValidationError(f"Invalid weekday: {value!r}")


def iter_dates(start: date, end: date):
    """Yield every calendar date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
