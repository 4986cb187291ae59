"""Utility functions for trackpage."""

from datetime import date, datetime, timezone

from .errors import InvalidTimestampError


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Render a datetime as an ISO 8601 string with a trailing Z for UTC."""
    return value.isoformat().replace("+00:00", "Z")


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return to_iso(utc_now())


def parse_timestamp(value: str | date | datetime, field: str = "timestamp") -> datetime:
    """
    Parse an ISO 8601 date or datetime into an aware datetime.

    Formats:
    - "2025-01-06T14:30:00Z" or with an explicit offset
    - "2025-01-06T14:30:00" (naive, taken as UTC)
    - "2025-01-06" (midnight UTC)

    Raises:
        InvalidTimestampError: If the value is empty or not ISO 8601.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimestampError(field, value)
    else:
        raise InvalidTimestampError(field, value)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_timestamp(
    value: str | date | datetime | None, field: str = "timestamp"
) -> datetime | None:
    """Like parse_timestamp, but None and empty strings pass through as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value, field)


def format_display_date(value: datetime) -> str:
    """Format a date the way carriers show it, e.g. 'Mon, Jan 6, 2025'."""
    return f"{value:%a}, {value:%b} {value.day}, {value.year}"


def format_display_time(hour: int, minute: int) -> str:
    """Format a 24-hour clock time as 12-hour text, e.g. '2:05 PM'."""
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"
