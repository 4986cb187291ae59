"""Business-day arithmetic (Monday to Friday, no holiday calendar)."""

from datetime import date, datetime, timedelta
from typing import TypeVar

D = TypeVar("D", date, datetime)

SATURDAY = 5
SUNDAY = 6


def is_business_day(value: date) -> bool:
    """Return True unless the date falls on a Saturday or Sunday."""
    return value.weekday() not in (SATURDAY, SUNDAY)


def _step_business_days(value: D, days: int, direction: int) -> D:
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")

    result = value
    counted = 0
    while counted < days:
        result = result + timedelta(days=direction)
        if is_business_day(result):
            counted += 1
    return result


def add_business_days(value: D, days: int) -> D:
    """
    Advance a date by a number of business days.

    Steps one calendar day at a time, counting only weekdays. Time of day
    and tzinfo are preserved. Zero days returns the input unchanged.

    Raises:
        ValueError: If days is negative.
    """
    return _step_business_days(value, days, 1)


def subtract_business_days(value: D, days: int) -> D:
    """Move a date back by a number of business days; see add_business_days."""
    return _step_business_days(value, days, -1)
