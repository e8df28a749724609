"""As-of timestamp parsing for balance queries."""

import re
from datetime import date, datetime, time, timedelta, UTC
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_TIME_HINT = re.compile(r"\d{1,2}:\d{2}")


def end_of_day(day: date) -> datetime:
    """Return the last representable instant of ``day`` in UTC."""
    return datetime.combine(day, time.max, tzinfo=UTC)


def parse_as_of(as_of_str: str, now: Optional[datetime] = None) -> datetime:
    """Parse an as-of bound into an aware UTC datetime.

    Supports:
    - "now"
    - Relative days: "today", "yesterday" (end of that day)
    - Period ends: "end of last month", "end of last year"
    - Absolute dates: "2024-01-15", "January 15, 2024" (end of that day)
    - Timestamps: "2024-01-15T10:30:00", "2024-01-15 10:30+02:00"

    Naive timestamps are taken as UTC.

    Args:
        as_of_str: As-of string
        now: Reference time for relative values (defaults to current UTC time)

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = as_of_str.strip().lower()
    now = now or datetime.now(UTC)
    today = now.date()

    if text == "now":
        return now
    if text == "today":
        return end_of_day(today)
    if text == "yesterday":
        return end_of_day(today - timedelta(days=1))
    if text == "end of last month":
        return end_of_day(today.replace(day=1) - timedelta(days=1))
    if text == "end of last year":
        return end_of_day(today.replace(month=1, day=1) - relativedelta(days=1))

    try:
        parsed = date_parser.parse(as_of_str.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse as-of date '{as_of_str}': {e}") from e

    if not _TIME_HINT.search(as_of_str):
        return end_of_day(parsed.date())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
