from __future__ import annotations

import calendar
from datetime import date, datetime

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)


def is_future_period(month: int, year: int, *, today: date) -> bool:
    return (int(year), int(month)) > (today.year, today.month)


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def format_duration(total_minutes: int) -> str:
    """120 -> '2h 0m'."""
    return f"{total_minutes // 60}h {total_minutes % 60}m"
