"""
Datetime utilities.

Provides timezone-aware datetime functions and report range helpers.
"""

import calendar
from datetime import UTC, date, datetime, time, timedelta

from commission_engine.utils.exceptions import ValidationError


SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def parse_date(value: date | datetime | str | None, field: str) -> date:
    """
    Coerce a date-like value to a date.

    Accepts date, datetime (date part is used) and ISO strings
    ("2025-01-31" or a full ISO timestamp).

    Raises:
        ValidationError: If the value is missing or unparseable
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid {field}: {value!r}. Please use ISO dates (YYYY-MM-DD)."
        ) from exc


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """
    Expand an inclusive date range to full UTC days.

    Returns:
        (start 00:00:00 UTC, end 23:59:59.999999 UTC)
    """
    return (
        datetime.combine(start, time.min, tzinfo=UTC),
        datetime.combine(end, time.max, tzinfo=UTC),
    )


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite returns them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional number of days from earlier to later."""
    delta: timedelta = as_utc(later) - as_utc(earlier)
    return delta.total_seconds() / SECONDS_PER_DAY
