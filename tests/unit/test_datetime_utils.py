"""Unit tests for date helpers."""

from datetime import UTC, date, datetime, time

import pytest

from commission_engine.utils.datetime_utils import (
    as_utc,
    day_bounds,
    days_between,
    month_range,
    parse_date,
    utc_now,
)
from commission_engine.utils.exceptions import ValidationError


class TestParseDate:
    """Test coercion of date-like inputs."""

    def test_date_passthrough(self):
        assert parse_date(date(2025, 3, 1), "start_date") == date(2025, 3, 1)

    def test_datetime_uses_date_part(self):
        value = datetime(2025, 3, 1, 23, 59, tzinfo=UTC)
        assert parse_date(value, "start_date") == date(2025, 3, 1)

    def test_iso_date_string(self):
        assert parse_date("2025-03-01", "start_date") == date(2025, 3, 1)

    def test_iso_timestamp_string(self):
        assert parse_date("2025-03-01T10:00:00", "end_date") == date(2025, 3, 1)

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value):
        with pytest.raises(ValidationError, match="start_date is required"):
            parse_date(value, "start_date")

    def test_garbage(self):
        with pytest.raises(ValidationError, match="Invalid end_date"):
            parse_date("31/02/2025", "end_date")


class TestRanges:
    """Test range helpers."""

    def test_day_bounds_cover_whole_days(self):
        start, end = day_bounds(date(2025, 3, 1), date(2025, 3, 31))
        assert start == datetime(2025, 3, 1, tzinfo=UTC)
        assert end == datetime.combine(date(2025, 3, 31), time.max, tzinfo=UTC)

    def test_month_range_leap_february(self):
        assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_range_december(self):
        assert month_range(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))


class TestDayArithmetic:
    """Test fractional day differences."""

    def test_fractional_days(self):
        earlier = datetime(2025, 1, 1, 0, 0, tzinfo=UTC)
        later = datetime(2025, 1, 31, 12, 0, tzinfo=UTC)
        assert days_between(later, earlier) == 30.5

    def test_naive_treated_as_utc(self):
        naive = datetime(2025, 1, 1, 0, 0)
        aware = datetime(2025, 1, 2, 0, 0, tzinfo=UTC)
        assert days_between(aware, naive) == 1.0
        assert as_utc(naive).tzinfo is UTC

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None
