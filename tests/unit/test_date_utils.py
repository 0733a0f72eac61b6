"""Tests for swimschool_calendar.calendar.date_utils."""

from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from swimschool_calendar.calendar.date_utils import (
    add_months,
    add_years,
    combine_date_and_time,
    parse_time_of_day,
    resolve_timezone,
    serialize_datetime_utc,
    sunday_based_weekday,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "day,expected",
    [
        (date(2024, 1, 7), 0),  # Sunday
        (date(2024, 1, 1), 1),  # Monday
        (date(2024, 1, 6), 6),  # Saturday
    ],
)
def test_sunday_based_weekday(day, expected):
    assert sunday_based_weekday(day) == expected


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 1, 31), 3, date(2024, 4, 30)),
        (date(2024, 11, 15), 2, date(2025, 1, 15)),
        (date(2024, 3, 31), 0, date(2024, 3, 31)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected


def test_add_years_clamps_leap_day():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


class TestParseTimeOfDay:
    def test_valid_time(self):
        assert parse_time_of_day("09:30") == time(9, 30)
        assert parse_time_of_day(" 18:05 ") == time(18, 5)

    @pytest.mark.parametrize("value", ["", "9", "25:00", "10:75", "ab:cd"])
    def test_invalid_time(self, value):
        with pytest.raises(ValueError):
            parse_time_of_day(value)


class TestTimezones:
    def test_resolve_known_zone(self):
        assert resolve_timezone("Europe/Paris") is not None

    def test_resolve_empty_is_none(self):
        assert resolve_timezone(None) is None
        assert resolve_timezone("") is None

    def test_resolve_unknown_zone_raises(self):
        with pytest.raises(ValueError):
            resolve_timezone("Nowhere/Special")

    def test_combine_naive_without_zone(self):
        result = combine_date_and_time(date(2024, 1, 1), time(9, 30))
        assert result == datetime(2024, 1, 1, 9, 30)
        assert result.tzinfo is None

    def test_combine_with_zone(self):
        result = combine_date_and_time(date(2024, 7, 1), time(9, 30), "Europe/Paris")
        assert result.utcoffset() == timedelta(hours=2)


class TestSerializeDatetimeUtc:
    def test_aware_datetime_converted(self):
        dt = datetime(2024, 1, 1, 10, 30, tzinfo=timezone(timedelta(hours=1)))
        assert serialize_datetime_utc(dt) == "2024-01-01T09:30:00Z"

    def test_naive_assumed_utc(self):
        assert serialize_datetime_utc(datetime(2024, 1, 1, 9, 30)) == "2024-01-01T09:30:00Z"

    def test_utc_passthrough(self):
        assert serialize_datetime_utc(datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00Z"
