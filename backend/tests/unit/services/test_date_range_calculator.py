"""
Tests for DateRangeCalculator range and navigation arithmetic.
"""

import calendar
from datetime import date, datetime

import pytest
import pytz

from app.core.exceptions import UnsupportedViewTypeException
from app.services.date_range_calculator import (
    DateRangeCalculator,
    add_months,
    parse_view_type,
)


@pytest.fixture
def sunday_calculator():
    return DateRangeCalculator(week_start=calendar.SUNDAY, timezone="UTC")


@pytest.fixture
def monday_calculator():
    return DateRangeCalculator(week_start=calendar.MONDAY, timezone="UTC")


class TestCalculateRange:
    def test_day_view_spans_whole_day(self, sunday_calculator):
        result = sunday_calculator.calculate_range("day", datetime(2023, 6, 15, 14, 30))

        assert result.start_date == datetime(2023, 6, 15, 0, 0, 0)
        assert result.end_date == datetime(2023, 6, 15, 23, 59, 59, 999000)

    def test_week_view_starts_on_sunday(self, sunday_calculator):
        # 2023-06-15 is a Thursday
        result = sunday_calculator.calculate_range("week", date(2023, 6, 15))

        assert result.start_date == datetime(2023, 6, 11)
        assert result.end_date == datetime(2023, 6, 17, 23, 59, 59, 999000)

    def test_week_view_starts_on_monday_when_configured(self, monday_calculator):
        result = monday_calculator.calculate_range("week", date(2023, 6, 15))

        assert result.start_date == datetime(2023, 6, 12)
        assert result.end_date == datetime(2023, 6, 18, 23, 59, 59, 999000)

    def test_week_reference_on_week_start_day(self, sunday_calculator):
        result = sunday_calculator.calculate_range("week", date(2023, 6, 11))

        assert result.start_date == datetime(2023, 6, 11)

    def test_month_view(self, sunday_calculator):
        result = sunday_calculator.calculate_range("month", date(2023, 6, 15))

        assert result.start_date == datetime(2023, 6, 1)
        assert result.end_date == datetime(2023, 6, 30, 23, 59, 59, 999000)

    def test_february_in_leap_year_ends_on_29th(self, sunday_calculator):
        result = sunday_calculator.calculate_range("month", date(2024, 2, 10))

        assert result.end_date.date() == date(2024, 2, 29)

    def test_february_in_common_year_ends_on_28th(self, sunday_calculator):
        result = sunday_calculator.calculate_range("month", date(2023, 2, 10))

        assert result.end_date.date() == date(2023, 2, 28)

    def test_aware_reference_is_localized_first(self):
        calculator = DateRangeCalculator(week_start=calendar.SUNDAY, timezone="America/New_York")
        # 02:00 UTC on the 16th is still the 15th in New York
        reference = pytz.UTC.localize(datetime(2023, 6, 16, 2, 0))

        result = calculator.calculate_range("day", reference)

        assert result.start_date == datetime(2023, 6, 15)

    def test_view_type_is_case_insensitive(self, sunday_calculator):
        result = sunday_calculator.calculate_range("WEEK", date(2023, 6, 15))

        assert result.start_date == datetime(2023, 6, 11)

    def test_unsupported_view_type(self, sunday_calculator):
        with pytest.raises(UnsupportedViewTypeException) as exc_info:
            sunday_calculator.calculate_range("year", date(2023, 6, 15))

        assert exc_info.value.code == "UNSUPPORTED_VIEW_TYPE"
        assert exc_info.value.to_http_exception().status_code == 400


class TestNavigation:
    def test_day_steps(self, sunday_calculator):
        assert sunday_calculator.next_reference_date("day", date(2023, 6, 30)) == date(2023, 7, 1)
        assert sunday_calculator.previous_reference_date("day", date(2023, 6, 1)) == date(2023, 5, 31)

    def test_week_steps(self, sunday_calculator):
        assert sunday_calculator.next_reference_date("week", date(2023, 6, 15)) == date(2023, 6, 22)
        assert sunday_calculator.previous_reference_date("week", date(2023, 6, 15)) == date(2023, 6, 8)

    def test_month_steps_clamp_day(self, sunday_calculator):
        assert sunday_calculator.next_reference_date("month", date(2024, 1, 31)) == date(2024, 2, 29)
        assert sunday_calculator.previous_reference_date("month", date(2023, 3, 31)) == date(2023, 2, 28)

    def test_month_steps_cross_year(self, sunday_calculator):
        assert sunday_calculator.next_reference_date("month", date(2023, 12, 15)) == date(2024, 1, 15)
        assert sunday_calculator.previous_reference_date("month", date(2023, 1, 15)) == date(2022, 12, 15)

    def test_datetimes_keep_time_of_day(self, sunday_calculator):
        reference = datetime(2023, 6, 15, 9, 30)

        assert sunday_calculator.next_reference_date("day", reference) == datetime(2023, 6, 16, 9, 30)


def test_add_months_handles_negative_offsets():
    assert add_months(date(2023, 5, 31), -3) == date(2023, 2, 28)
    assert add_months(date(2023, 5, 31), 13) == date(2024, 6, 30)


def test_parse_view_type_rejects_blank():
    with pytest.raises(UnsupportedViewTypeException):
        parse_view_type("")
