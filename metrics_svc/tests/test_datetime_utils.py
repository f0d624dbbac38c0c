"""
Unit tests for calendar-date utilities.
"""
from datetime import date, datetime

import pytest

from core.datetime_utils import (
    age_in_days,
    age_in_months,
    day_of_week,
    format_age_label,
    parse_date,
    parse_date_safe,
    saturday_on_or_after,
    sunday_on_or_before,
)


class TestParseDate:
    """Tests for parse_date / parse_date_safe."""

    @pytest.mark.parametrize("value", [
        "2024-03-05",
        "2024-03-05T10:30:00",
        "2024-03-05T10:30:00Z",
        " 2024-03-05 ",
        date(2024, 3, 5),
        datetime(2024, 3, 5, 23, 59),
    ])
    def test_accepted_inputs(self, value):
        assert parse_date(value) == date(2024, 3, 5)

    @pytest.mark.parametrize("value", ["", "2024-13-01", "yesterday", 20240305])
    def test_rejected_inputs(self, value):
        with pytest.raises(ValueError):
            parse_date(value)

    @pytest.mark.parametrize("value", [None, "", "2024-02-30", "garbage"])
    def test_safe_returns_none(self, value):
        assert parse_date_safe(value) is None


class TestWeeks:
    """Sunday is day 0."""

    def test_day_of_week(self):
        assert day_of_week(date(2023, 12, 31)) == 0  # Sunday
        assert day_of_week(date(2024, 1, 1)) == 1    # Monday
        assert day_of_week(date(2024, 1, 6)) == 6    # Saturday

    def test_sunday_on_or_before(self):
        assert sunday_on_or_before(date(2024, 1, 1)) == date(2023, 12, 31)
        assert sunday_on_or_before(date(2023, 12, 31)) == date(2023, 12, 31)

    def test_saturday_on_or_after(self):
        assert saturday_on_or_after(date(2024, 12, 31)) == date(2025, 1, 4)
        assert saturday_on_or_after(date(2024, 1, 6)) == date(2024, 1, 6)


class TestAge:
    """Tests for calendar-month age."""

    @pytest.mark.parametrize("birth,on,expected", [
        (date(2024, 1, 31), date(2024, 2, 28), 0),
        (date(2024, 1, 31), date(2024, 3, 31), 2),
        (date(2024, 1, 15), date(2024, 1, 15), 0),
        (date(2022, 6, 10), date(2024, 6, 9), 23),
        (date(2022, 6, 10), date(2024, 6, 10), 24),
        (date(2024, 5, 1), date(2024, 4, 1), 0),
    ])
    def test_age_in_months(self, birth, on, expected):
        assert age_in_months(birth, on) == expected

    def test_age_in_days(self):
        assert age_in_days(date(2024, 1, 31), date(2024, 2, 28)) == 28
        assert age_in_days(date(2024, 2, 1), date(2024, 1, 1)) == 0


class TestFormatting:
    """Tests for label formatting."""

    @pytest.mark.parametrize("months,label", [(0, "0m"), (11, "11m"), (12, "1y"), (24, "2y"), (27, "2y 3m")])
    def test_format_age_label(self, months, label):
        assert format_age_label(months) == label
