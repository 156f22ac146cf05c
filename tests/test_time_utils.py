"""Tests for time utilities."""

from datetime import date, datetime

import pytest

from easy_schedule.exceptions import ValidationError
from easy_schedule.utils.time_utils import (
    add_minutes,
    age_in_weeks,
    format_duration,
    format_minutes,
    parse_time,
    today_string,
)


class TestParseAndFormat:

    @pytest.mark.parametrize("value,expected", [("00:00", 0), ("07:05", 425), ("23:59", 1439), ("7:30", 450)])
    def test_parse_time(self, value, expected):
        assert parse_time(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "12:5"])
    def test_parse_time_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_time(value)

    @pytest.mark.parametrize("minutes,expected", [(0, "00:00"), (425, "07:05"), (1440, "00:00"), (1500, "01:00"), (-30, "23:30")])
    def test_format_minutes_wraps(self, minutes, expected):
        assert format_minutes(minutes) == expected

    def test_add_minutes_past_midnight(self):
        assert add_minutes("23:30", 45) == "00:15"

    @pytest.mark.parametrize("minutes,expected", [(45, "45m"), (120, "2h"), (90, "1h30m"), (0, "0m")])
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected


class TestDates:

    def test_today_string(self):
        assert today_string(datetime(2024, 5, 15, 23, 59)) == "2024-05-15"

    def test_age_in_weeks(self):
        assert age_in_weeks("2024-01-01", date(2024, 1, 15)) == 2
        assert age_in_weeks(date(2024, 1, 1), date(2024, 1, 14)) == 1

    def test_age_never_negative(self):
        assert age_in_weeks("2024-02-01", date(2024, 1, 1)) == 0
