"""Utility helpers."""

from .time_utils import (
    MINUTES_IN_DAY,
    parse_time,
    format_minutes,
    add_minutes,
    format_duration,
    today_string,
    age_in_weeks,
)

__all__ = [
    "MINUTES_IN_DAY",
    "parse_time",
    "format_minutes",
    "add_minutes",
    "format_duration",
    "today_string",
    "age_in_weeks",
]
