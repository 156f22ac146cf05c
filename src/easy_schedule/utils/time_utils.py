"""Wall-clock time arithmetic on HH:MM strings and minute offsets."""

import re
from datetime import date, datetime
from typing import Optional, Union

from ..exceptions import ValidationError

MINUTES_IN_DAY = 1440

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(time_str: str) -> int:
    """
    Convert an HH:MM string into minutes since midnight.

    Args:
        time_str: 24h time such as "07:00" or "23:45"

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        ValidationError: If the string is not a valid 24h time
    """
    match = _TIME_PATTERN.match(time_str.strip()) if isinstance(time_str, str) else None
    if not match:
        raise ValidationError(f"Invalid time '{time_str}', expected HH:MM", field="time")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid time '{time_str}', expected HH:MM", field="time")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format a minute offset as HH:MM, wrapping modulo 24h (negative-safe)."""
    normalized = minutes % MINUTES_IN_DAY
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def add_minutes(time_str: str, minutes: int) -> str:
    """Add minutes to an HH:MM string, wrapping past midnight."""
    return format_minutes(parse_time(time_str) + minutes)


def format_duration(minutes: int) -> str:
    """Short duration label: 45m, 2h, 1h30m."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h{mins}m"


def today_string(now: Optional[datetime] = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    return (now or datetime.now()).date().isoformat()


def age_in_weeks(birth_date: Union[str, date], today: Optional[date] = None) -> int:
    """Whole weeks elapsed since birth_date (never negative)."""
    if isinstance(birth_date, str):
        birth_date = date.fromisoformat(birth_date)
    today = today or date.today()
    return max(0, (today - birth_date).days // 7)
