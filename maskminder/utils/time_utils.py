"""Time formatting and parsing utilities."""

from datetime import datetime
from zoneinfo import ZoneInfo

from maskminder.engine.due_dates import parse_time


def parse_local_datetime(date_str: str, time_str: str | None, tz: str) -> datetime:
    """Parse "YYYY-MM-DD" plus optional "HH:MM" as a local time in ``tz``.

    Raises:
        ValueError: if the date is malformed
        ValidationError: if the time is malformed
    """
    day = datetime.strptime(date_str, "%Y-%m-%d")
    if time_str:
        t = parse_time(time_str)
        day = day.replace(hour=t.hour, minute=t.minute)
    return day.replace(tzinfo=ZoneInfo(tz))


def format_hours(hours: int) -> str:
    """Format a number of hours into a human-readable duration.

    Examples:
        1 -> "1 hour"
        4 -> "4 hours"
        24 -> "1 day"
        36 -> "1.5 days"
    """
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''}"
    days = hours / 24
    if days == int(days):
        return f"{int(days)} day{'s' if days != 1 else ''}"
    return f"{days:.1f} days"


def format_relative_time(dt: datetime, now: datetime) -> str:
    """Format a datetime relative to now.

    Examples:
        "in 5 minutes"
        "in 2 hours"
        "tomorrow"
        "2 days overdue"
    """
    delta = dt - now
    total_seconds = delta.total_seconds()

    if total_seconds < 0:
        # Overdue
        abs_seconds = abs(total_seconds)
        if abs_seconds < 3600:
            minutes = int(abs_seconds / 60)
            return f"{minutes} minute{'s' if minutes != 1 else ''} overdue"
        elif abs_seconds < 86400:
            hours = int(abs_seconds / 3600)
            return f"{hours} hour{'s' if hours != 1 else ''} overdue"
        else:
            days = int(abs_seconds / 86400)
            return f"{days} day{'s' if days != 1 else ''} overdue"
    else:
        # Future
        if total_seconds < 3600:
            minutes = int(total_seconds / 60)
            return f"in {minutes} minute{'s' if minutes != 1 else ''}"
        elif total_seconds < 86400:
            hours = int(total_seconds / 3600)
            return f"in {hours} hour{'s' if hours != 1 else ''}"
        elif total_seconds < 172800:  # 2 days
            return "tomorrow"
        else:
            days = int(total_seconds / 86400)
            return f"in {days} days"
