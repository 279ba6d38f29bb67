"""Due-date calculation and status predicates.

All functions are pure and take ``now`` explicitly. "Today" means the calendar
day of ``now`` in ``now``'s own timezone; due dates stored in UTC are converted
into that zone before any calendar comparison.
"""

from datetime import datetime, time, timedelta
from typing import Literal

from dateutil.rrule import DAILY, rrule

from maskminder.errors import ValidationError

DueStatus = Literal["overdue", "due", "ok"]


def to_local(dt: datetime, now: datetime) -> datetime:
    """Express ``dt`` in the same timezone as ``now``."""
    return dt.astimezone(now.tzinfo)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def parse_time(time_str: str) -> time:
    """Parse an HH:MM string (24-hour)."""
    try:
        parsed = time.fromisoformat(time_str)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid time {time_str!r}, expected HH:MM") from None
    return parsed


def set_time(dt: datetime, time_str: str) -> datetime:
    """Replace the time of day on ``dt``, keeping its date and timezone."""
    t = parse_time(time_str)
    return dt.replace(hour=t.hour, minute=t.minute, second=0, microsecond=0)


def next_due_date(
    original_due: datetime, frequency: int, unit: str, now: datetime
) -> datetime:
    """Get the next occurrence anchored on the original due date.

    Steps forward from ``original_due`` in ``frequency``-day increments until
    the result lands on or after the start of tomorrow. A result that falls
    today is advanced again. The completion time never enters the calculation,
    so a weekly task due Monday but done Wednesday stays on Mondays.

    Usage-based schedules have no calendar signal, so ``original_due`` is
    returned unchanged.
    """
    if unit == "uses":
        return original_due

    if frequency <= 0:
        raise ValidationError(f"Frequency must be positive, got {frequency}")

    local_due = to_local(original_due, now)
    tomorrow = start_of_day(now) + timedelta(days=1)

    if local_due >= tomorrow:
        return local_due

    rule = rrule(DAILY, interval=frequency, dtstart=local_due)
    next_date = rule.after(tomorrow, inc=True)

    if next_date is None:
        raise ValueError("No next occurrence found")

    # rrule drops sub-second precision from dtstart
    return next_date.replace(microsecond=local_due.microsecond)


def initial_due_date(
    frequency: int,
    unit: str,
    notification_time: str | None,
    now: datetime,
) -> datetime:
    """Get the first due date for a newly created action.

    Calendar actions fall ``frequency`` days from now, at the notification
    time when one is set. Usage actions get the same numeric offset as a
    placeholder until the usage counter makes them due.
    """
    if frequency <= 0:
        raise ValidationError(f"Frequency must be positive, got {frequency}")

    due = now + timedelta(days=frequency)

    if unit == "days" and notification_time:
        due = set_time(due, notification_time)

    return due


def is_overdue(due: datetime | None, now: datetime) -> bool:
    """Due before the start of today. Something due earlier today is not overdue."""
    if due is None:
        return False
    return due < start_of_day(now)


def is_due_today(due: datetime | None, now: datetime) -> bool:
    """Due within today's calendar boundaries."""
    if due is None:
        return False
    return to_local(due, now).date() == now.date()


def is_upcoming(due: datetime | None, now: datetime, within_days: int = 7) -> bool:
    """Due after today and before ``now + within_days``."""
    if due is None:
        return False
    if is_due_today(due, now):
        return False
    return now < due < now + timedelta(days=within_days)


def days_overdue(due: datetime, now: datetime) -> int:
    """Calendar days past due (0 if not overdue)."""
    if not is_overdue(due, now):
        return 0
    return (now.date() - to_local(due, now).date()).days


def days_until_due(due: datetime, now: datetime) -> int:
    """Calendar days until due (negative if overdue)."""
    return (to_local(due, now).date() - now.date()).days


def hours_overdue(due: datetime, now: datetime) -> int:
    """Whole hours since the due instant, floored at zero."""
    seconds = (now - due).total_seconds()
    return max(0, int(seconds // 3600))


def due_status(due: datetime | None, now: datetime) -> DueStatus:
    """Get status type for a due date (for badges)."""
    if due is None:
        return "ok"
    if is_overdue(due, now):
        return "overdue"
    if is_due_today(due, now):
        return "due"
    return "ok"


def due_status_text(due: datetime | None, now: datetime) -> str:
    """Get display text for a due date.

    Examples:
        "2 days overdue"
        "Due today"
        "Due tomorrow"
        "Due in 5 days"
        "Due Jan 05, 2026"
    """
    if due is None:
        return "No due date"

    if is_overdue(due, now):
        days = days_overdue(due, now)
        return f"{days} day{'s' if days != 1 else ''} overdue"

    if is_due_today(due, now):
        return "Due today"

    days = days_until_due(due, now)
    if days == 1:
        return "Due tomorrow"
    if days <= 7:
        return f"Due in {days} days"

    return f"Due {to_local(due, now).strftime('%b %d, %Y')}"


def last_n_days_range(days: int, now: datetime) -> tuple[datetime, datetime]:
    """Get the [start, end] range covering the last ``days`` days through today."""
    end = end_of_day(now)
    start = start_of_day(now - timedelta(days=days))
    return start, end
