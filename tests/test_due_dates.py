"""Tests for due-date calculation and status predicates."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from maskminder.engine.due_dates import (
    days_overdue,
    due_status,
    due_status_text,
    hours_overdue,
    initial_due_date,
    is_due_today,
    is_overdue,
    is_upcoming,
    next_due_date,
    parse_time,
)
from maskminder.errors import ValidationError

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")


def test_weekly_completed_late_stays_on_original_weekday():
    """Due Monday, done Wednesday: next due is the following Monday."""
    monday = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    wednesday = datetime(2026, 3, 4, 15, 0, tzinfo=UTC)

    next_due = next_due_date(monday, 7, "days", wednesday)

    assert next_due == datetime(2026, 3, 9, 9, 0, tzinfo=UTC)
    assert next_due.weekday() == 0


def test_completed_on_due_day_moves_one_step():
    """Test that completing on the due day advances by exactly one cadence step."""
    due = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    now = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)

    assert next_due_date(due, 1, "days", now) == datetime(2026, 3, 3, 9, 0, tzinfo=UTC)
    assert next_due_date(due, 7, "days", now) == datetime(2026, 3, 9, 9, 0, tzinfo=UTC)


def test_long_overdue_daily_lands_tomorrow():
    """Test that a daily task missed for days lands on tomorrow at the original time."""
    due = datetime(2026, 2, 20, 9, 0, tzinfo=UTC)
    now = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

    assert next_due_date(due, 1, "days", now) == datetime(2026, 3, 3, 9, 0, tzinfo=UTC)


def test_result_today_is_advanced_again():
    """Test that a step landing later today is skipped in favor of the next one."""
    due = datetime(2026, 2, 27, 20, 0, tzinfo=UTC)
    now = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)

    # Feb 27 + 3 days = Mar 2 20:00, still today
    assert next_due_date(due, 3, "days", now) == datetime(2026, 3, 5, 20, 0, tzinfo=UTC)


def test_future_due_is_unchanged():
    """Test that completing early keeps the existing future due date."""
    due = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    assert next_due_date(due, 7, "days", now) == due


def test_uses_unit_returns_original():
    """Test that usage-based schedules have no calendar advance."""
    due = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    assert next_due_date(due, 30, "uses", now) == due


def test_non_positive_frequency_rejected():
    """Test that a zero frequency is a validation error."""
    due = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)

    with pytest.raises(ValidationError):
        next_due_date(due, 0, "days", due)

    with pytest.raises(ValidationError):
        initial_due_date(0, "days", None, due)


def test_weekly_keeps_wall_clock_time_across_dst():
    """Test that a local 09:00 task stays at 09:00 after clocks spring forward."""
    due = datetime(2026, 3, 2, 9, 0, tzinfo=NEW_YORK)
    now = datetime(2026, 3, 10, 12, 0, tzinfo=NEW_YORK)

    next_due = next_due_date(due, 7, "days", now)

    assert next_due.date() == datetime(2026, 3, 16).date()
    assert next_due.hour == 9


def test_initial_due_date_uses_notification_time():
    """Test first due date for a new calendar action."""
    now = datetime(2026, 3, 2, 14, 30, tzinfo=UTC)

    due = initial_due_date(7, "days", "08:30", now)
    assert due == datetime(2026, 3, 9, 8, 30, tzinfo=UTC)

    # No notification time keeps the time of creation
    assert initial_due_date(1, "days", None, now) == now + timedelta(days=1)

    # Usage placeholder ignores notification time
    assert initial_due_date(30, "uses", "08:30", now) == now + timedelta(days=30)


def test_overdue_means_before_today():
    """Test that earlier today is due, not overdue."""
    now = datetime(2026, 3, 2, 15, 0, tzinfo=UTC)

    earlier_today = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)
    assert not is_overdue(earlier_today, now)
    assert is_due_today(earlier_today, now)
    assert due_status(earlier_today, now) == "due"

    last_night = datetime(2026, 3, 1, 23, 59, tzinfo=UTC)
    assert is_overdue(last_night, now)
    assert not is_due_today(last_night, now)
    assert due_status(last_night, now) == "overdue"

    assert not is_overdue(None, now)
    assert due_status(None, now) == "ok"


def test_local_day_boundaries():
    """Test that "today" is the local calendar day, not the UTC one."""
    now = datetime(2026, 3, 2, 1, 0, tzinfo=NEW_YORK)

    # 03:00 UTC on Mar 2 is still Mar 1 in New York
    due = datetime(2026, 3, 2, 3, 0, tzinfo=UTC)

    assert is_overdue(due, now)
    assert days_overdue(due, now) == 1


def test_status_exclusivity():
    """Exactly one of overdue, due today, upcoming or none holds for any due date."""
    now = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

    for offset in range(-72, 24 * 10):
        due = now + timedelta(hours=offset)
        flags = [
            is_overdue(due, now),
            is_due_today(due, now),
            is_upcoming(due, now, 7),
        ]
        assert sum(flags) <= 1, f"offset {offset}h: {flags}"

        if offset < -12:
            assert flags[0]
        elif offset < 12:
            assert flags[1]
        elif offset < 24 * 7:
            assert flags[2]
        else:
            assert not any(flags)


def test_days_overdue_counts_calendar_days():
    """Test that overdue implies at least one day overdue."""
    now = datetime(2026, 3, 2, 1, 0, tzinfo=UTC)

    assert days_overdue(datetime(2026, 3, 1, 23, 0, tzinfo=UTC), now) == 1
    assert days_overdue(datetime(2026, 2, 27, 9, 0, tzinfo=UTC), now) == 3
    assert days_overdue(datetime(2026, 3, 2, 0, 30, tzinfo=UTC), now) == 0


def test_hours_overdue_floors():
    """Test whole hours past due."""
    due = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)

    assert hours_overdue(due, due + timedelta(minutes=90)) == 1
    assert hours_overdue(due, due + timedelta(hours=25)) == 25
    assert hours_overdue(due, due - timedelta(hours=3)) == 0


def test_due_status_text():
    """Test display text for due dates."""
    now = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

    assert due_status_text(datetime(2026, 2, 28, 9, 0, tzinfo=UTC), now) == "2 days overdue"
    assert due_status_text(datetime(2026, 3, 1, 9, 0, tzinfo=UTC), now) == "1 day overdue"
    assert due_status_text(datetime(2026, 3, 2, 18, 0, tzinfo=UTC), now) == "Due today"
    assert due_status_text(datetime(2026, 3, 3, 9, 0, tzinfo=UTC), now) == "Due tomorrow"
    assert due_status_text(datetime(2026, 3, 7, 9, 0, tzinfo=UTC), now) == "Due in 5 days"
    assert due_status_text(datetime(2026, 4, 5, 9, 0, tzinfo=UTC), now) == "Due Apr 05, 2026"
    assert due_status_text(None, now) == "No due date"


def test_parse_time():
    """Test HH:MM parsing."""
    t = parse_time("08:30")
    assert (t.hour, t.minute) == (8, 30)

    with pytest.raises(ValidationError):
        parse_time("8.30am")
