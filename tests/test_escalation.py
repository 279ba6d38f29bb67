"""Tests for escalation logic."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from maskminder.db.models import Component, MaintenanceAction, NotificationConfig
from maskminder.engine.due_items import DueItem
from maskminder.engine.escalation import (
    ReminderCounter,
    resolve_escalation,
    should_send_reminder,
)

UTC = ZoneInfo("UTC")


def _item(strategy="standard", hours=0, config=None):
    action = MaintenanceAction(
        id=1,
        component_id=1,
        action_type="Daily Rinse",
        schedule_frequency=1,
        schedule_unit="days",
        reminder_strategy=strategy,
    )
    component = Component(id=1, name="Water Chamber", category="water_chamber", tracking_mode="calendar")
    return DueItem(
        action=action,
        component=component,
        notification_config=config,
        is_overdue=hours >= 24,
        hours_overdue=hours,
    )


def test_resolve_escalation():
    """Test defaults per reminder strategy and config override."""
    assert resolve_escalation(_item("gentle").action, None) == ("single_daily", [0])
    assert resolve_escalation(_item("standard").action, None) == ("multiple_daily", [0, 4, 8])
    assert resolve_escalation(_item("urgent").action, None)[0] == "increasing_urgency"

    # Unknown strategy falls back to gentle
    assert resolve_escalation(_item("frantic").action, None) == ("single_daily", [0])

    config = NotificationConfig(action_id=1, escalation_strategy="multiple_daily", escalation_intervals=[0, 2])
    assert resolve_escalation(_item("gentle").action, config) == ("multiple_daily", [0, 2])


def test_single_daily_fires_once():
    """Gentle actions get at most one reminder per day, however overdue."""
    for hours in (0, 5, 30, 100):
        item = _item("gentle", hours)
        assert should_send_reminder(item, 0) is True
        assert should_send_reminder(item, 1) is False
        assert should_send_reminder(item, 5) is False


def test_multiple_daily_checkpoints():
    """Test that each checkpoint fires once it has been crossed, in order."""
    # Defaults for standard: 0h, 4h, 8h
    assert should_send_reminder(_item("standard", 0), 0) is True
    assert should_send_reminder(_item("standard", 3), 1) is False
    assert should_send_reminder(_item("standard", 4), 1) is True
    assert should_send_reminder(_item("standard", 7), 2) is False
    assert should_send_reminder(_item("standard", 8), 2) is True
    assert should_send_reminder(_item("standard", 50), 3) is False


def test_multiple_daily_with_config_intervals():
    """Test custom checkpoints from a notification config."""
    config = NotificationConfig(
        action_id=1, escalation_strategy="multiple_daily", escalation_intervals=[2, 6]
    )

    assert should_send_reminder(_item("gentle", 1, config), 0) is False
    assert should_send_reminder(_item("gentle", 2, config), 0) is True
    assert should_send_reminder(_item("gentle", 5, config), 1) is False
    assert should_send_reminder(_item("gentle", 6, config), 1) is True
    assert should_send_reminder(_item("gentle", 12, config), 2) is False


def test_increasing_urgency_thresholds():
    """Test immediate, 4h, 8h and 24h reminders, capped at four."""
    assert should_send_reminder(_item("urgent", 0), 0) is True
    assert should_send_reminder(_item("urgent", 3), 1) is False
    assert should_send_reminder(_item("urgent", 4), 1) is True
    assert should_send_reminder(_item("urgent", 8), 2) is True
    assert should_send_reminder(_item("urgent", 23), 3) is False
    assert should_send_reminder(_item("urgent", 24), 3) is True
    assert should_send_reminder(_item("urgent", 200), 4) is False


def test_unknown_config_strategy_fires_once():
    """Test that an unrecognized stored strategy behaves like single_daily."""
    config = NotificationConfig(action_id=1, escalation_strategy="mystery", escalation_intervals=[0])  # type: ignore

    assert should_send_reminder(_item("urgent", 10, config), 0) is True
    assert should_send_reminder(_item("urgent", 10, config), 1) is False


def test_counter_counts_per_action_and_day():
    """Test fired-today counts and the implicit day rollover."""
    counter = ReminderCounter()
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    assert counter.count(1, now) == 0
    assert counter.record(1, now) == 1
    assert counter.record(1, now + timedelta(hours=4)) == 2
    assert counter.record(2, now) == 1

    assert counter.count(1, now) == 2

    tomorrow = now + timedelta(days=1)
    assert counter.count(1, tomorrow) == 0
    assert counter.count(2, tomorrow) == 0


def test_counter_prune_forget_and_reset():
    """Test explicit cleanup operations."""
    counter = ReminderCounter()
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    counter.record(1, now - timedelta(days=1))
    counter.record(2, now)
    counter.record(3, now)

    counter.prune(now)
    assert len(counter) == 2

    counter.forget(2)
    assert counter.count(2, now) == 0
    assert counter.count(3, now) == 1

    counter.reset()
    assert len(counter) == 0


def test_counter_stamps_last_fired():
    """Test that each recorded reminder keeps its fire time."""
    counter = ReminderCounter()
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    assert counter.last_fired(1) is None

    counter.record(1, now)
    assert counter.last_fired(1) == now

    later = now + timedelta(hours=4)
    counter.record(1, later)
    assert counter.last_fired(1) == later
    assert counter.last_fired(2) is None

    counter.forget(1)
    assert counter.last_fired(1) is None
