"""Escalation policy: whether another reminder should fire today."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple

from maskminder.db.models import MaintenanceAction, NotificationConfig
from maskminder.engine.due_items import DueItem
from maskminder.utils.constants import (
    DEFAULT_ESCALATION,
    INCREASING_URGENCY_THRESHOLDS,
)


def resolve_escalation(
    action: MaintenanceAction, config: NotificationConfig | None
) -> Tuple[str, list[int]]:
    """Get the effective (strategy, intervals) for an action.

    An explicit notification config wins; otherwise defaults are derived from
    the action's reminder strategy. Unknown strategies fall back to gentle.
    """
    if config is not None:
        return config.escalation_strategy, list(config.escalation_intervals)

    defaults = DEFAULT_ESCALATION.get(action.reminder_strategy, DEFAULT_ESCALATION["gentle"])
    return defaults.strategy, list(defaults.intervals)


def should_send_reminder(item: DueItem, fired_today: int) -> bool:
    """Decide whether to fire another reminder for a due item.

    Args:
        item: The due item being considered
        fired_today: How many reminders already fired for this action today

    Strategies:
        single_daily: one reminder per day
        multiple_daily: one per crossed "hours past due" checkpoint, in order
        increasing_urgency: immediately, then at 4h, 8h and 24h overdue; at most four a day
    """
    strategy, intervals = resolve_escalation(item.action, item.notification_config)

    if strategy == "single_daily":
        return fired_today == 0

    if strategy == "multiple_daily":
        # Checkpoints are non-decreasing, so the next unconsumed one decides
        if fired_today >= len(intervals):
            return False
        return item.hours_overdue >= intervals[fired_today]

    if strategy == "increasing_urgency":
        if fired_today >= len(INCREASING_URGENCY_THRESHOLDS):
            return False
        return item.hours_overdue >= INCREASING_URGENCY_THRESHOLDS[fired_today]

    return fired_today == 0


@dataclass
class _FiredRecord:
    day: date
    count: int
    last_fired: datetime


class ReminderCounter:
    """Per-action count of reminders fired today.

    Process-local and disposable: losing it on restart only means a reminder
    may fire once more. Counts from an earlier local day read as zero.
    """

    def __init__(self) -> None:
        self._records: dict[int, _FiredRecord] = {}

    def count(self, action_id: int, now: datetime) -> int:
        record = self._records.get(action_id)
        if record is None or record.day != now.date():
            return 0
        return record.count

    def last_fired(self, action_id: int) -> datetime | None:
        """When the latest reminder for an action fired, if any."""
        record = self._records.get(action_id)
        return record.last_fired if record else None

    def record(self, action_id: int, now: datetime) -> int:
        """Note that a reminder fired; returns the new count for today."""
        count = self.count(action_id, now) + 1
        self._records[action_id] = _FiredRecord(day=now.date(), count=count, last_fired=now)
        return count

    def prune(self, now: datetime) -> None:
        """Drop entries from earlier days."""
        today = now.date()
        self._records = {k: v for k, v in self._records.items() if v.day == today}

    def forget(self, action_id: int) -> None:
        """Start an action's count over, e.g. once its occurrence is handled."""
        self._records.pop(action_id, None)

    def reset(self) -> None:
        """Daily reset: forget everything."""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
