"""Streak and compliance analytics over completion history."""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from maskminder.db.models import Component, MaintenanceAction, MaintenanceLog
from maskminder.engine.due_dates import last_n_days_range, to_local
from maskminder.utils.constants import COMPLIANCE_WINDOW_DAYS, STREAK_LOOKBACK_DAYS


@dataclass
class CompletionStats:
    """On-time vs late completions."""

    total_completed: int
    overdue_completions: int
    on_time_completions: int
    on_time_rate: float  # percent


def scheduled_actions_per_day(
    actions: list[MaintenanceAction],
    now: datetime,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
    components: list[Component] | None = None,
) -> dict[date, set[int]]:
    """Project each calendar action's cadence over the lookback window.

    Occurrences are ``next_due + k * frequency`` days for every integer k,
    kept when they fall between ``today - lookback_days`` and today. Usage
    actions have no calendar signal and are left out. When components are
    given, occurrences start the day after the owning component was added;
    a new action's first due date is one full cadence after creation, so
    projecting back would otherwise land on the creation day itself.
    """
    today = now.date()
    window_start = today - timedelta(days=lookback_days)

    created_on: dict[int, date] = {}
    for component in components or []:
        if component.id is not None and component.created_at is not None:
            first_day = to_local(component.created_at, now).date() + timedelta(days=1)
            created_on[component.id] = first_day

    scheduled: dict[date, set[int]] = defaultdict(set)

    for action in actions:
        if action.schedule_unit != "days" or action.next_due is None or action.id is None:
            continue

        step = action.schedule_frequency
        anchor = to_local(action.next_due, now).date()
        lower = max(window_start, created_on.get(action.component_id, window_start))

        # First occurrence on or after the window start
        offset = (lower - anchor).days
        k = -(-offset // step)
        day = anchor + timedelta(days=k * step)

        while day <= today:
            scheduled[day].add(action.id)
            day += timedelta(days=step)

    return dict(scheduled)


def calculate_streak(
    logs: list[MaintenanceLog],
    scheduled: dict[date, set[int]],
    now: datetime,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> int:
    """Count consecutive days, back from today, with every scheduled action done.

    Days with nothing scheduled are passed over without breaking or extending
    the streak. The walk stops at the first day with something left undone.
    """
    if not logs:
        return 0

    completed_by_day: dict[date, set[int]] = defaultdict(set)
    for log in logs:
        completed_by_day[to_local(log.completed_at, now).date()].add(log.action_id)

    streak = 0
    day = now.date()

    for _ in range(lookback_days):
        required = scheduled.get(day)

        if not required:
            day -= timedelta(days=1)
            continue

        if not required <= completed_by_day.get(day, set()):
            break

        streak += 1
        day -= timedelta(days=1)

    return streak


def compliance_percentage(
    logs: list[MaintenanceLog],
    actions: list[MaintenanceAction],
    now: datetime,
    window_days: int = COMPLIANCE_WINDOW_DAYS,
) -> int:
    """Completed vs required tasks over the trailing window, as a whole percent.

    Each calendar action requires ``max(1, window_days // frequency)``
    completions. The result is rounded half up and capped at 100; with nothing
    required it is 100.
    """
    required = sum(
        max(1, window_days // action.schedule_frequency)
        for action in actions
        if action.schedule_unit == "days"
    )
    if required == 0:
        return 100

    start, end = last_n_days_range(window_days, now)
    completed = sum(1 for log in logs if start <= log.completed_at <= end)

    return min(100, math.floor(100 * completed / required + 0.5))


def completion_statistics(logs: list[MaintenanceLog]) -> CompletionStats:
    """Split completions into on-time and late."""
    total = len(logs)
    overdue = sum(1 for log in logs if log.was_overdue)
    on_time = total - overdue

    return CompletionStats(
        total_completed=total,
        overdue_completions=overdue,
        on_time_completions=on_time,
        on_time_rate=(on_time / total) * 100 if total else 100.0,
    )
