"""Due-item selection and priority ordering."""

from dataclasses import dataclass
from datetime import datetime

from maskminder.db.models import Component, MaintenanceAction, NotificationConfig
from maskminder.db.repository import Repository
from maskminder.engine.due_dates import (
    days_until_due,
    hours_overdue,
    is_due_today,
    is_overdue,
)


@dataclass
class DueItem:
    """An action whose due date has arrived, joined with its component and config."""

    action: MaintenanceAction
    component: Component
    notification_config: NotificationConfig | None
    is_overdue: bool
    hours_overdue: int


@dataclass
class MaintenanceSummary:
    """Counts for the home screen."""

    overdue_count: int
    due_today_count: int
    upcoming_count: int
    all_caught_up: bool
    next_upcoming: MaintenanceAction | None = None
    next_upcoming_days: int | None = None


def _priority(is_late: bool, late_hours: int) -> tuple[int, int]:
    # Overdue bucket first, then most overdue first
    return (0 if is_late else 1, -late_hours)


def select_due_items(
    actions: list[MaintenanceAction],
    components: list[Component],
    configs: list[NotificationConfig],
    now: datetime,
) -> list[DueItem]:
    """Build the ranked list of items that should be brought to the user's attention.

    An action qualifies when its due date has arrived, its component exists and
    is active, and its notification config (if any) is enabled.
    """
    components_by_id = {c.id: c for c in components}
    configs_by_action = {c.action_id: c for c in configs}

    due_items = []
    for action in actions:
        if action.next_due is None or action.id is None:
            continue
        if action.next_due > now:
            continue

        component = components_by_id.get(action.component_id)
        if component is None or not component.is_active:
            continue

        config = configs_by_action.get(action.id)
        if config is not None and not config.enabled:
            continue

        due_items.append(
            DueItem(
                action=action,
                component=component,
                notification_config=config,
                is_overdue=is_overdue(action.next_due, now),
                hours_overdue=hours_overdue(action.next_due, now),
            )
        )

    due_items.sort(key=lambda item: _priority(item.is_overdue, item.hours_overdue))
    return due_items


async def get_due_items(repo: Repository, now: datetime) -> list[DueItem]:
    """Load actions, components and configs and select the due items."""
    actions = await repo.get_actions()
    components = await repo.get_components()
    configs = await repo.get_notification_configs()
    return select_due_items(actions, components, configs, now)


def rank_actions(
    actions: list[MaintenanceAction], now: datetime
) -> list[MaintenanceAction]:
    """Actions needing attention (due or overdue), in display order.

    Same ordering as the due-item list, with ties broken by earliest due date.
    """
    needing_attention = [
        a for a in actions if a.next_due is not None and a.next_due <= now
    ]

    def sort_key(action: MaintenanceAction):
        due = action.next_due
        return (*_priority(is_overdue(due, now), hours_overdue(due, now)), due)

    return sorted(needing_attention, key=sort_key)


def summarize(actions: list[MaintenanceAction], now: datetime) -> MaintenanceSummary:
    """Count overdue, due-today and upcoming actions."""
    overdue_count = 0
    due_today_count = 0
    upcoming_count = 0
    next_upcoming: MaintenanceAction | None = None

    for action in actions:
        if action.next_due is None:
            continue

        if is_overdue(action.next_due, now):
            overdue_count += 1
        elif is_due_today(action.next_due, now):
            due_today_count += 1
        elif action.next_due > now:
            upcoming_count += 1
            if next_upcoming is None or action.next_due < next_upcoming.next_due:  # type: ignore
                next_upcoming = action

    return MaintenanceSummary(
        overdue_count=overdue_count,
        due_today_count=due_today_count,
        upcoming_count=upcoming_count,
        all_caught_up=overdue_count == 0 and due_today_count == 0,
        next_upcoming=next_upcoming,
        next_upcoming_days=days_until_due(next_upcoming.next_due, now)  # type: ignore
        if next_upcoming
        else None,
    )
