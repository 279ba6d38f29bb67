"""Notification requests handed to the delivery layer."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from maskminder.db.repository import Repository
from maskminder.engine.due_items import DueItem, get_due_items
from maskminder.engine.escalation import ReminderCounter, should_send_reminder

logger = logging.getLogger(__name__)


@dataclass
class NotificationRequest:
    """What to show. How it is shown is up to the notifier."""

    title: str
    body: str
    tag: str  # de-duplication key, the action id
    requires_interaction: bool
    action_id: int  # payload for routing a tap back to the action
    reminder_number: int = 1


class Notifier(Protocol):
    """Delivery collaborator (Telegram in production)."""

    @property
    def enabled(self) -> bool: ...

    async def notify(self, request: NotificationRequest) -> bool: ...

    async def set_badge(self, count: int) -> None: ...


def build_notification(item: DueItem, fired_today: int) -> NotificationRequest:
    """Build the request for a due item.

    The first reminder says the task is due or overdue. Later reminders for an
    overdue task are worded as follow-ups and carry the reminder number.
    """
    action_id = item.action.id
    action_type = item.action.action_type
    component_name = item.component.name
    reminder_number = fired_today + 1

    if item.is_overdue and fired_today > 0:
        title = f"Reminder: {action_type}"
        body = (
            f"{component_name} - {action_type} still needs attention "
            f"(reminder {reminder_number})"
        )
        requires_interaction = True
    else:
        title = f"Overdue: {action_type}" if item.is_overdue else f"Due Now: {action_type}"
        body = f"{component_name} - {action_type} is {'overdue' if item.is_overdue else 'due now'}"
        requires_interaction = item.is_overdue

    return NotificationRequest(
        title=title,
        body=body,
        tag=str(action_id),
        requires_interaction=requires_interaction,
        action_id=action_id,  # type: ignore
        reminder_number=reminder_number,
    )


async def check_and_notify(
    repo: Repository,
    counter: ReminderCounter,
    notifier: Notifier,
    now: datetime,
) -> int:
    """Check for due items and request notifications as needed.

    Re-reads the store on every call, so overlapping invocations see each
    other's writes. Only successful deliveries are counted against today.

    Returns:
        Number of notifications sent
    """
    if not notifier.enabled:
        return 0

    counter.prune(now)
    due_items = await get_due_items(repo, now)
    sent = 0

    for item in due_items:
        action_id = item.action.id
        fired_today = counter.count(action_id, now)  # type: ignore

        if not should_send_reminder(item, fired_today):
            continue

        request = build_notification(item, fired_today)

        if await notifier.notify(request):
            counter.record(action_id, now)  # type: ignore
            sent += 1
            logger.info(
                f"Reminder sent for action {action_id} "
                f"(#{request.reminder_number} today, {item.hours_overdue}h overdue)"
            )

    await notifier.set_badge(len(due_items))

    return sent
