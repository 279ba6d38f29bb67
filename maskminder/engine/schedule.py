"""Schedule engine - the maintenance action lifecycle.

Lifecycle per action:
    uninitialized -> scheduled -> due/overdue -> completed|skipped|snoozed -> scheduled

Every operation re-reads the records it touches before writing, so running
the same operation twice (or concurrently from two triggers) acts on current
state rather than a stale copy.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from maskminder.db.models import Component, MaintenanceAction, MaintenanceLog
from maskminder.db.repository import Repository
from maskminder.engine.clock import Clock
from maskminder.engine.due_dates import (
    initial_due_date,
    is_overdue,
    next_due_date,
    set_time,
    to_local,
)
from maskminder.engine.due_items import MaintenanceSummary, rank_actions, summarize
from maskminder.errors import NotFoundError, ValidationError
from maskminder.utils.constants import DEFAULT_SNOOZE_HOURS

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Outcome of completing an action."""

    log_id: int
    next_due: datetime
    was_overdue: bool


class ScheduleEngine:
    """Complete, skip, snooze, initialize and reschedule maintenance actions."""

    def __init__(self, repo: Repository, clock: Clock):
        self.repo = repo
        self.clock = clock

    async def _get_action(self, action_id: int) -> MaintenanceAction:
        action = await self.repo.get_action(action_id)
        if action is None:
            raise NotFoundError("action", action_id)
        return action

    async def _get_component(self, component_id: int) -> Component:
        component = await self.repo.get_component(component_id)
        if component is None:
            raise NotFoundError("component", component_id)
        return component

    async def _advance(
        self, action: MaintenanceAction, anchor: datetime, now: datetime
    ) -> datetime:
        """Compute the next due date for ``action`` from its original anchor.

        Usage actions have no calendar cadence; they get the placeholder date
        and their usage baseline moves up to the component's current counter so
        the next cycle counts fresh nights of use.
        """
        if action.schedule_unit == "uses":
            component = await self._get_component(action.component_id)
            action.usage_baseline = component.usage_count
            return initial_due_date(action.schedule_frequency, "uses", None, now)

        next_due = next_due_date(
            anchor, action.schedule_frequency, action.schedule_unit, now
        )

        if action.notification_time:
            next_due = set_time(to_local(next_due, now), action.notification_time)

        return next_due

    async def initialize(self, action_id: int) -> MaintenanceAction:
        """Set the first due date for an action. No-op if already scheduled."""
        action = await self._get_action(action_id)

        if action.next_due is not None:
            return action

        action.next_due = initial_due_date(
            action.schedule_frequency,
            action.schedule_unit,
            action.notification_time,
            self.clock.now(),
        )
        await self.repo.update_action(action)

        logger.info(f"Initialized action {action_id}, first due {action.next_due.isoformat()}")
        return action

    async def initialize_all(self) -> int:
        """Initialize every action that has no due date yet.

        Returns:
            Number of actions initialized
        """
        actions = await self.repo.get_actions()
        initialized = 0

        for action in actions:
            if action.next_due is None and action.id is not None:
                await self.initialize(action.id)
                initialized += 1

        return initialized

    async def complete(
        self,
        action_id: int,
        completed_at: datetime | None = None,
        notes: str | None = None,
    ) -> CompletionResult:
        """Complete an action and schedule its next occurrence.

        1. Whether the completion was late is judged against the current due
           date, at the completion time.
        2. A log entry is written.
        3. The next due date is computed from the original due date, never from
           the completion time, so the cadence does not drift.
        4. The log and the action update go to the store as one commit.
        """
        now = self.clock.now()
        if completed_at is None:
            completed_at = now

        action = await self._get_action(action_id)

        was_overdue = is_overdue(action.next_due, to_local(completed_at, now))
        anchor = action.next_due or completed_at

        action.next_due = await self._advance(action, anchor, now)
        action.last_completed = completed_at

        log = MaintenanceLog(
            component_id=action.component_id,
            action_id=action_id,
            completed_at=completed_at,
            was_overdue=was_overdue,
            notes=notes,
            logged_by="user",
        )
        created = await self.repo.record_completion(log, action)

        logger.info(
            f"Completed action {action_id} ({'late' if was_overdue else 'on time'}), "
            f"next due {action.next_due.isoformat()}"
        )
        return CompletionResult(
            log_id=created.id,  # type: ignore
            next_due=action.next_due,
            was_overdue=was_overdue,
        )

    async def skip(self, action_id: int) -> datetime:
        """Dismiss the current occurrence without logging a completion.

        Advances with the same anchored rule as completion. Skipped occurrences
        leave no history and never pile up as debt.
        """
        now = self.clock.now()
        action = await self._get_action(action_id)

        anchor = action.next_due or now
        action.next_due = await self._advance(action, anchor, now)
        await self.repo.update_action(action)

        logger.info(f"Skipped action {action_id}, next due {action.next_due.isoformat()}")
        return action.next_due

    async def snooze(self, action_id: int, hours: int = DEFAULT_SNOOZE_HOURS) -> datetime:
        """Push the due date to ``now + hours``.

        The previous due date is overwritten, so the snoozed time becomes the
        anchor for later cadence calculations.
        """
        if hours <= 0:
            raise ValidationError("Snooze hours must be greater than zero")

        now = self.clock.now()
        action = await self._get_action(action_id)

        action.next_due = now + timedelta(hours=hours)
        await self.repo.update_action(action)

        logger.info(f"Snoozed action {action_id} for {hours}h")
        return action.next_due

    async def reschedule(self, action_id: int, new_due: datetime) -> MaintenanceAction:
        """Set the due date directly."""
        action = await self._get_action(action_id)

        if new_due.tzinfo is None:
            new_due = new_due.replace(tzinfo=self.clock.now().tzinfo)

        action.next_due = new_due
        await self.repo.update_action(action)

        logger.info(f"Rescheduled action {action_id} to {new_due.isoformat()}")
        return action

    async def update_usage(
        self, component_id: int, increment: int = 1
    ) -> list[MaintenanceAction]:
        """Record nights of use and make usage-based actions due when they cross their threshold.

        Returns:
            Actions that became due because of this update
        """
        if increment <= 0:
            raise ValidationError("Usage increment must be a positive number of uses")

        await self._get_component(component_id)
        await self.repo.increment_usage(component_id, increment)
        component = await self._get_component(component_id)

        now = self.clock.now()
        became_due = []

        for action in await self.repo.get_actions_by_component(component_id):
            if action.schedule_unit != "uses":
                continue

            uses_since_last = component.usage_count - action.usage_baseline
            if uses_since_last < action.schedule_frequency:
                continue

            already_due = action.next_due is not None and action.next_due <= now
            if already_due:
                continue

            action.next_due = now
            await self.repo.update_action(action)
            became_due.append(action)

            logger.info(
                f"Action {action.id} due after {uses_since_last} uses "
                f"of {component.name} (threshold {action.schedule_frequency})"
            )

        return became_due

    async def actions_needing_attention(self) -> list[MaintenanceAction]:
        """All due or overdue actions, most pressing first."""
        actions = await self.repo.get_actions()
        return rank_actions(actions, self.clock.now())

    async def summary(self) -> MaintenanceSummary:
        """Overdue, due-today and upcoming counts for the home screen."""
        actions = await self.repo.get_actions()
        return summarize(actions, self.clock.now())
