"""Components, actions and notification configs: validated creation and cascading deletes."""

import logging

from maskminder.db.models import (
    Component,
    MaintenanceAction,
    MaintenanceLog,
    NotificationConfig,
)
from maskminder.db.repository import Repository
from maskminder.engine.clock import Clock
from maskminder.engine.due_dates import parse_time
from maskminder.engine.schedule import ScheduleEngine
from maskminder.errors import NotFoundError, ValidationError
from maskminder.utils.constants import (
    COMPONENT_CATEGORIES,
    ESCALATION_STRATEGIES,
    MAX_ACTION_TYPE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    REMINDER_STRATEGIES,
    SCHEDULE_UNITS,
    TRACKING_MODES,
)

logger = logging.getLogger(__name__)


def _validate_choice(value: str, choices: tuple[str, ...], field: str) -> None:
    if value not in choices:
        raise ValidationError(f"Invalid {field} {value!r}, expected one of: {', '.join(choices)}")


def _validate_text(value: str | None, field: str, max_length: int, required: bool = True) -> None:
    if value is None or not value.strip():
        if required:
            raise ValidationError(f"{field} is required")
        return
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")


def validate_frequency(frequency: int) -> None:
    if isinstance(frequency, bool) or not isinstance(frequency, int) or frequency <= 0:
        raise ValidationError(f"Frequency must be a positive whole number, got {frequency!r}")


def validate_intervals(intervals: list[int]) -> None:
    """Escalation intervals: at least one, non-negative, non-decreasing hour offsets."""
    if not intervals:
        raise ValidationError("At least one escalation interval is required")
    for value in intervals:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"Escalation intervals must be non-negative hours, got {value!r}")
    if any(b < a for a, b in zip(intervals, intervals[1:])):
        raise ValidationError("Escalation intervals must be non-decreasing")


def validate_component(component: Component) -> None:
    _validate_text(component.name, "Name", MAX_NAME_LENGTH)
    _validate_choice(component.category, COMPONENT_CATEGORIES, "category")
    _validate_choice(component.tracking_mode, TRACKING_MODES, "tracking mode")
    _validate_text(component.notes, "Notes", MAX_NOTES_LENGTH, required=False)
    if component.usage_count < 0:
        raise ValidationError("Usage count cannot be negative")


def validate_action(action: MaintenanceAction) -> None:
    _validate_text(action.action_type, "Action type", MAX_ACTION_TYPE_LENGTH)
    validate_frequency(action.schedule_frequency)
    _validate_choice(action.schedule_unit, SCHEDULE_UNITS, "schedule unit")
    _validate_choice(action.reminder_strategy, REMINDER_STRATEGIES, "reminder strategy")
    if action.notification_time is not None:
        parse_time(action.notification_time)


def validate_notification_config(config: NotificationConfig) -> None:
    parse_time(config.time)
    _validate_choice(config.escalation_strategy, ESCALATION_STRATEGIES, "escalation strategy")
    validate_intervals(config.escalation_intervals)


class Inventory:
    """Creates and removes the records the schedule engine works on.

    Cascades live here, not in the store: deleting a component removes its
    actions, their logs and their notification configs.
    """

    def __init__(self, repo: Repository, clock: Clock):
        self.repo = repo
        self.clock = clock
        self.schedule = ScheduleEngine(repo, clock)

    async def add_component(
        self,
        name: str,
        category: str,
        tracking_mode: str = "calendar",
        notes: str | None = None,
    ) -> Component:
        """Create a component after validating it."""
        component = Component(
            name=name.strip(),
            category=category,  # type: ignore
            tracking_mode=tracking_mode,  # type: ignore
            notes=notes,
            created_at=self.clock.now(),
        )
        validate_component(component)

        created = await self.repo.create_component(component)
        logger.info(f"Created component {created.id} ({created.name})")
        return created

    async def add_action(
        self,
        component_id: int,
        action_type: str,
        schedule_frequency: int,
        schedule_unit: str,
        reminder_strategy: str = "standard",
        description: str = "",
        notification_time: str | None = None,
        instructions: str | None = None,
        notification_config: NotificationConfig | None = None,
        initialize: bool = True,
    ) -> MaintenanceAction:
        """Create an action for a component, optionally with a notification config.

        Everything is validated before the first write. The action is
        initialized (first due date set) unless ``initialize`` is False.
        """
        action = MaintenanceAction(
            component_id=component_id,
            action_type=action_type.strip(),
            schedule_frequency=schedule_frequency,
            schedule_unit=schedule_unit,  # type: ignore
            reminder_strategy=reminder_strategy,  # type: ignore
            description=description,
            notification_time=notification_time,
            instructions=instructions,
        )
        validate_action(action)
        if notification_config is not None:
            validate_notification_config(notification_config)

        component = await self.repo.get_component(component_id)
        if component is None:
            raise NotFoundError("component", component_id)

        # Usage cycles count from the component's current counter
        action.usage_baseline = component.usage_count

        created = await self.repo.create_action(action)
        logger.info(f"Created action {created.id} ({created.action_type}) on component {component_id}")

        if notification_config is not None:
            notification_config.action_id = created.id  # type: ignore
            await self.repo.create_notification_config(notification_config)

        if initialize:
            created = await self.schedule.initialize(created.id)  # type: ignore

        return created

    async def configure_notifications(
        self,
        action_id: int,
        enabled: bool = True,
        time: str = "09:00",
        escalation_strategy: str = "single_daily",
        escalation_intervals: list[int] | None = None,
    ) -> NotificationConfig:
        """Create or replace the notification config for an action."""
        config = NotificationConfig(
            action_id=action_id,
            enabled=enabled,
            time=time,
            escalation_strategy=escalation_strategy,  # type: ignore
            escalation_intervals=list(escalation_intervals) if escalation_intervals else [0],
        )
        validate_notification_config(config)

        if await self.repo.get_action(action_id) is None:
            raise NotFoundError("action", action_id)

        existing = await self.repo.get_notification_config_for_action(action_id)
        if existing is None:
            return await self.repo.create_notification_config(config)

        config.id = existing.id
        await self.repo.update_notification_config(config)
        return config

    async def set_component_active(self, component_id: int, active: bool) -> Component:
        """Soft delete (or restore) a component. Inactive components never come due."""
        component = await self.repo.get_component(component_id)
        if component is None:
            raise NotFoundError("component", component_id)

        component.is_active = active
        await self.repo.update_component(component)
        return component

    async def delete_action(self, action_id: int) -> None:
        """Delete an action with its logs and notification config."""
        if await self.repo.get_action(action_id) is None:
            raise NotFoundError("action", action_id)

        await self.repo.delete_notification_config_for_action(action_id)
        await self.repo.delete_logs_by_action(action_id)
        await self.repo.delete_action(action_id)

        logger.info(f"Deleted action {action_id}")

    async def delete_component(self, component_id: int) -> None:
        """Delete a component and everything that hangs off it."""
        if await self.repo.get_component(component_id) is None:
            raise NotFoundError("component", component_id)

        for action in await self.repo.get_actions_by_component(component_id):
            await self.delete_action(action.id)  # type: ignore

        await self.repo.delete_logs_by_component(component_id)
        await self.repo.delete_component(component_id)

        logger.info(f"Deleted component {component_id}")

    async def edit_log_notes(self, log_id: int, notes: str | None) -> MaintenanceLog:
        """Change the notes on a completion. Nothing else on a log is editable."""
        _validate_text(notes, "Notes", MAX_NOTES_LENGTH, required=False)

        log = await self.repo.get_log(log_id)
        if log is None:
            raise NotFoundError("log", log_id)

        log.notes = notes.strip() if notes and notes.strip() else None
        await self.repo.update_log_notes(log_id, log.notes)
        return log
