"""Database repository - all SQL queries."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo

import aiosqlite

from maskminder.db.models import (
    Component,
    MaintenanceAction,
    MaintenanceLog,
    NotificationConfig,
)

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def to_db_time(dt: datetime | None) -> str | None:
    """Serialize a datetime as a fixed-width UTC ISO string (naive values are taken as UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class Repository:
    """Database access layer."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    # Component operations

    async def create_component(self, component: Component) -> Component:
        """Create a new component."""
        async with self.db.execute(
            """
            INSERT INTO components (
                name, category, tracking_mode, usage_count, is_active, created_at, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                component.name,
                component.category,
                component.tracking_mode,
                component.usage_count,
                1 if component.is_active else 0,
                to_db_time(component.created_at or datetime.now(UTC)),
                component.notes,
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return self._row_to_component(row)

    async def get_component(self, component_id: int) -> Component | None:
        """Get a component by ID."""
        async with self.db.execute(
            "SELECT * FROM components WHERE id = ?", (component_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_component(row)
            return None

    async def get_components(self, active_only: bool = False) -> List[Component]:
        """Get all components, optionally only the active ones."""
        if active_only:
            query = "SELECT * FROM components WHERE is_active = 1 ORDER BY id"
        else:
            query = "SELECT * FROM components ORDER BY id"

        async with self.db.execute(query) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_component(row) for row in rows]

    async def get_components_by_category(self, category: str) -> List[Component]:
        """Get components in a category."""
        async with self.db.execute(
            "SELECT * FROM components WHERE category = ? ORDER BY id", (category,)
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_component(row) for row in rows]

    async def update_component(self, component: Component) -> None:
        """Update a component."""
        await self.db.execute(
            """
            UPDATE components SET
                name = ?,
                category = ?,
                tracking_mode = ?,
                usage_count = ?,
                is_active = ?,
                notes = ?
            WHERE id = ?
            """,
            (
                component.name,
                component.category,
                component.tracking_mode,
                component.usage_count,
                1 if component.is_active else 0,
                component.notes,
                component.id,
            ),
        )
        await self.db.commit()

    async def increment_usage(self, component_id: int, increment: int) -> None:
        """Add to a component's usage counter."""
        await self.db.execute(
            "UPDATE components SET usage_count = usage_count + ? WHERE id = ?",
            (increment, component_id),
        )
        await self.db.commit()

    async def delete_component(self, component_id: int) -> None:
        """Delete a component row (no cascade)."""
        await self.db.execute("DELETE FROM components WHERE id = ?", (component_id,))
        await self.db.commit()

    # Maintenance action operations

    async def create_action(self, action: MaintenanceAction) -> MaintenanceAction:
        """Create a new maintenance action."""
        async with self.db.execute(
            """
            INSERT INTO maintenance_actions (
                component_id, action_type, description, schedule_frequency,
                schedule_unit, notification_time, reminder_strategy,
                last_completed, next_due, instructions, usage_baseline
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                action.component_id,
                action.action_type,
                action.description,
                action.schedule_frequency,
                action.schedule_unit,
                action.notification_time,
                action.reminder_strategy,
                to_db_time(action.last_completed),
                to_db_time(action.next_due),
                action.instructions,
                action.usage_baseline,
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return self._row_to_action(row)

    async def get_action(self, action_id: int) -> MaintenanceAction | None:
        """Get a maintenance action by ID."""
        async with self.db.execute(
            "SELECT * FROM maintenance_actions WHERE id = ?", (action_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_action(row)
            return None

    async def get_actions(self) -> List[MaintenanceAction]:
        """Get all maintenance actions."""
        async with self.db.execute(
            "SELECT * FROM maintenance_actions ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_action(row) for row in rows]

    async def get_actions_by_component(self, component_id: int) -> List[MaintenanceAction]:
        """Get all maintenance actions for a component."""
        async with self.db.execute(
            "SELECT * FROM maintenance_actions WHERE component_id = ? ORDER BY id",
            (component_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_action(row) for row in rows]

    async def update_action(self, action: MaintenanceAction) -> None:
        """Update a maintenance action."""
        await self.db.execute(*self._update_action_sql(action))
        await self.db.commit()

    async def delete_action(self, action_id: int) -> None:
        """Delete a maintenance action row (no cascade)."""
        await self.db.execute("DELETE FROM maintenance_actions WHERE id = ?", (action_id,))
        await self.db.commit()

    # Maintenance log operations

    async def record_completion(
        self, log: MaintenanceLog, action: MaintenanceAction
    ) -> MaintenanceLog:
        """Insert a completion log and update its action in one transaction."""
        try:
            async with self.db.execute(*self._insert_log_sql(log)) as cursor:
                row = await cursor.fetchone()
            await self.db.execute(*self._update_action_sql(action))
            await self.db.commit()
        except aiosqlite.Error:
            await self.db.rollback()
            raise
        return self._row_to_log(row)

    async def get_log(self, log_id: int) -> MaintenanceLog | None:
        """Get a maintenance log by ID."""
        async with self.db.execute(
            "SELECT * FROM maintenance_logs WHERE id = ?", (log_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_log(row)
            return None

    async def get_logs(self) -> List[MaintenanceLog]:
        """Get all maintenance logs, most recent first."""
        async with self.db.execute(
            "SELECT * FROM maintenance_logs ORDER BY completed_at DESC"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def get_logs_by_action(self, action_id: int) -> List[MaintenanceLog]:
        """Get logs for an action, most recent first."""
        async with self.db.execute(
            "SELECT * FROM maintenance_logs WHERE action_id = ? ORDER BY completed_at DESC",
            (action_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def get_logs_by_component(self, component_id: int) -> List[MaintenanceLog]:
        """Get logs for a component, most recent first."""
        async with self.db.execute(
            "SELECT * FROM maintenance_logs WHERE component_id = ? ORDER BY completed_at DESC",
            (component_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def get_logs_between(
        self, start: datetime, end: datetime
    ) -> List[MaintenanceLog]:
        """Get logs completed within [start, end], most recent first."""
        async with self.db.execute(
            """
            SELECT * FROM maintenance_logs
            WHERE completed_at >= ? AND completed_at <= ?
            ORDER BY completed_at DESC
            """,
            (to_db_time(start), to_db_time(end)),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def update_log_notes(self, log_id: int, notes: str | None) -> None:
        """Edit the notes on a log (the only mutable field)."""
        await self.db.execute(
            "UPDATE maintenance_logs SET notes = ? WHERE id = ?", (notes, log_id)
        )
        await self.db.commit()

    async def delete_logs_by_action(self, action_id: int) -> None:
        """Delete all logs for an action."""
        await self.db.execute(
            "DELETE FROM maintenance_logs WHERE action_id = ?", (action_id,)
        )
        await self.db.commit()

    async def delete_logs_by_component(self, component_id: int) -> None:
        """Delete all logs for a component."""
        await self.db.execute(
            "DELETE FROM maintenance_logs WHERE component_id = ?", (component_id,)
        )
        await self.db.commit()

    # Notification config operations

    async def create_notification_config(
        self, config: NotificationConfig
    ) -> NotificationConfig:
        """Create a notification config."""
        async with self.db.execute(
            """
            INSERT INTO notification_configs (
                action_id, enabled, time, escalation_strategy, escalation_intervals
            ) VALUES (?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                config.action_id,
                1 if config.enabled else 0,
                config.time,
                config.escalation_strategy,
                json.dumps(config.escalation_intervals),
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return self._row_to_config(row)

    async def get_notification_config_for_action(
        self, action_id: int
    ) -> NotificationConfig | None:
        """Get the notification config for an action."""
        async with self.db.execute(
            "SELECT * FROM notification_configs WHERE action_id = ?", (action_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_config(row)
            return None

    async def get_notification_configs(self) -> List[NotificationConfig]:
        """Get all notification configs."""
        async with self.db.execute(
            "SELECT * FROM notification_configs ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_config(row) for row in rows]

    async def update_notification_config(self, config: NotificationConfig) -> None:
        """Update a notification config."""
        await self.db.execute(
            """
            UPDATE notification_configs SET
                enabled = ?,
                time = ?,
                escalation_strategy = ?,
                escalation_intervals = ?
            WHERE id = ?
            """,
            (
                1 if config.enabled else 0,
                config.time,
                config.escalation_strategy,
                json.dumps(config.escalation_intervals),
                config.id,
            ),
        )
        await self.db.commit()

    async def delete_notification_config_for_action(self, action_id: int) -> None:
        """Delete the notification config for an action."""
        await self.db.execute(
            "DELETE FROM notification_configs WHERE action_id = ?", (action_id,)
        )
        await self.db.commit()

    # Helper methods

    def _update_action_sql(self, action: MaintenanceAction) -> tuple[str, tuple]:
        return (
            """
            UPDATE maintenance_actions SET
                component_id = ?,
                action_type = ?,
                description = ?,
                schedule_frequency = ?,
                schedule_unit = ?,
                notification_time = ?,
                reminder_strategy = ?,
                last_completed = ?,
                next_due = ?,
                instructions = ?,
                usage_baseline = ?
            WHERE id = ?
            """,
            (
                action.component_id,
                action.action_type,
                action.description,
                action.schedule_frequency,
                action.schedule_unit,
                action.notification_time,
                action.reminder_strategy,
                to_db_time(action.last_completed),
                to_db_time(action.next_due),
                action.instructions,
                action.usage_baseline,
                action.id,
            ),
        )

    def _insert_log_sql(self, log: MaintenanceLog) -> tuple[str, tuple]:
        return (
            """
            INSERT INTO maintenance_logs (
                component_id, action_id, completed_at, was_overdue, notes, logged_by
            ) VALUES (?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                log.component_id,
                log.action_id,
                to_db_time(log.completed_at),
                1 if log.was_overdue else 0,
                log.notes,
                log.logged_by,
            ),
        )

    def _row_to_component(self, row: aiosqlite.Row) -> Component:
        """Convert a database row to a Component object."""
        return Component(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            tracking_mode=row["tracking_mode"],
            usage_count=row["usage_count"],
            is_active=bool(row["is_active"]),
            created_at=from_db_time(row["created_at"]),
            notes=row["notes"],
        )

    def _row_to_action(self, row: aiosqlite.Row) -> MaintenanceAction:
        """Convert a database row to a MaintenanceAction object."""
        return MaintenanceAction(
            id=row["id"],
            component_id=row["component_id"],
            action_type=row["action_type"],
            description=row["description"],
            schedule_frequency=row["schedule_frequency"],
            schedule_unit=row["schedule_unit"],
            notification_time=row["notification_time"],
            reminder_strategy=row["reminder_strategy"],
            last_completed=from_db_time(row["last_completed"]),
            next_due=from_db_time(row["next_due"]),
            instructions=row["instructions"],
            usage_baseline=row["usage_baseline"],
        )

    def _row_to_log(self, row: aiosqlite.Row) -> MaintenanceLog:
        """Convert a database row to a MaintenanceLog object."""
        return MaintenanceLog(
            id=row["id"],
            component_id=row["component_id"],
            action_id=row["action_id"],
            completed_at=from_db_time(row["completed_at"]),  # type: ignore
            was_overdue=bool(row["was_overdue"]),
            notes=row["notes"],
            logged_by=row["logged_by"],
        )

    def _row_to_config(self, row: aiosqlite.Row) -> NotificationConfig:
        """Convert a database row to a NotificationConfig object."""
        return NotificationConfig(
            id=row["id"],
            action_id=row["action_id"],
            enabled=bool(row["enabled"]),
            time=row["time"],
            escalation_strategy=row["escalation_strategy"],
            escalation_intervals=json.loads(row["escalation_intervals"]),
        )
