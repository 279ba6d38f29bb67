"""Database migration runner."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS components (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    tracking_mode TEXT NOT NULL DEFAULT 'calendar',
    usage_count INTEGER NOT NULL DEFAULT 0 CHECK (usage_count >= 0),
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_components_category ON components (category);
CREATE INDEX IF NOT EXISTS idx_components_active ON components (is_active);

CREATE TABLE IF NOT EXISTS maintenance_actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id INTEGER NOT NULL,
    action_type TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    schedule_frequency INTEGER NOT NULL CHECK (schedule_frequency > 0),
    schedule_unit TEXT NOT NULL,
    notification_time TEXT,
    reminder_strategy TEXT NOT NULL DEFAULT 'standard',
    last_completed TEXT,
    next_due TEXT,
    instructions TEXT,
    usage_baseline INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_actions_component ON maintenance_actions (component_id);
CREATE INDEX IF NOT EXISTS idx_actions_next_due ON maintenance_actions (next_due);

CREATE TABLE IF NOT EXISTS maintenance_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id INTEGER NOT NULL,
    action_id INTEGER NOT NULL,
    completed_at TEXT NOT NULL,
    was_overdue INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    logged_by TEXT NOT NULL DEFAULT 'user'
);

CREATE INDEX IF NOT EXISTS idx_logs_component ON maintenance_logs (component_id);
CREATE INDEX IF NOT EXISTS idx_logs_action ON maintenance_logs (action_id);
CREATE INDEX IF NOT EXISTS idx_logs_completed_at ON maintenance_logs (completed_at);

CREATE TABLE IF NOT EXISTS notification_configs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action_id INTEGER NOT NULL UNIQUE,
    enabled INTEGER NOT NULL DEFAULT 1,
    time TEXT NOT NULL DEFAULT '09:00',
    escalation_strategy TEXT NOT NULL DEFAULT 'single_daily',
    escalation_intervals TEXT NOT NULL DEFAULT '[0]'
);
"""


async def init_database(db_path: Path) -> None:
    """Initialize the database with the schema."""
    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()

        logger.info(f"Database initialized at {db_path}")


async def run_migrations(db_path: Path) -> None:
    """Run any pending migrations.

    Currently just ensures the database is initialized.
    Future migrations can be added as versioned functions.
    """
    await init_database(db_path)
