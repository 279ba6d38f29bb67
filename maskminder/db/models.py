"""Data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal


ComponentCategory = Literal[
    "mask_cushion", "mask_frame", "tubing", "water_chamber", "filter", "other"
]
TrackingMode = Literal["calendar", "usage", "hybrid"]
ScheduleUnit = Literal["days", "uses"]
ReminderStrategy = Literal["gentle", "standard", "urgent"]
EscalationStrategy = Literal["single_daily", "multiple_daily", "increasing_urgency"]
LogSource = Literal["user", "system"]


@dataclass
class Component:
    """A piece of equipment being maintained."""

    name: str
    category: ComponentCategory
    tracking_mode: TrackingMode
    usage_count: int = 0  # nights of use, only ever increases
    is_active: bool = True
    created_at: datetime | None = None  # UTC
    notes: str | None = None
    id: int | None = None


@dataclass
class MaintenanceAction:
    """A recurring task tied to one component."""

    component_id: int
    action_type: str  # e.g. "Daily Rinse"
    schedule_frequency: int
    schedule_unit: ScheduleUnit
    reminder_strategy: ReminderStrategy = "standard"
    description: str = ""
    notification_time: str | None = None  # HH:MM format
    last_completed: datetime | None = None  # UTC
    next_due: datetime | None = None  # UTC, None until initialized
    instructions: str | None = None
    usage_baseline: int = 0  # component usage_count at last completion/skip
    id: int | None = None


@dataclass
class MaintenanceLog:
    """One completion event. Only notes may change after creation."""

    component_id: int
    action_id: int
    completed_at: datetime  # UTC
    was_overdue: bool
    notes: str | None = None
    logged_by: LogSource = "user"
    id: int | None = None


@dataclass
class NotificationConfig:
    """Reminder policy for an action (at most one per action)."""

    action_id: int
    enabled: bool = True
    time: str = "09:00"  # HH:MM format
    escalation_strategy: EscalationStrategy = "single_daily"
    escalation_intervals: list[int] = field(default_factory=lambda: [0])
    id: int | None = None
