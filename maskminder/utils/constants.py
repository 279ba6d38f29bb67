"""Constants and default values."""

from dataclasses import dataclass


@dataclass
class EscalationDefaults:
    """Escalation settings derived from an action's reminder strategy."""

    strategy: str
    intervals: list[int]  # hours past due


COMPONENT_CATEGORIES = (
    "mask_cushion",
    "mask_frame",
    "tubing",
    "water_chamber",
    "filter",
    "other",
)

TRACKING_MODES = ("calendar", "usage", "hybrid")

SCHEDULE_UNITS = ("days", "uses")

REMINDER_STRATEGIES = ("gentle", "standard", "urgent")

ESCALATION_STRATEGIES = ("single_daily", "multiple_daily", "increasing_urgency")

# Default escalation per reminder strategy (used when an action has no config)
DEFAULT_ESCALATION = {
    "gentle": EscalationDefaults("single_daily", [0]),  # Once at due time
    "standard": EscalationDefaults("multiple_daily", [0, 4, 8]),  # Due, +4h, +8h
    "urgent": EscalationDefaults("increasing_urgency", [0, 2, 4, 8, 12]),
}

# increasing_urgency fires on a fixed schedule, indexed by reminders already sent today
INCREASING_URGENCY_THRESHOLDS = (0, 4, 8, 24)

# Lifecycle defaults
DEFAULT_SNOOZE_HOURS = 4
DEFAULT_CHECK_INTERVAL_MINUTES = 15
DEFAULT_UPCOMING_DAYS = 7

# Analytics windows
STREAK_LOOKBACK_DAYS = 365
COMPLIANCE_WINDOW_DAYS = 30
STREAK_MILESTONES = (7, 30, 90)

# Limits
MAX_NAME_LENGTH = 100
MAX_ACTION_TYPE_LENGTH = 100
MAX_NOTES_LENGTH = 1000

# Default timezone
DEFAULT_TIMEZONE = "UTC"
