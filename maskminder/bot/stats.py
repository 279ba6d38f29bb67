"""Statistics and analytics."""

from datetime import datetime

from maskminder.db.repository import Repository
from maskminder.engine.compliance import (
    calculate_streak,
    completion_statistics,
    compliance_percentage,
    scheduled_actions_per_day,
)
from maskminder.engine.due_dates import last_n_days_range
from maskminder.engine.due_items import summarize
from maskminder.utils.constants import (
    COMPLIANCE_WINDOW_DAYS,
    STREAK_LOOKBACK_DAYS,
    STREAK_MILESTONES,
)


async def get_stats(
    repo: Repository,
    now: datetime,
    window_days: int = COMPLIANCE_WINDOW_DAYS,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> dict:
    """Get streak, compliance and status statistics.

    Returns:
        Dict with various statistics
    """
    stats = {}

    actions = await repo.get_actions()
    components = await repo.get_components()
    active_ids = {c.id for c in components if c.is_active}
    active_actions = [a for a in actions if a.component_id in active_ids]

    # Streak over the full lookback
    start, end = last_n_days_range(lookback_days, now)
    history = await repo.get_logs_between(start, end)
    scheduled = scheduled_actions_per_day(active_actions, now, lookback_days, components)
    stats['streak'] = calculate_streak(history, scheduled, now, lookback_days)

    # Compliance over the trailing window
    start, end = last_n_days_range(window_days, now)
    window_logs = await repo.get_logs_between(start, end)
    stats['window_days'] = window_days
    stats['compliance'] = compliance_percentage(window_logs, active_actions, now, window_days)

    completion = completion_statistics(window_logs)
    stats['completed'] = completion.total_completed
    stats['on_time'] = completion.on_time_completions
    stats['late'] = completion.overdue_completions
    stats['on_time_rate'] = completion.on_time_rate

    summary = summarize(active_actions, now)
    stats['overdue'] = summary.overdue_count
    stats['due_today'] = summary.due_today_count
    stats['upcoming'] = summary.upcoming_count

    stats['components'] = len(active_ids)
    stats['actions'] = len(active_actions)

    return stats


def format_stats_message(stats: dict) -> str:
    """Format statistics into a readable message."""
    lines = ["<b>📊 Your MaskMinder Statistics</b>\n"]

    # Streak
    streak = stats['streak']
    lines.append("<b>🔥 Streak</b>")
    lines.append(f"{streak} day{'s' if streak != 1 else ''} of complete maintenance")
    if streak in STREAK_MILESTONES:
        lines.append(f"🎉 {streak}-day milestone!")
    lines.append("")

    # Compliance
    lines.append(f"<b>🎯 Last {stats['window_days']} Days</b>")
    lines.append(f"Compliance: {stats['compliance']}%")
    lines.append(f"✓ Completed: {stats['completed']}")
    if stats['completed'] > 0:
        lines.append(f"On time: {stats['on_time']} ({stats['on_time_rate']:.0f}%)")
        lines.append(f"Late: {stats['late']}")
    lines.append("")

    # Current status
    lines.append("<b>📋 Right Now</b>")
    lines.append(f"💥 Overdue: {stats['overdue']}")
    lines.append(f"🔔 Due today: {stats['due_today']}")
    lines.append(f"📅 Upcoming: {stats['upcoming']}")
    lines.append(f"Tracking {stats['actions']} tasks on {stats['components']} components")

    return "\n".join(lines)
