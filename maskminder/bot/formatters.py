"""Message text formatters."""

from datetime import datetime
from html import escape

from maskminder.db.models import Component, MaintenanceAction, MaintenanceLog
from maskminder.engine.due_dates import due_status, due_status_text, to_local
from maskminder.engine.due_items import DueItem, MaintenanceSummary
from maskminder.engine.notifications import NotificationRequest
from maskminder.utils.time_utils import format_relative_time

STATUS_EMOJI = {
    "overdue": "💥",
    "due": "🔔",
    "ok": "📅",
}

CATEGORY_LABELS = {
    "mask_cushion": "Mask cushion",
    "mask_frame": "Mask frame",
    "tubing": "Tubing",
    "water_chamber": "Water chamber",
    "filter": "Filter",
    "other": "Other",
}


def format_notification(request: NotificationRequest) -> str:
    """Format a notification request as a message."""
    return f"<b>{escape(request.title)}</b>\n{escape(request.body)}"


def format_schedule(action: MaintenanceAction) -> str:
    unit = action.schedule_unit
    if action.schedule_frequency == 1:
        unit = "day" if unit == "days" else "use"
    return f"every {action.schedule_frequency} {unit}"


def format_action(
    action: MaintenanceAction, component: Component | None, now: datetime
) -> str:
    """Format one action as a line with its status."""
    emoji = STATUS_EMOJI[due_status(action.next_due, now)]
    owner = f" ({escape(component.name)})" if component else ""
    line = f"{emoji} <b>{escape(action.action_type)}</b>{owner} [ID: {action.id}]"
    line += f"\n    {due_status_text(action.next_due, now)} · {format_schedule(action)}"

    if action.next_due:
        line += f"\n    Due {to_local(action.next_due, now).strftime('%b %d at %I:%M %p')}"

    return line


def format_due_list(items: list[DueItem], now: datetime) -> str:
    """Format the ranked due-item list."""
    if not items:
        return "✨ All caught up! Nothing is due right now."

    lines = [f"<b>Needs attention ({len(items)})</b>\n"]
    for item in items:
        lines.append(format_action(item.action, item.component, now))
        if item.is_overdue:
            lines.append(f"    ⏱ {format_relative_time(item.action.next_due, now)}")  # type: ignore
    return "\n".join(lines)


def format_action_list(
    actions: list[MaintenanceAction],
    components: dict[int, Component],
    now: datetime,
    header: str,
) -> str:
    """Format a list of actions under a header."""
    lines = [f"<b>{header} ({len(actions)})</b>\n"]
    for action in actions:
        lines.append(format_action(action, components.get(action.component_id), now))
    return "\n".join(lines)


def format_component_list(components: list[Component]) -> str:
    """Format all components with usage and status."""
    if not components:
        return "No components yet. Add one with /addcomponent."

    lines = [f"<b>Your Equipment ({len(components)})</b>\n"]
    for component in components:
        status = "" if component.is_active else " (inactive)"
        lines.append(
            f"• <b>{escape(component.name)}</b>{status} [ID: {component.id}]\n"
            f"    {CATEGORY_LABELS.get(component.category, component.category)}"
            f" · {component.usage_count} nights of use"
        )
    return "\n".join(lines)


def format_history(
    action: MaintenanceAction, logs: list[MaintenanceLog], now: datetime
) -> str:
    """Format recent completions for an action, newest first."""
    if not logs:
        return f"No completions logged for <b>{escape(action.action_type)}</b> yet."

    lines = [f"<b>History: {escape(action.action_type)}</b>\n"]
    for log in logs:
        when = to_local(log.completed_at, now).strftime("%b %d at %I:%M %p")
        flag = " (late)" if log.was_overdue else ""
        lines.append(f"• {when}{flag} [Log: {log.id}]")
        if log.notes:
            lines.append(f"    📝 {escape(log.notes)}")
    return "\n".join(lines)


def format_summary(summary: MaintenanceSummary, now: datetime) -> str:
    """Format the home-screen summary."""
    if summary.all_caught_up:
        text = "✨ All caught up!"
        if summary.next_upcoming and summary.next_upcoming.next_due:
            text += (
                f"\nNext up: <b>{escape(summary.next_upcoming.action_type)}</b>, "
                f"{due_status_text(summary.next_upcoming.next_due, now).lower()}"
            )
        return text

    return (
        f"💥 Overdue: {summary.overdue_count}\n"
        f"🔔 Due today: {summary.due_today_count}\n"
        f"📅 Upcoming: {summary.upcoming_count}"
    )


def format_welcome_message() -> str:
    """Format the /start welcome message."""
    return (
        "<b>👋 Welcome to MaskMinder!</b>\n\n"
        "I keep track of cleaning and replacement for your CPAP equipment "
        "and remind you when something is due.\n\n"
        "Start by adding a component:\n"
        "<code>/addcomponent water_chamber Water Chamber</code>\n\n"
        "Use /help to see all commands."
    )


def format_help_message() -> str:
    """Format the /help message."""
    return (
        "<b>MaskMinder Commands</b>\n\n"
        "<b>Status</b>\n"
        "/due - What needs attention now\n"
        "/upcoming - Due in the next 7 days\n"
        "/components [category] - Your equipment\n"
        "/stats - Streak and compliance\n"
        "/check - Check for reminders now\n\n"
        "<b>Tasks</b>\n"
        "/done &lt;id&gt; [notes] - Mark a task complete\n"
        "/skip &lt;id&gt; - Skip this occurrence\n"
        "/snooze &lt;id&gt; [hours] - Remind me later\n"
        "/reschedule &lt;id&gt; &lt;YYYY-MM-DD&gt; [HH:MM] - Move a due date\n"
        "/history &lt;id&gt; - Recent completions\n"
        "/note &lt;log_id&gt; &lt;text&gt; - Change the notes on a completion\n\n"
        "<b>Setup</b>\n"
        "/addcomponent &lt;category&gt; &lt;name&gt;\n"
        "/addaction &lt;component_id&gt; &lt;frequency&gt; &lt;days|uses&gt; "
        "&lt;gentle|standard|urgent&gt; &lt;label&gt;\n"
        "/usage &lt;component_id&gt; [nights] - Log nights of use\n"
        "/escalation &lt;id&gt; &lt;strategy&gt; [hours...] - How hard to nag\n"
        "/pause, /resume &lt;component_id&gt; - Stop or restart tracking\n"
        "/delete &lt;component|task&gt; &lt;id&gt; - Remove for good"
    )
