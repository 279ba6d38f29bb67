"""Command handlers."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from maskminder.bot.formatters import (
    format_action,
    format_action_list,
    format_component_list,
    format_due_list,
    format_history,
    format_help_message,
    format_summary,
    format_welcome_message,
)
from maskminder.bot.keyboards import reminder_keyboard
from maskminder.bot.stats import format_stats_message, get_stats
from maskminder.config import Config
from maskminder.db.repository import Repository
from maskminder.engine.due_dates import due_status_text, is_upcoming
from maskminder.engine.due_items import get_due_items
from maskminder.engine.escalation import ReminderCounter
from maskminder.engine.heartbeat import ReminderScheduler
from maskminder.engine.inventory import Inventory
from maskminder.engine.schedule import ScheduleEngine
from maskminder.errors import NotFoundError, ValidationError
from maskminder.utils.constants import (
    COMPONENT_CATEGORIES,
    DEFAULT_UPCOMING_DAYS,
    ESCALATION_STRATEGIES,
)
from maskminder.utils.time_utils import format_hours, parse_local_datetime

logger = logging.getLogger(__name__)


def _begin(context: ContextTypes.DEFAULT_TYPE, operation: str) -> None:
    """Remember which operation is running so the error handler can name it."""
    if context.chat_data is not None:
        context.chat_data["operation"] = operation


def _parse_id(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.message:
        return

    await update.message.reply_html(format_welcome_message())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def due_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /due command - ranked list of what needs attention."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    engine: ScheduleEngine = context.bot_data["engine"]
    now = engine.clock.now()

    items = await get_due_items(repo, now)
    await update.message.reply_html(format_due_list(items, now))

    counter: ReminderCounter = context.bot_data["counter"]

    # One message per item so the buttons route to the right action
    for item in items[:5]:
        text = format_action(item.action, item.component, now)
        last_fired = counter.last_fired(item.action.id)  # type: ignore
        if last_fired is not None:
            text += f"\n🔔 Last reminder at {last_fired.astimezone(now.tzinfo).strftime('%I:%M %p')}"
        await update.message.reply_html(
            text,
            reply_markup=reminder_keyboard(item.action.id),  # type: ignore
        )


async def upcoming_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /upcoming command - dashboard of next 7 days."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    engine: ScheduleEngine = context.bot_data["engine"]
    now = engine.clock.now()

    components = {c.id: c for c in await repo.get_components(active_only=True)}
    actions = [
        a for a in await repo.get_actions()
        if a.component_id in components and is_upcoming(a.next_due, now, DEFAULT_UPCOMING_DAYS)
    ]
    actions.sort(key=lambda a: a.next_due)  # type: ignore

    summary = await engine.summary()

    if not actions:
        await update.message.reply_html(
            f"{format_summary(summary, now)}\n\nNothing due in the next {DEFAULT_UPCOMING_DAYS} days."
        )
        return

    message = format_action_list(actions, components, now, f"Next {DEFAULT_UPCOMING_DAYS} Days")  # type: ignore
    await update.message.reply_html(f"{format_summary(summary, now)}\n\n{message}")


async def components_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /components [category] command."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]

    if context.args:
        category = context.args[0].lower()
        if category not in COMPONENT_CATEGORIES:
            await update.message.reply_text(
                f"Unknown category. Choose from: {', '.join(COMPONENT_CATEGORIES)}"
            )
            return
        components = await repo.get_components_by_category(category)
    else:
        components = await repo.get_components()

    await update.message.reply_html(format_component_list(components))


async def addcomponent_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addcomponent <category> <name> command."""
    if not update.message:
        return

    if not context.args or len(context.args) < 2:
        await update.message.reply_html(
            "Usage: /addcomponent &lt;category&gt; &lt;name&gt;\n\n"
            f"Categories: {', '.join(COMPONENT_CATEGORIES)}\n\n"
            "Example: <code>/addcomponent filter Disposable Filter</code>"
        )
        return

    inventory: Inventory = context.bot_data["inventory"]
    category = context.args[0].lower()
    name = " ".join(context.args[1:])
    tracking_mode = "usage" if category == "filter" else "calendar"

    _begin(context, "add component")
    try:
        component = await inventory.add_component(name, category, tracking_mode)
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await update.message.reply_html(
        f"✓ Added <b>{escape(component.name)}</b> (ID: {component.id})\n\n"
        f"Now give it a task with /addaction {component.id} ..."
    )


async def addaction_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addaction <component_id> <frequency> <unit> <strategy> <label> command."""
    if not update.message:
        return

    if not context.args or len(context.args) < 5:
        await update.message.reply_html(
            "Usage: /addaction &lt;component_id&gt; &lt;frequency&gt; &lt;days|uses&gt; "
            "&lt;gentle|standard|urgent&gt; &lt;label&gt;\n\n"
            "Examples:\n"
            "  <code>/addaction 1 1 days standard Daily Rinse</code>\n"
            "  <code>/addaction 2 30 uses gentle Replace Filter</code>"
        )
        return

    component_id = _parse_id(context.args[0])
    frequency = _parse_id(context.args[1])
    if component_id is None or frequency is None:
        await update.message.reply_text("Component ID and frequency must be numbers.")
        return

    inventory: Inventory = context.bot_data["inventory"]
    unit = context.args[2].lower()
    strategy = context.args[3].lower()
    label = " ".join(context.args[4:])

    _begin(context, "add task")
    try:
        action = await inventory.add_action(component_id, label, frequency, unit, strategy)
    except NotFoundError:
        await update.message.reply_text("Component not found.")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    now = inventory.clock.now()
    await update.message.reply_html(
        f"✓ Added <b>{escape(action.action_type)}</b> (ID: {action.id})\n"
        f"{due_status_text(action.next_due, now)}"
    )


async def usage_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /usage <component_id> [nights] command."""
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text("Usage: /usage <component_id> [nights]")
        return

    component_id = _parse_id(context.args[0])
    nights = _parse_id(context.args[1]) if len(context.args) > 1 else 1
    if component_id is None or nights is None:
        await update.message.reply_text("Invalid component ID or nights. Must be numbers.")
        return

    engine: ScheduleEngine = context.bot_data["engine"]

    _begin(context, "log usage")
    try:
        became_due = await engine.update_usage(component_id, nights)
    except NotFoundError:
        await update.message.reply_text("Component not found.")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    message = f"✓ Logged {nights} night{'s' if nights != 1 else ''} of use."
    for action in became_due:
        message += f"\n🔔 <b>{escape(action.action_type)}</b> is now due."
    await update.message.reply_html(message)


async def done_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <id> [notes] command."""
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text("Usage: /done <task_id> [notes]")
        return

    action_id = _parse_id(context.args[0])
    if action_id is None:
        await update.message.reply_text("Invalid task ID. Must be a number.")
        return

    notes = " ".join(context.args[1:]) or None
    engine: ScheduleEngine = context.bot_data["engine"]

    _begin(context, "complete task")
    try:
        result = await engine.complete(action_id, notes=notes)
    except NotFoundError:
        await update.message.reply_text("Task not found.")
        return

    context.bot_data["counter"].forget(action_id)

    now = engine.clock.now()
    await update.message.reply_html(
        f"✓ Done{' (late, but it counts!)' if result.was_overdue else ''}\n\n"
        f"Next: {due_status_text(result.next_due, now)}"
    )


async def skip_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /skip <id> command."""
    if not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /skip <task_id>")
        return

    action_id = _parse_id(context.args[0])
    if action_id is None:
        await update.message.reply_text("Invalid task ID. Must be a number.")
        return

    engine: ScheduleEngine = context.bot_data["engine"]

    _begin(context, "skip task")
    try:
        next_due = await engine.skip(action_id)
    except NotFoundError:
        await update.message.reply_text("Task not found.")
        return

    context.bot_data["counter"].forget(action_id)

    await update.message.reply_html(
        f"⏭ Skipped. Next: {due_status_text(next_due, engine.clock.now())}"
    )


async def snooze_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /snooze <id> [hours] command."""
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text(
            "Usage: /snooze <task_id> [hours]\n\n"
            "Examples:\n"
            f"  /snooze 5 2   (snooze for 2 hours)\n"
            f"  /snooze 5     (snooze for {Config.DEFAULT_SNOOZE_HOURS} hours by default)"
        )
        return

    action_id = _parse_id(context.args[0])
    hours = _parse_id(context.args[1]) if len(context.args) > 1 else Config.DEFAULT_SNOOZE_HOURS
    if action_id is None or hours is None:
        await update.message.reply_text("Invalid task ID or hours. Must be numbers.")
        return

    engine: ScheduleEngine = context.bot_data["engine"]

    _begin(context, "snooze task")
    try:
        await engine.snooze(action_id, hours)
    except NotFoundError:
        await update.message.reply_text("Task not found.")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await update.message.reply_html(f"⏸ Snoozed. I'll remind you in {format_hours(hours)}.")


async def reschedule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reschedule <id> <YYYY-MM-DD> [HH:MM] command."""
    if not update.message:
        return

    if not context.args or len(context.args) < 2:
        await update.message.reply_text("Usage: /reschedule <task_id> <YYYY-MM-DD> [HH:MM]")
        return

    action_id = _parse_id(context.args[0])
    if action_id is None:
        await update.message.reply_text("Invalid task ID. Must be a number.")
        return

    try:
        new_due = parse_local_datetime(
            context.args[1], context.args[2] if len(context.args) > 2 else None, Config.TIMEZONE
        )
    except (ValueError, ValidationError):
        await update.message.reply_text("Invalid date. Use YYYY-MM-DD and optionally HH:MM.")
        return

    engine: ScheduleEngine = context.bot_data["engine"]

    _begin(context, "reschedule task")
    try:
        action = await engine.reschedule(action_id, new_due)
    except NotFoundError:
        await update.message.reply_text("Task not found.")
        return

    await update.message.reply_html(
        f"📅 <b>{escape(action.action_type)}</b> moved to {new_due.strftime('%b %d, %Y at %I:%M %p')}"
    )


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats command."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    engine: ScheduleEngine = context.bot_data["engine"]

    stats = await get_stats(
        repo,
        engine.clock.now(),
        window_days=Config.COMPLIANCE_WINDOW_DAYS,
        lookback_days=Config.STREAK_LOOKBACK_DAYS,
    )
    await update.message.reply_html(format_stats_message(stats))


async def check_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /check command - the user is back, look for reminders now."""
    if not update.message:
        return

    scheduler: ReminderScheduler = context.bot_data["scheduler"]
    sent = await scheduler.on_resume()

    if sent == 0:
        await update.message.reply_text("No new reminders.")


async def escalation_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /escalation <id> <strategy> [hours...] command."""
    if not update.message:
        return

    if not context.args or len(context.args) < 2:
        await update.message.reply_html(
            "Usage: /escalation &lt;task_id&gt; &lt;strategy&gt; [hours...]\n\n"
            f"Strategies: {', '.join(ESCALATION_STRATEGIES)}\n\n"
            "Example: <code>/escalation 3 multiple_daily 0 4 8</code>\n"
            "(remind when due, then at 4 and 8 hours past due)"
        )
        return

    action_id = _parse_id(context.args[0])
    intervals = [_parse_id(h) for h in context.args[2:]]
    if action_id is None or None in intervals:
        await update.message.reply_text("Task ID and hours must be numbers.")
        return

    inventory: Inventory = context.bot_data["inventory"]
    strategy = context.args[1].lower()

    _begin(context, "escalation settings")
    try:
        config = await inventory.configure_notifications(
            action_id,
            escalation_strategy=strategy,
            escalation_intervals=intervals or None,  # type: ignore
        )
    except NotFoundError:
        await update.message.reply_text("Task not found.")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    context.bot_data["counter"].forget(action_id)
    checkpoints = ", ".join(f"{h}h" for h in config.escalation_intervals)
    await update.message.reply_html(
        f"✓ Escalation set to <b>{config.escalation_strategy}</b>"
        + (f" ({checkpoints})" if config.escalation_strategy == "multiple_daily" else "")
    )


async def _set_active(
    update: Update, context: ContextTypes.DEFAULT_TYPE, active: bool
) -> None:
    if not update.message:
        return

    command = "resume" if active else "pause"
    if not context.args or len(context.args) != 1:
        await update.message.reply_text(f"Usage: /{command} <component_id>")
        return

    component_id = _parse_id(context.args[0])
    if component_id is None:
        await update.message.reply_text("Invalid component ID. Must be a number.")
        return

    inventory: Inventory = context.bot_data["inventory"]

    _begin(context, f"{command} component")
    try:
        component = await inventory.set_component_active(component_id, active)
    except NotFoundError:
        await update.message.reply_text("Component not found.")
        return

    if active:
        await update.message.reply_html(f"▶️ Tracking <b>{escape(component.name)}</b> again.")
    else:
        await update.message.reply_html(
            f"⏸ Paused <b>{escape(component.name)}</b>. No reminders until /resume {component.id}."
        )


async def pause_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pause <component_id> command."""
    await _set_active(update, context, False)


async def resume_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resume <component_id> command."""
    await _set_active(update, context, True)


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <component|task> <id> command."""
    if not update.message:
        return

    if not context.args or len(context.args) != 2 or context.args[0] not in ("component", "task"):
        await update.message.reply_text(
            "Usage: /delete component <id>\n"
            "       /delete task <id>\n\n"
            "Deleting a component also deletes its tasks and history."
        )
        return

    kind = context.args[0]
    record_id = _parse_id(context.args[1])
    if record_id is None:
        await update.message.reply_text("Invalid ID. Must be a number.")
        return

    inventory: Inventory = context.bot_data["inventory"]

    _begin(context, f"delete {kind}")
    try:
        if kind == "component":
            await inventory.delete_component(record_id)
        else:
            await inventory.delete_action(record_id)
    except NotFoundError:
        await update.message.reply_text(f"{kind.capitalize()} not found.")
        return

    logger.info(f"Deleted {kind} {record_id}")
    await update.message.reply_text(f"🗑 Deleted {kind} {record_id}.")


async def history_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /history <id> command - recent completions for a task."""
    if not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /history <task_id>")
        return

    action_id = _parse_id(context.args[0])
    if action_id is None:
        await update.message.reply_text("Invalid task ID. Must be a number.")
        return

    repo: Repository = context.bot_data["repo"]
    engine: ScheduleEngine = context.bot_data["engine"]

    action = await repo.get_action(action_id)
    if not action:
        await update.message.reply_text("Task not found.")
        return

    logs = await repo.get_logs_by_action(action_id)
    await update.message.reply_html(format_history(action, logs[:10], engine.clock.now()))


async def note_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /note <log_id> <text> command."""
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text(
            "Usage: /note <log_id> <text>\n\n"
            "Find log IDs with /history. Leave the text out to clear the note."
        )
        return

    log_id = _parse_id(context.args[0])
    if log_id is None:
        await update.message.reply_text("Invalid log ID. Must be a number.")
        return

    inventory: Inventory = context.bot_data["inventory"]

    _begin(context, "note")
    try:
        log = await inventory.edit_log_notes(log_id, " ".join(context.args[1:]) or None)
    except NotFoundError:
        await update.message.reply_text("Log not found.")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await update.message.reply_text("📝 Note saved." if log.notes else "📝 Note cleared.")
