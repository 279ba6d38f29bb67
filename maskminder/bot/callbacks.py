"""Callback query handlers for inline buttons."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from maskminder.engine.due_dates import due_status_text
from maskminder.engine.escalation import ReminderCounter
from maskminder.engine.schedule import ScheduleEngine
from maskminder.errors import NotFoundError, ValidationError
from maskminder.utils.time_utils import format_hours

logger = logging.getLogger(__name__)


async def handle_done_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, action_id: int
) -> None:
    """Handle 'Done' button press."""
    if not update.callback_query:
        return

    engine: ScheduleEngine = context.bot_data["engine"]
    counter: ReminderCounter = context.bot_data["counter"]

    try:
        action = await engine.repo.get_action(action_id)
        result = await engine.complete(action_id)
    except NotFoundError:
        await update.callback_query.answer("Task not found.")
        return

    counter.forget(action_id)
    next_text = due_status_text(result.next_due, engine.clock.now())

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            f"✓ <b>Completed:</b> <s>{escape(action.action_type)}</s>\n\n"  # type: ignore
            f"🔁 Next: {next_text}",
            parse_mode="HTML",
        )

    await update.callback_query.answer(f"✓ Done! Next: {next_text}")


async def handle_skip_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, action_id: int
) -> None:
    """Handle 'Skip' button press."""
    if not update.callback_query:
        return

    engine: ScheduleEngine = context.bot_data["engine"]
    counter: ReminderCounter = context.bot_data["counter"]

    try:
        action = await engine.repo.get_action(action_id)
        next_due = await engine.skip(action_id)
    except NotFoundError:
        await update.callback_query.answer("Task not found.")
        return

    counter.forget(action_id)
    next_text = due_status_text(next_due, engine.clock.now())

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            f"⏭ <b>Skipped:</b> {escape(action.action_type)}\n\n"  # type: ignore
            f"Next: {next_text}",
            parse_mode="HTML",
        )

    await update.callback_query.answer("⏭ Skipped")


async def handle_snooze_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, action_id: int, hours: int
) -> None:
    """Handle 'Snooze' button press."""
    if not update.callback_query:
        return

    engine: ScheduleEngine = context.bot_data["engine"]

    try:
        action = await engine.repo.get_action(action_id)
        await engine.snooze(action_id, hours)
    except NotFoundError:
        await update.callback_query.answer("Task not found.")
        return
    except ValidationError as e:
        await update.callback_query.answer(str(e))
        return

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            f"⏸ <b>Snoozed:</b> {escape(action.action_type)}\n\n"  # type: ignore
            f"Will remind you again in {format_hours(hours)}.",
            parse_mode="HTML",
        )

    await update.callback_query.answer(f"⏸ Snoozed for {format_hours(hours)}")


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    # Parse callback data
    parts = data.split(":")

    try:
        action_id = int(parts[1])
    except (IndexError, ValueError):
        logger.warning(f"Malformed callback data: {data}")
        await query.answer("Unknown action")
        return

    if context.chat_data is not None:
        context.chat_data["operation"] = f"{parts[0]} task"

    if parts[0] == "done":
        await handle_done_callback(update, context, action_id)

    elif parts[0] == "skip":
        await handle_skip_callback(update, context, action_id)

    elif parts[0] == "snooze" and len(parts) == 3 and parts[2].isdigit():
        await handle_snooze_callback(update, context, action_id, int(parts[2]))

    else:
        await query.answer("Unknown action")
