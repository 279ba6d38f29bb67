"""Main entry point for MaskMinder bot."""

import logging
import sys

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from maskminder.bot.callbacks import callback_router
from maskminder.bot.handlers import (
    addaction_command,
    addcomponent_command,
    check_command,
    components_command,
    delete_command,
    done_command,
    due_command,
    escalation_command,
    help_command,
    history_command,
    note_command,
    pause_command,
    reschedule_command,
    resume_command,
    skip_command,
    snooze_command,
    start_command,
    stats_command,
    upcoming_command,
    usage_command,
)
from maskminder.bot.notifier import TelegramNotifier
from maskminder.config import Config
from maskminder.db.migrations import run_migrations
from maskminder.db.repository import Repository
from maskminder.engine.clock import SystemClock
from maskminder.engine.escalation import ReminderCounter
from maskminder.engine.heartbeat import ReminderScheduler
from maskminder.engine.inventory import Inventory
from maskminder.engine.schedule import ScheduleEngine
from maskminder.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    stream=sys.stdout,
)
# httpx logs every long-poll request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    # Create repository and store in bot_data
    repo = Repository(Config.DATABASE_PATH)
    await repo.connect()
    application.bot_data["repo"] = repo

    clock = SystemClock(Config.TIMEZONE)
    engine = ScheduleEngine(repo, clock)
    counter = ReminderCounter()
    notifier = TelegramNotifier(application.bot, Config.chat_id())

    application.bot_data["engine"] = engine
    application.bot_data["inventory"] = Inventory(repo, clock)
    application.bot_data["counter"] = counter

    # Give any action created without a due date its first one
    initialized = await engine.initialize_all()
    if initialized:
        logger.info(f"Initialized {initialized} unscheduled actions")

    # Start the reminder heartbeat job
    scheduler = ReminderScheduler(
        repo,
        notifier,
        clock,
        job_queue=application.job_queue,
        counter=counter,
        interval_minutes=Config.CHECK_INTERVAL_MINUTES,
    )
    scheduler.start()
    application.bot_data["scheduler"] = scheduler

    logger.info("MaskMinder initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    scheduler: ReminderScheduler | None = application.bot_data.get("scheduler")
    if scheduler:
        scheduler.stop()

    repo: Repository | None = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("MaskMinder shut down")


def main() -> None:
    """Start the bot."""
    # Validate configuration
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Create application
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Register handlers

    # Status
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("due", due_command))
    application.add_handler(CommandHandler("upcoming", upcoming_command))
    application.add_handler(CommandHandler("components", components_command))
    application.add_handler(CommandHandler("stats", stats_command))
    application.add_handler(CommandHandler("check", check_command))

    # Task lifecycle
    application.add_handler(CommandHandler("done", done_command))
    application.add_handler(CommandHandler("skip", skip_command))
    application.add_handler(CommandHandler("snooze", snooze_command))
    application.add_handler(CommandHandler("reschedule", reschedule_command))
    application.add_handler(CommandHandler("usage", usage_command))
    application.add_handler(CommandHandler("history", history_command))
    application.add_handler(CommandHandler("note", note_command))

    # Setup
    application.add_handler(CommandHandler("addcomponent", addcomponent_command))
    application.add_handler(CommandHandler("addaction", addaction_command))
    application.add_handler(CommandHandler("escalation", escalation_command))
    application.add_handler(CommandHandler("pause", pause_command))
    application.add_handler(CommandHandler("resume", resume_command))
    application.add_handler(CommandHandler("delete", delete_command))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)

    # Start the bot
    logger.info("Starting MaskMinder bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
