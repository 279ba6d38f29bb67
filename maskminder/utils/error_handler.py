"""Global error handler for the bot."""

import logging
import traceback

import aiosqlite
from telegram import Update
from telegram.error import NetworkError, TimedOut
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    # Log the error
    logger.error("Exception while handling an update:", exc_info=context.error)

    # Get the traceback
    tb_list = traceback.format_exception(None, context.error, context.error.__traceback__)  # type: ignore
    tb_string = "".join(tb_list)

    # Log full traceback
    logger.error(f"Traceback:\n{tb_string}")

    # Try to notify the user
    if isinstance(update, Update) and update.effective_message:
        operation = "that"
        if context.chat_data is not None:
            operation = context.chat_data.pop("operation", operation)

        try:
            error = context.error

            if isinstance(error, aiosqlite.Error):
                # Nothing was saved; the action keeps its old due date
                error_message = f"💾 Couldn't save {operation}, try again."
            elif isinstance(error, TimedOut):
                error_message = (
                    "⏱️ Request timed out.\n\n"
                    "Please try again in a moment."
                )
            elif isinstance(error, NetworkError):
                error_message = (
                    "🌐 Network error.\n\n"
                    "Please check your connection and try again."
                )
            else:
                error_message = (
                    "😅 Oops! Something went wrong.\n\n"
                    "The error has been logged. Please try again or use /help for assistance."
                )

            await update.effective_message.reply_text(error_message)

        except Exception as e:
            logger.error(f"Failed to send error message to user: {e}")
