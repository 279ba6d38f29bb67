"""Telegram delivery for reminder notifications."""

import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from maskminder.bot.formatters import format_notification
from maskminder.bot.keyboards import reminder_keyboard
from maskminder.engine.notifications import NotificationRequest

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends reminders to a single chat.

    The action id rides along in the inline buttons, so tapping one routes
    straight back to that action. The "badge" is the bot's short description,
    which shows the current due count.
    """

    def __init__(self, bot: Bot, chat_id: int, enabled: bool = True):
        self.bot = bot
        self.chat_id = chat_id
        self._enabled = enabled
        self._badge: int | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def notify(self, request: NotificationRequest) -> bool:
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=format_notification(request),
                parse_mode=ParseMode.HTML,
                reply_markup=reminder_keyboard(request.action_id),
                # Only overdue reminders buzz
                disable_notification=not request.requires_interaction,
            )
        except TelegramError as e:
            logger.error(f"Failed to send reminder for action {request.action_id}: {e}")
            return False
        return True

    async def set_badge(self, count: int) -> None:
        if count == self._badge:
            return

        description = f"{count} maintenance task{'s' if count != 1 else ''} due" if count else ""
        try:
            await self.bot.set_my_short_description(short_description=description)
        except TelegramError as e:
            logger.warning(f"Failed to update due count badge: {e}")
            return
        self._badge = count
