"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from maskminder.utils.constants import DEFAULT_SNOOZE_HOURS


def reminder_keyboard(action_id: int) -> InlineKeyboardMarkup:
    """Keyboard for reminder messages: Done, Skip, Snooze options."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✓ Done", callback_data=f"done:{action_id}"),
                InlineKeyboardButton("⏭ Skip", callback_data=f"skip:{action_id}"),
            ],
            [
                InlineKeyboardButton(
                    f"Snooze {DEFAULT_SNOOZE_HOURS}h",
                    callback_data=f"snooze:{action_id}:{DEFAULT_SNOOZE_HOURS}",
                ),
                InlineKeyboardButton("Snooze 1d", callback_data=f"snooze:{action_id}:24"),
            ],
        ]
    )
