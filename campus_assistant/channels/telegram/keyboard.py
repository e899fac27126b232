# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Telegram Inline Keyboard Builder.

Converts transport-agnostic Menu objects into Telegram inline keyboards.
"""

import logging
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from campus_assistant.channels.base import Menu

logger = logging.getLogger(__name__)

# Telegram rejects callback data longer than 64 bytes
MAX_CALLBACK_DATA_BYTES = 64


class TelegramKeyboardBuilder:
    """Builder for Telegram inline keyboards."""

    # Truncate button labels longer than this
    MAX_BUTTON_TEXT = 60

    @staticmethod
    def build(menu: Optional[Menu]) -> Optional[InlineKeyboardMarkup]:
        """
        Build an inline keyboard from a Menu.

        Args:
            menu: Menu rows; None or an empty menu yields no keyboard

        Returns:
            InlineKeyboardMarkup or None
        """
        if not menu or not menu.rows:
            return None

        keyboard = []
        for row in menu.rows:
            buttons = []
            for button in row:
                if len(button.action.encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
                    logger.warning(
                        "[TelegramKeyboard] Callback data too long, skipping button: %s",
                        button.action,
                    )
                    continue

                text = button.text
                if len(text) > TelegramKeyboardBuilder.MAX_BUTTON_TEXT:
                    text = text[: TelegramKeyboardBuilder.MAX_BUTTON_TEXT - 3] + "..."
                buttons.append(InlineKeyboardButton(text, callback_data=button.action))
            if buttons:
                keyboard.append(buttons)

        return InlineKeyboardMarkup(keyboard) if keyboard else None
