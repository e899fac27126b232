# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Telegram Channel Integration.

Features:
- Long Polling connection mode
- Text, command, document and photo message processing
- Inline keyboard menus with in-place message editing
- Proactive message sending for the staff relay API

Components:
- TelegramChannelProvider: Manages Bot lifecycle
- TelegramReplyChannel: ReplyChannel implementation on top of telegram.Bot
- TelegramKeyboardBuilder: Builds inline keyboards from menus
- TelegramBotSender: Sends messages through the Bot API without polling
"""

from campus_assistant.channels.telegram.handler import TelegramReplyChannel, parse_update
from campus_assistant.channels.telegram.keyboard import TelegramKeyboardBuilder
from campus_assistant.channels.telegram.sender import TelegramBotSender
from campus_assistant.channels.telegram.service import TelegramChannelProvider

__all__ = [
    "TelegramChannelProvider",
    "TelegramReplyChannel",
    "TelegramKeyboardBuilder",
    "TelegramBotSender",
    "parse_update",
]
