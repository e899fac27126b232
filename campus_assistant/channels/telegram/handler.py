# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Telegram Channel Handler.

Parses Telegram updates into InboundEvent objects and implements the
ReplyChannel interface on top of a telegram.Bot.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from telegram.error import BadRequest, TelegramError

from campus_assistant.channels.base import FileRef, InboundEvent, Menu, ReplyChannel
from campus_assistant.channels.telegram.keyboard import TelegramKeyboardBuilder

if TYPE_CHECKING:
    from telegram import Bot, Update

logger = logging.getLogger(__name__)


def parse_update(update: "Update") -> Optional[InboundEvent]:
    """Parse a Telegram Update into an InboundEvent.

    Args:
        update: Update object from Telegram Bot API

    Returns:
        InboundEvent, or None for updates the assistant does not handle
    """
    # Handle callback query (inline keyboard button press)
    if update.callback_query:
        query = update.callback_query
        user = query.from_user
        if not user:
            return None
        message = query.message
        return InboundEvent(
            user_id=user.id,
            chat_id=message.chat_id if message else user.id,
            username=user.username,
            language_code=user.language_code,
            message_id=message.message_id if message else None,
            callback_data=query.data or "",
        )

    message = update.message
    if not message or not message.from_user:
        return None

    user = message.from_user
    file_ref: Optional[FileRef] = None

    if message.document:
        document = message.document
        file_ref = FileRef(
            file_id=document.file_id,
            filename=document.file_name or "document",
            mime_type=document.mime_type,
            file_size=document.file_size,
        )
    elif message.photo:
        # Photo sizes are ordered smallest first
        photo = message.photo[-1]
        file_ref = FileRef(
            file_id=photo.file_id,
            filename=f"photo_{photo.file_unique_id}.jpg",
            mime_type="image/jpeg",
            file_size=photo.file_size,
            is_photo=True,
        )

    if file_ref is None and message.text is None:
        return None

    return InboundEvent(
        user_id=user.id,
        chat_id=message.chat_id,
        text=(message.caption or "") if file_ref else message.text,
        username=user.username,
        language_code=user.language_code,
        message_id=message.message_id,
        file=file_ref,
    )


class TelegramReplyChannel(ReplyChannel):
    """ReplyChannel backed by the Telegram Bot API."""

    def __init__(self, bot: Optional["Bot"] = None):
        self._bot = bot

    def set_bot(self, bot: "Bot") -> None:
        """Set the Telegram bot (can be set after initialization)."""
        self._bot = bot

    async def send_text(
        self,
        chat_id: int,
        text: str,
        menu: Optional[Menu] = None,
        parse_mode: Optional[str] = None,
    ) -> bool:
        if not self._bot:
            logger.error("[TelegramHandler] No bot instance available for reply")
            return False

        try:
            await self._bot.send_message(
                chat_id=chat_id,
                text=text,
                reply_markup=TelegramKeyboardBuilder.build(menu),
                parse_mode=parse_mode,
            )
            return True
        except TelegramError as e:
            logger.error("[TelegramHandler] Failed to send reply to %s: %s", chat_id, e)
            return False

    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        menu: Optional[Menu] = None,
    ) -> bool:
        if not self._bot:
            logger.error("[TelegramHandler] No bot instance available for edit")
            return False

        try:
            await self._bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=TelegramKeyboardBuilder.build(menu),
            )
            return True
        except BadRequest as e:
            # Pressing the same button twice leaves the message unchanged
            if "message is not modified" in str(e).lower():
                return True
            logger.warning("[TelegramHandler] Failed to edit message %s: %s", message_id, e)
            return False
        except TelegramError as e:
            logger.warning("[TelegramHandler] Failed to edit message %s: %s", message_id, e)
            return False

    async def send_document(self, chat_id: int, path: Path, filename: str) -> bool:
        if not self._bot:
            logger.error("[TelegramHandler] No bot instance available for document")
            return False

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error("[TelegramHandler] Failed to read %s: %s", path, e)
            return False

        try:
            await self._bot.send_document(
                chat_id=chat_id, document=content, filename=filename
            )
            return True
        except TelegramError as e:
            logger.error("[TelegramHandler] Failed to send document %s: %s", filename, e)
            return False

    async def send_photo(
        self, chat_id: int, image: bytes, caption: Optional[str] = None
    ) -> bool:
        if not self._bot:
            logger.error("[TelegramHandler] No bot instance available for photo")
            return False

        try:
            await self._bot.send_photo(chat_id=chat_id, photo=image, caption=caption)
            return True
        except TelegramError as e:
            logger.error("[TelegramHandler] Failed to send photo to %s: %s", chat_id, e)
            return False

    async def send_chat_action(self, chat_id: int, action: str) -> None:
        if not self._bot:
            return
        try:
            await self._bot.send_chat_action(chat_id=chat_id, action=action)
        except TelegramError:
            logger.debug("[TelegramHandler] Failed to send chat action", exc_info=True)

    async def get_file_url(self, file_id: str) -> Optional[str]:
        if not self._bot:
            logger.error("[TelegramHandler] No bot instance available for file lookup")
            return None

        try:
            telegram_file = await self._bot.get_file(file_id)
        except TelegramError as e:
            logger.error("[TelegramHandler] Failed to resolve file %s: %s", file_id, e)
            return None
        return telegram_file.file_path
