# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Telegram bot lifecycle.

TelegramChannelProvider owns the python-telegram-bot Application: it builds
the AssistantHandler around a TelegramReplyChannel, registers the update
handlers, and keeps long polling alive in a background task that reconnects
with exponential backoff.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from telegram import BotCommand, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from campus_assistant.channels.assistant import AssistantHandler
from campus_assistant.channels.base import ReplyChannel
from campus_assistant.channels.telegram.handler import TelegramReplyChannel, parse_update
from campus_assistant.core.config import settings
from campus_assistant.services.i18n import LocaleResources

logger = logging.getLogger(__name__)

# Commands shown in the Telegram client's command menu, with the description
# used when a locale has no "command.<name>" entry
BOT_COMMANDS = [
    ("start", "Open the procedures menu"),
    ("language", "Change language"),
    ("clear", "Clear conversation history"),
    ("flowchart", "Draw a flowchart of a process"),
    ("request", "Send a request to the staff"),
    ("feedback", "Leave feedback"),
    ("help", "Show available commands"),
]

MAX_POLLING_RETRIES = 10
INITIAL_BACKOFF_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 60.0

AssistantFactory = Callable[[ReplyChannel], AssistantHandler]


@dataclass
class ProviderStatus:
    configured: bool
    running: bool = False
    started_at: Optional[float] = None
    last_error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "configured": self.configured,
            "is_running": self.running,
            "uptime_seconds": (
                int(time.time() - self.started_at) if self.started_at else None
            ),
            "last_error": self.last_error,
        }


class TelegramChannelProvider:
    """Runs the Telegram bot in long polling mode inside the app's event loop."""

    def __init__(
        self,
        bot_token: str,
        assistant_factory: AssistantFactory,
        resources: Optional[LocaleResources] = None,
    ):
        """
        Args:
            bot_token: Telegram bot token; an empty token disables the bot
            assistant_factory: Builds the AssistantHandler for the bot's reply channel
            resources: Message catalogs for the localized command menu
        """
        self._bot_token = bot_token
        self._assistant_factory = assistant_factory
        self._resources = resources
        self._channel = TelegramReplyChannel()
        self._application: Optional[Application] = None
        self._assistant: Optional[AssistantHandler] = None
        self._supervisor: Optional[asyncio.Task] = None
        self._status = ProviderStatus(configured=bool(bot_token))

    @property
    def is_running(self) -> bool:
        return self._status.running

    @property
    def assistant(self) -> Optional[AssistantHandler]:
        return self._assistant

    def get_status(self) -> Dict[str, Any]:
        return self._status.as_dict()

    def _mark_running(self, running: bool) -> None:
        self._status.running = running
        self._status.started_at = time.time() if running else None

    def _record_error(self, message: str) -> None:
        self._status.last_error = message
        logger.error("[Telegram] %s", message)

    # ==================== Lifecycle ====================

    async def start(self) -> bool:
        """
        Build the bot and start polling in the background.

        Returns:
            Whether the bot is running afterwards
        """
        if not self._status.configured:
            self._record_error("TELEGRAM_BOT_TOKEN is not set, bot disabled")
            return False
        if self._status.running:
            return True

        logger.info("[Telegram] Starting bot")
        try:
            self._application = self._build_application()
            await self._application.initialize()
        except Exception as e:
            self._record_error(f"Bot initialization failed: {e}")
            self._application = None
            return False

        await self._publish_commands()
        self._mark_running(True)
        self._supervisor = asyncio.create_task(self._supervise_polling())
        logger.info("[Telegram] Bot started")
        return True

    def _build_application(self) -> Application:
        application = Application.builder().token(self._bot_token).build()
        self._channel.set_bot(application.bot)
        self._assistant = self._assistant_factory(self._channel)

        application.add_handler(CallbackQueryHandler(self._on_callback_query))
        application.add_handler(
            MessageHandler(
                filters.TEXT | filters.Document.ALL | filters.PHOTO,
                self._on_message,
            )
        )
        application.add_error_handler(self._on_error)
        return application

    def command_menu(self, language: Optional[str] = None) -> List[BotCommand]:
        """Build the command menu in a language (the built-in English when None)."""
        if language is None or self._resources is None:
            return [BotCommand(name, description) for name, description in BOT_COMMANDS]
        return [
            BotCommand(
                name,
                self._resources.text(
                    f"command.{name}",
                    language,
                    settings.DEFAULT_LANGUAGE,
                    default=description,
                ),
            )
            for name, description in BOT_COMMANDS
        ]

    async def _publish_commands(self) -> None:
        # The unscoped menu is what clients in other languages see
        languages: List[Optional[str]] = [None]
        if self._resources is not None:
            languages.extend(self._resources.languages)

        for language in languages:
            try:
                await self._application.bot.set_my_commands(
                    self.command_menu(language), language_code=language
                )
            except TelegramError as e:
                logger.warning(
                    "[Telegram] Could not publish the %s command menu: %s",
                    language or "default",
                    e,
                )

    async def _supervise_polling(self) -> None:
        """Keep the updater polling; restart it with backoff when it fails."""
        failures = 0
        while self._status.running:
            try:
                if not self._application.running:
                    await self._application.start()
                if not self._application.updater.running:
                    await self._application.updater.start_polling(
                        drop_pending_updates=True,
                        allowed_updates=Update.ALL_TYPES,
                    )
                    logger.info("[Telegram] Polling for updates")
                failures = 0
                while self._status.running and self._application.updater.running:
                    await asyncio.sleep(1)
            except asyncio.CancelledError:
                break
            except Exception as e:
                if not self._status.running:
                    break
                failures += 1
                if failures > MAX_POLLING_RETRIES:
                    self._record_error(f"Polling gave up after {MAX_POLLING_RETRIES} retries: {e}")
                    self._mark_running(False)
                    break
                delay = min(INITIAL_BACKOFF_SECONDS * 2 ** (failures - 1), MAX_BACKOFF_SECONDS)
                logger.warning(
                    "[Telegram] Polling failed (%d/%d), retrying in %.0fs: %s",
                    failures,
                    MAX_POLLING_RETRIES,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)

        logger.info("[Telegram] Polling supervisor finished")

    async def stop(self) -> None:
        """Stop polling and release the bot."""
        if self._application is None:
            return

        logger.info("[Telegram] Stopping bot")
        self._mark_running(False)
        await self._shutdown_application()

        if self._supervisor and not self._supervisor.done():
            self._supervisor.cancel()
            try:
                await asyncio.wait_for(self._supervisor, timeout=3.0)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                pass

        self._supervisor = None
        self._application = None
        self._assistant = None
        logger.info("[Telegram] Bot stopped")

    async def _shutdown_application(self) -> None:
        application = self._application
        try:
            if application.updater and application.updater.running:
                await application.updater.stop()
            if application.running:
                await application.stop()
            await application.shutdown()
        except (TelegramError, RuntimeError) as e:
            logger.warning("[Telegram] Error during shutdown: %s", e)

    # ==================== Update handlers ====================

    async def _on_callback_query(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        # Stops the loading spinner on the pressed button
        try:
            await update.callback_query.answer()
        except TelegramError as e:
            logger.warning("[Telegram] Could not answer callback query: %s", e)
        await self._dispatch(update)

    async def _on_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        message = update.message
        logger.info(
            "[Telegram] Message %s in chat %s (document=%s, photo=%s)",
            message.message_id if message else None,
            message.chat_id if message else None,
            bool(message and message.document),
            bool(message and message.photo),
        )
        await self._dispatch(update)

    async def _dispatch(self, update: Update) -> None:
        if self._assistant is None:
            return
        event = parse_update(update)
        if event is None:
            logger.debug("[Telegram] Skipping update %s", update.update_id)
            return
        await self._assistant.handle_event(event)

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        # Handler errors are logged; the application keeps processing updates
        logger.error(
            "[Telegram] Update handling failed: %s", context.error, exc_info=context.error
        )
