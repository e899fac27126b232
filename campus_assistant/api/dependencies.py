# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from functools import lru_cache

from campus_assistant.channels.telegram.sender import TelegramBotSender
from campus_assistant.core.config import settings
from campus_assistant.core.http import get_http_client
from campus_assistant.core.metrics import BotMetrics, get_bot_metrics
from campus_assistant.services.i18n import LocaleResources


async def get_staff_sender() -> TelegramBotSender:
    """Sender used by the staff relay endpoints."""
    client = await get_http_client()
    return TelegramBotSender(settings.TELEGRAM_BOT_TOKEN, client)


def get_metrics() -> BotMetrics:
    return get_bot_metrics()


@lru_cache()
def get_locale_resources() -> LocaleResources:
    return LocaleResources.load(settings.LOCALES_DIR, settings.supported_languages)
