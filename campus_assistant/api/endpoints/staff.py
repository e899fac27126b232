# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Staff relay endpoints.

An external staff system pushes messages to a Telegram user through these
endpoints. They only talk to the Telegram Bot API; user sessions, rate
limits and the knowledge service are never involved.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from campus_assistant.api.dependencies import (
    get_locale_resources,
    get_metrics,
    get_staff_sender,
)
from campus_assistant.channels.telegram.sender import TelegramBotSender
from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import CustomHTTPException, ValidationException
from campus_assistant.core.metrics import BotMetrics
from campus_assistant.services.i18n import LocaleResources

logger = logging.getLogger(__name__)

router = APIRouter()


class StaffMessageRequest(BaseModel):
    """Body of a staff relay request."""

    telegramId: Optional[Union[int, str]] = None
    message: Optional[str] = None


class StaffMessageResponse(BaseModel):
    success: bool = True


def _validate(request: StaffMessageRequest) -> tuple[Union[int, str], str]:
    telegram_id = request.telegramId
    if isinstance(telegram_id, str):
        telegram_id = telegram_id.strip()
        if telegram_id.lstrip("-").isdigit():
            telegram_id = int(telegram_id)

    if telegram_id in (None, "") or not request.message or not request.message.strip():
        raise ValidationException("telegramId and message are required")
    return telegram_id, request.message


async def _relay(
    endpoint: str,
    telegram_id: Union[int, str],
    text: str,
    sender: TelegramBotSender,
    metrics: BotMetrics,
) -> StaffMessageResponse:
    result = await sender.send_text_message(telegram_id, text)
    if not result.get("success"):
        metrics.record_relay_call(endpoint, "failure")
        logger.error(
            "[StaffAPI] %s delivery to %s failed: %s",
            endpoint,
            telegram_id,
            result.get("error"),
        )
        raise CustomHTTPException(
            status_code=500,
            detail=f"Failed to deliver message: {result.get('error')}",
        )

    metrics.record_relay_call(endpoint, "success")
    logger.info("[StaffAPI] %s delivered to %s", endpoint, telegram_id)
    return StaffMessageResponse()


@router.post("/notify", response_model=StaffMessageResponse)
async def notify(
    request: StaffMessageRequest,
    sender: TelegramBotSender = Depends(get_staff_sender),
    metrics: BotMetrics = Depends(get_metrics),
):
    """Deliver a plain message to a user."""
    try:
        telegram_id, message = _validate(request)
    except ValidationException:
        metrics.record_relay_call("notify", "failure")
        raise
    return await _relay("notify", telegram_id, message, sender, metrics)


@router.post("/send-answer", response_model=StaffMessageResponse)
async def send_answer(
    request: StaffMessageRequest,
    sender: TelegramBotSender = Depends(get_staff_sender),
    metrics: BotMetrics = Depends(get_metrics),
    resources: LocaleResources = Depends(get_locale_resources),
):
    """Deliver a staff answer wrapped in the localized staff-response header."""
    try:
        telegram_id, message = _validate(request)
    except ValidationException:
        metrics.record_relay_call("send-answer", "failure")
        raise

    text = resources.text(
        "staff_response",
        settings.DEFAULT_LANGUAGE,
        settings.DEFAULT_LANGUAGE,
        default="📩 Staff response:\n\n{message}",
        message=message,
    )
    return await _relay("send-answer", telegram_id, text, sender, metrics)
