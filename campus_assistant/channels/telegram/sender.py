# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Proactive Telegram delivery for the staff relay API.

Staff messages arrive over HTTP with no incoming Telegram update to reply
to, so they go straight to the Bot API ``sendMessage`` method over the
shared httpx client instead of through the polling bot.
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from campus_assistant.core.config import settings

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 30.0


def _failure(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("description"):
        return body["description"]
    return f"HTTP {response.status_code}"


class TelegramBotSender:
    """Sends text messages to Telegram chats outside of the update loop."""

    def __init__(
        self,
        bot_token: str,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
    ):
        self.bot_token = bot_token
        self._http = http_client
        self._base_url = (base_url or settings.TELEGRAM_API_BASE_URL).rstrip("/")

    @property
    def _send_url(self) -> str:
        return f"{self._base_url}/bot{self.bot_token}/sendMessage"

    async def send_text_message(
        self,
        chat_id: Union[int, str],
        text: str,
        parse_mode: Optional[str] = None,
        disable_notification: bool = False,
    ) -> Dict[str, Any]:
        """
        Deliver one text message.

        Args:
            chat_id: Target chat; for private chats this is the user's Telegram ID
            text: Message body
            parse_mode: Optional Bot API parse mode such as "HTML"
            disable_notification: Deliver without a notification sound

        Returns:
            ``{"success": True, "result": <Bot API response>}`` or
            ``{"success": False, "error": <description>}``
        """
        if not self.bot_token:
            return _failure("Bot token is not configured")
        if not chat_id:
            return _failure("No chat ID provided")

        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if disable_notification:
            payload["disable_notification"] = True

        logger.info("[TelegramSender] chat=%s chars=%d", chat_id, len(text))
        try:
            response = await self._http.post(
                self._send_url, json=payload, timeout=SEND_TIMEOUT_SECONDS
            )
        except httpx.HTTPError as e:
            # The request URL carries the bot token, so only the error type is reported
            logger.error("[TelegramSender] Transport failure: %s", type(e).__name__)
            return _failure(type(e).__name__)

        if response.is_error:
            description = _error_description(response)
            logger.error("[TelegramSender] Rejected by Bot API: %s", description)
            return _failure(description)

        try:
            data = response.json()
        except ValueError:
            logger.error("[TelegramSender] Bot API returned a non-JSON body")
            return _failure("Invalid Bot API response")

        if not data.get("ok"):
            description = data.get("description", "Unknown error")
            logger.error("[TelegramSender] Bot API error: %s", description)
            return _failure(description)

        logger.info(
            "[TelegramSender] Delivered message_id=%s",
            data.get("result", {}).get("message_id"),
        )
        return {"success": True, "result": data}
