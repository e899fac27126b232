# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Escalation of user requests to human staff.

``/request <text>`` posts the request to the staff system webhook. Staff
answer later through the inbound relay API (see api/endpoints/staff.py).
"""

import logging
from typing import Any, Dict, Optional

import httpx

from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import EscalationError

logger = logging.getLogger(__name__)


class StaffEscalation:
    """Forwards user requests to the staff webhook."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._http = http_client
        self._webhook_url = webhook_url if webhook_url is not None else settings.STAFF_WEBHOOK_URL
        self._timeout = (
            timeout if timeout is not None else settings.STAFF_WEBHOOK_TIMEOUT_SECONDS
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    async def escalate(
        self, user_id: int, message: str, username: Optional[str] = None
    ) -> None:
        """
        Forward a request to staff.

        Raises:
            EscalationError: If no webhook is configured or delivery fails
        """
        if not self.is_configured:
            logger.warning(
                "[Escalation] STAFF_WEBHOOK_URL not set, dropping request from user %s",
                user_id,
            )
            raise EscalationError("Staff webhook is not configured")

        payload: Dict[str, Any] = {
            "telegramId": user_id,
            "username": username,
            "message": message,
        }
        try:
            response = await self._http.post(
                self._webhook_url, json=payload, timeout=self._timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("[Escalation] Failed to forward request of user %s: %r", user_id, e)
            raise EscalationError(f"Staff webhook call failed: {e!r}") from e

        logger.info(
            "[Escalation] Forwarded request of user %s, text_length=%d",
            user_id,
            len(message),
        )
