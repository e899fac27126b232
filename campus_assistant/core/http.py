# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Process-wide httpx.AsyncClient.

The knowledge service, the diagram renderer, the staff webhook, the Bot API
sender and Telegram file downloads share one connection pool. Call sites
pass their own timeout; the client default covers anything that does not.
"""

import asyncio
import logging
from typing import Optional

import httpx

from campus_assistant.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None
_lock = asyncio.Lock()


def _create_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.KNOWLEDGE_API_TIMEOUT_SECONDS, connect=10.0),
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        follow_redirects=True,
    )


async def get_http_client() -> httpx.AsyncClient:
    """Return the shared client, creating it on first use."""
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            _client = _create_client()
            logger.info("[HTTP] Shared client created")
    return _client


async def close_http_client() -> None:
    """Close the shared client; called from the application lifespan."""
    global _client
    async with _lock:
        if _client is None:
            return
        await _client.aclose()
        _client = None
        logger.info("[HTTP] Shared client closed")
