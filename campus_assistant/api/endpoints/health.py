# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Liveness and metrics endpoints.

/health reports the Telegram provider status but always returns 200 while
the process is serving requests; /metrics exposes the Prometheus registry.
"""

from fastapi import APIRouter, Depends, Request

from campus_assistant.api.dependencies import get_metrics
from campus_assistant.core.metrics import BotMetrics

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    """
    Liveness probe endpoint.

    Returns:
        dict: Health status with the Telegram provider details
    """
    provider = getattr(request.app.state, "telegram_provider", None)
    telegram = provider.get_status() if provider else {"configured": False}
    return {
        "status": "healthy",
        "telegram": telegram,
    }


@router.get("/metrics")
def metrics(bot_metrics: BotMetrics = Depends(get_metrics)):
    """Prometheus scrape endpoint."""
    return bot_metrics.render()
