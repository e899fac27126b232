# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Per-user sliding window rate limiting.

Each user may have at most ``max_requests`` admissions within the trailing
``window_seconds``. The window is a ``limits`` moving window kept in the
process-scoped in-memory storage of the StateStore. There is no global cap.
"""

import logging
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.strategies import MovingWindowRateLimiter

from campus_assistant.core.config import settings
from campus_assistant.core.metrics import BotMetrics, get_bot_metrics
from campus_assistant.core.state import StateStore

logger = logging.getLogger(__name__)

RATE_LIMIT_NAMESPACE = "user"


class RateLimiter:
    """Moving window admission control keyed by user ID."""

    def __init__(
        self,
        state: StateStore,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        metrics: Optional[BotMetrics] = None,
    ):
        self._item = RateLimitItemPerSecond(
            max_requests if max_requests is not None else settings.RATE_LIMIT_MAX_REQUESTS,
            int(
                window_seconds
                if window_seconds is not None
                else settings.RATE_LIMIT_WINDOW_SECONDS
            ),
            namespace=RATE_LIMIT_NAMESPACE,
        )
        self._limiter = MovingWindowRateLimiter(state.rate_limit_storage)
        self._metrics = metrics or get_bot_metrics()

    @property
    def max_requests(self) -> int:
        return self._item.amount

    @property
    def window_seconds(self) -> int:
        return self._item.get_expiry()

    def admit(self, user_id: int) -> bool:
        """
        Check and record one request for a user.

        ``hit`` is synchronous, so the check and the record happen in one
        step of the event loop.

        Returns:
            True if the request is admitted, False if the user is throttled
        """
        if self._limiter.hit(self._item, str(user_id)):
            return True

        self._metrics.record_rate_limit_hit()
        logger.info(
            "[RateLimiter] User %s throttled: %d requests in the last %ds",
            user_id,
            self.max_requests,
            self.window_seconds,
        )
        return False

    def remaining(self, user_id: int) -> int:
        """Number of admissions still available to the user right now."""
        stats = self._limiter.get_window_stats(self._item, str(user_id))
        return max(stats.remaining, 0)
