# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Bot Prometheus metrics.

Provides metrics for the Telegram front-end and its backends:
- bot_messages_total: Counter for inbound messages by type
- bot_commands_total: Counter for slash commands
- llm_api_calls_total: Counter for knowledge service calls
- bot_response_time_seconds: Histogram for reply latency
- bot_unique_users: Gauge for users seen since start
- bot_rate_limit_hits_total: Counter for rejected requests
- bot_api_calls_total: Counter for the staff relay REST API
"""

from typing import Optional, Set

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.responses import Response

# Histogram buckets for bot replies (knowledge service calls dominate)
RESPONSE_TIME_BUCKETS = (
    0.1,
    0.5,
    1.0,
    2.0,
    5.0,
    10.0,
    20.0,
    30.0,
    60.0,
    120.0,
    float("inf"),
)


class BotMetrics:
    """Bot metrics collection class.

    Metrics are created lazily on first use so that importing this module
    never registers collectors as a side effect.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize bot metrics.

        Args:
            registry: Optional Prometheus registry. Uses the default REGISTRY if not provided.
        """
        self._registry = registry or REGISTRY
        self._messages_total: Optional[Counter] = None
        self._commands_total: Optional[Counter] = None
        self._api_calls_total: Optional[Counter] = None
        self._response_time: Optional[Histogram] = None
        self._unique_users: Optional[Gauge] = None
        self._rate_limit_hits: Optional[Counter] = None
        self._relay_calls_total: Optional[Counter] = None
        self._seen_users: Set[int] = set()

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @property
    def messages_total(self) -> Counter:
        """Get or create the inbound messages counter."""
        if self._messages_total is None:
            self._messages_total = Counter(
                "bot_messages_total",
                "Total number of messages received by the bot",
                labelnames=["type"],
                registry=self._registry,
            )
        return self._messages_total

    @property
    def commands_total(self) -> Counter:
        """Get or create the commands counter."""
        if self._commands_total is None:
            self._commands_total = Counter(
                "bot_commands_total",
                "Total number of commands received",
                labelnames=["command"],
                registry=self._registry,
            )
        return self._commands_total

    @property
    def api_calls_total(self) -> Counter:
        """Get or create the knowledge service calls counter."""
        if self._api_calls_total is None:
            self._api_calls_total = Counter(
                "llm_api_calls_total",
                "Total number of calls to the LLM API",
                labelnames=["endpoint", "status"],
                registry=self._registry,
            )
        return self._api_calls_total

    @property
    def response_time(self) -> Histogram:
        """Get or create the response time histogram."""
        if self._response_time is None:
            self._response_time = Histogram(
                "bot_response_time_seconds",
                "Response time of the bot in seconds",
                labelnames=["operation"],
                buckets=RESPONSE_TIME_BUCKETS,
                registry=self._registry,
            )
        return self._response_time

    @property
    def unique_users(self) -> Gauge:
        """Get or create the unique users gauge."""
        if self._unique_users is None:
            self._unique_users = Gauge(
                "bot_unique_users",
                "Number of unique users interacting with the bot",
                registry=self._registry,
            )
        return self._unique_users

    @property
    def rate_limit_hits(self) -> Counter:
        """Get or create the rate limit hits counter."""
        if self._rate_limit_hits is None:
            self._rate_limit_hits = Counter(
                "bot_rate_limit_hits_total",
                "Number of times users hit the rate limit",
                registry=self._registry,
            )
        return self._rate_limit_hits

    @property
    def relay_calls_total(self) -> Counter:
        """Get or create the staff relay REST API counter."""
        if self._relay_calls_total is None:
            self._relay_calls_total = Counter(
                "bot_api_calls_total",
                "Number of calls to the bot REST API",
                labelnames=["endpoint", "status"],
                registry=self._registry,
            )
        return self._relay_calls_total

    def record_message(self, message_type: str) -> None:
        """Record an inbound message ("text", "document", "photo", "callback")."""
        self.messages_total.labels(type=message_type).inc()

    def record_command(self, command: str) -> None:
        self.commands_total.labels(command=command).inc()

    def record_api_call(self, endpoint: str, status: str) -> None:
        """Record a knowledge service call ("success" or "failure")."""
        self.api_calls_total.labels(endpoint=endpoint, status=status).inc()

    def observe_response_time(self, operation: str, duration_seconds: float) -> None:
        self.response_time.labels(operation=operation).observe(duration_seconds)

    def record_rate_limit_hit(self) -> None:
        self.rate_limit_hits.inc()

    def record_relay_call(self, endpoint: str, status: str) -> None:
        self.relay_calls_total.labels(endpoint=endpoint, status=status).inc()

    def track_user(self, user_id: int) -> None:
        """Add a user to the unique users set and refresh the gauge."""
        if user_id in self._seen_users:
            return
        self._seen_users.add(user_id)
        self.unique_users.set(len(self._seen_users))

    def render(self) -> Response:
        """Generate a Response with metrics in the Prometheus text format."""
        return Response(
            content=generate_latest(self._registry),
            media_type=CONTENT_TYPE_LATEST,
        )


# Global metrics instance
_bot_metrics: Optional[BotMetrics] = None


def get_bot_metrics() -> BotMetrics:
    """Get the global bot metrics instance."""
    global _bot_metrics
    if _bot_metrics is None:
        _bot_metrics = BotMetrics()
    return _bot_metrics
