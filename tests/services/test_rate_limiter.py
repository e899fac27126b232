# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the per-user sliding window rate limiter.
"""

from unittest.mock import patch

import pytest

from campus_assistant.core.state import StateStore
from campus_assistant.services.rate_limiter import RateLimiter


class FakeClock:
    """Stands in for time.time() so window expiry is deterministic."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    fake = FakeClock()
    with patch("time.time", new=fake):
        yield fake


@pytest.fixture
def limiter(state, metrics, clock):
    return RateLimiter(state, max_requests=5, window_seconds=60, metrics=metrics)


def admit_burst(limiter, clock, user_id=1, count=5, start=1000.0):
    results = []
    for i in range(count):
        clock.now = start + i
        results.append(limiter.admit(user_id))
    return results


class TestRateLimiter:
    """Tests for RateLimiter.admit."""

    def test_admits_up_to_limit(self, limiter, clock):
        """Five requests within the window are admitted."""
        assert all(admit_burst(limiter, clock))

    def test_sixth_request_rejected(self, limiter, clock, metrics):
        """The sixth request inside the window is rejected and counted."""
        admit_burst(limiter, clock)

        clock.now = 1010.0
        assert limiter.admit(1) is False
        assert metrics.registry.get_sample_value("bot_rate_limit_hits_total") == 1.0

    def test_rejection_does_not_extend_window(self, limiter, clock):
        """Rejected requests are not recorded, so the window still frees up on time."""
        admit_burst(limiter, clock)
        clock.now = 1010.0
        assert limiter.admit(1) is False
        clock.now = 1020.0
        assert limiter.admit(1) is False

        # t=1000 has left the window; the rejections at 1010/1020 never entered it
        clock.now = 1060.5
        assert limiter.admit(1) is True

    def test_window_slides(self, limiter, clock):
        """Requests older than the window no longer count."""
        admit_burst(limiter, clock)

        clock.now = 1060.5
        assert limiter.admit(1) is True
        # t=1001 is still inside the window at 1060.6
        clock.now = 1060.6
        assert limiter.admit(1) is False

    def test_users_are_independent(self, limiter, clock):
        """Throttling one user does not affect another."""
        admit_burst(limiter, clock)

        clock.now = 1005.0
        assert limiter.admit(1) is False
        assert limiter.admit(2) is True

    def test_state_stores_are_isolated(self, metrics, clock):
        """Each StateStore carries its own windows."""
        first = RateLimiter(StateStore(), max_requests=1, window_seconds=60, metrics=metrics)
        second = RateLimiter(StateStore(), max_requests=1, window_seconds=60, metrics=metrics)

        assert first.admit(1) is True
        assert first.admit(1) is False
        assert second.admit(1) is True

    def test_remaining(self, limiter, clock):
        """remaining() reports the admissions left in the current window."""
        assert limiter.remaining(1) == 5
        admit_burst(limiter, clock, count=2)

        clock.now = 1002.0
        assert limiter.remaining(1) == 3
        clock.now = 1100.0
        assert limiter.remaining(1) == 5

    def test_defaults_from_settings(self, state, metrics):
        """Limits default to the configured values."""
        limiter = RateLimiter(state, metrics=metrics)
        assert limiter.max_requests == 5
        assert limiter.window_seconds == 60
