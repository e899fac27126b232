# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for SessionStore and ExternalSessionManager.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from campus_assistant.core.exceptions import KnowledgeServiceError
from campus_assistant.services.knowledge import KnowledgeServiceClient
from campus_assistant.services.sessions import ExternalSessionManager, SessionStore

DAY = 24 * 3600


@pytest.fixture
def knowledge():
    client = MagicMock()
    client.clear_session = AsyncMock(return_value=None)
    return client


@pytest.fixture
def manager(sessions, knowledge):
    return ExternalSessionManager(
        sessions, knowledge, ttl_hours=24, update_on_failure=False
    )


class TestSessionStore:
    """Tests for SessionStore."""

    def test_get_creates_default_session(self, sessions):
        """A new user gets an empty session with epoch-zero clear time."""
        session = sessions.get(7)

        assert session.user_id == 7
        assert session.language_code is None
        assert session.selected_course_id is None
        assert session.last_external_clear_at == 0.0

    def test_get_returns_same_session(self, sessions):
        """Repeated lookups return the stored record."""
        assert sessions.get(7) is sessions.get(7)

    def test_setters(self, sessions):
        """Language and course are written to the session."""
        sessions.set_language(7, "ru")
        sessions.set_selected_course(7, "3")

        session = sessions.get(7)
        assert session.language_code == "ru"
        assert session.selected_course_id == "3"

    def test_store_is_shared_through_state(self, state):
        """Two stores over the same state see the same sessions."""
        SessionStore(state).set_language(7, "kk")
        assert SessionStore(state).get(7).language_code == "kk"


class TestExternalSessionManager:
    """Tests for ExternalSessionManager."""

    def test_session_handle_is_deterministic(self):
        """The handle is derived from the user ID only."""
        assert ExternalSessionManager.session_handle(42) == "tg-42"
        assert ExternalSessionManager.session_handle(42) == "tg-42"

    @pytest.mark.asyncio
    async def test_first_request_always_clears(self, manager, knowledge, sessions):
        """A brand-new user is stale and triggers a clear."""
        cleared = await manager.ensure_fresh(42, now=1_000_000.0)

        assert cleared is True
        knowledge.clear_session.assert_awaited_once_with("tg-42")
        assert sessions.get(42).last_external_clear_at == 1_000_000.0

    @pytest.mark.asyncio
    async def test_fresh_session_not_cleared(self, manager, knowledge, sessions):
        """Within 24 hours of the last clear no call is made."""
        sessions.mark_cleared(42, 1_000_000.0)

        cleared = await manager.ensure_fresh(42, now=1_000_000.0 + DAY)

        assert cleared is False
        knowledge.clear_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_session_cleared(self, manager, knowledge, sessions):
        """More than 24 hours after the last clear the context is cleared."""
        sessions.mark_cleared(42, 1_000_000.0)

        cleared = await manager.ensure_fresh(42, now=1_000_000.0 + DAY + 1)

        assert cleared is True
        knowledge.clear_session.assert_awaited_once_with("tg-42")

    @pytest.mark.asyncio
    async def test_failed_clear_keeps_timestamp(self, manager, knowledge, sessions):
        """By default a failed clear leaves the session stale for a retry."""
        knowledge.clear_session.side_effect = KnowledgeServiceError("clear", "HTTP 500")

        cleared = await manager.ensure_fresh(42, now=1_000_000.0)

        assert cleared is False
        assert sessions.get(42).last_external_clear_at == 0.0
        assert manager.is_stale(42, now=1_000_001.0)

    @pytest.mark.asyncio
    async def test_failed_clear_updates_timestamp_when_configured(
        self, sessions, knowledge
    ):
        """With update_on_failure the timer is reset even on failure."""
        knowledge.clear_session.side_effect = KnowledgeServiceError("clear", "timeout")
        manager = ExternalSessionManager(
            sessions, knowledge, ttl_hours=24, update_on_failure=True
        )

        cleared = await manager.ensure_fresh(42, now=1_000_000.0)

        assert cleared is False
        assert sessions.get(42).last_external_clear_at == 1_000_000.0

    @pytest.mark.asyncio
    async def test_force_clear_ignores_staleness(self, manager, knowledge, sessions):
        """/clear clears even a fresh context and updates the timestamp."""
        sessions.mark_cleared(42, 1_000_000.0)

        cleared = await manager.force_clear(42, now=1_000_010.0)

        assert cleared is True
        knowledge.clear_session.assert_awaited_once_with("tg-42")
        assert sessions.get(42).last_external_clear_at == 1_000_010.0

    @pytest.mark.asyncio
    async def test_plain_text_clear_reply_marks_session_fresh(
        self, sessions, mock_http, metrics
    ):
        """A 200 "OK" from the knowledge service resets the clear timer."""
        http, requests = mock_http(lambda request: httpx.Response(200, text="OK"))
        client = KnowledgeServiceClient(
            http, base_url="http://knowledge.test", timeout=5, metrics=metrics
        )
        manager = ExternalSessionManager(
            sessions, client, ttl_hours=24, update_on_failure=False
        )

        assert await manager.ensure_fresh(42, now=1_000_000.0) is True
        assert await manager.ensure_fresh(42, now=1_000_060.0) is False

        assert len(requests) == 1
        assert sessions.get(42).last_external_clear_at == 1_000_000.0
