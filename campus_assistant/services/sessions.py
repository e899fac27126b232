# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
User session management.

SessionStore owns the per-user UserSession records (language, selected
course, last remote clear). ExternalSessionManager decides when the user's
conversation context inside the knowledge service has to be cleared before
a new query.
"""

import logging
import time
from typing import Optional

from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import KnowledgeServiceError
from campus_assistant.core.state import StateStore, UserSession
from campus_assistant.services.knowledge import KnowledgeServiceClient

logger = logging.getLogger(__name__)

# Prefix of the session handle passed to the knowledge service
SESSION_HANDLE_PREFIX = "tg-"


class SessionStore:
    """In-memory store of UserSession records keyed by Telegram user ID."""

    def __init__(self, state: StateStore):
        self._state = state

    def get(self, user_id: int) -> UserSession:
        """Get a user's session, creating a default one on first access."""
        session = self._state.sessions.get(user_id)
        if session is None:
            session = UserSession(user_id=user_id)
            self._state.sessions[user_id] = session
        return session

    def set_language(self, user_id: int, language_code: str) -> None:
        self.get(user_id).language_code = language_code
        logger.info("[Sessions] User %s language set to %s", user_id, language_code)

    def set_selected_course(self, user_id: int, course_id: str) -> None:
        self.get(user_id).selected_course_id = course_id

    def mark_cleared(self, user_id: int, now: float) -> None:
        self.get(user_id).last_external_clear_at = now


class ExternalSessionManager:
    """
    Keeps the knowledge service conversation context fresh.

    A context older than the TTL is cleared before the next query. Clearing
    is best-effort: failures are logged and never block the query itself.
    Whether a failed clear still resets the timer is controlled by
    ``update_on_failure`` (see SESSION_CLEAR_UPDATE_ON_FAILURE).
    """

    def __init__(
        self,
        sessions: SessionStore,
        knowledge: KnowledgeServiceClient,
        ttl_hours: Optional[float] = None,
        update_on_failure: Optional[bool] = None,
    ):
        self._sessions = sessions
        self._knowledge = knowledge
        hours = ttl_hours if ttl_hours is not None else settings.EXTERNAL_SESSION_TTL_HOURS
        self._ttl_seconds = hours * 3600
        self._update_on_failure = (
            update_on_failure
            if update_on_failure is not None
            else settings.SESSION_CLEAR_UPDATE_ON_FAILURE
        )

    @staticmethod
    def session_handle(user_id: int) -> str:
        """Deterministic knowledge service session ID for a user."""
        return f"{SESSION_HANDLE_PREFIX}{user_id}"

    def is_stale(self, user_id: int, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        session = self._sessions.get(user_id)
        return now - session.last_external_clear_at > self._ttl_seconds

    async def ensure_fresh(self, user_id: int, now: Optional[float] = None) -> bool:
        """
        Clear the remote context if it is stale.

        Returns:
            True if a clear was attempted and succeeded, False otherwise
        """
        if now is None:
            now = time.time()
        # Decided before the first await; two concurrent requests may both
        # see a stale context and clear twice, which the backend tolerates.
        if not self.is_stale(user_id, now):
            return False
        return await self._clear(user_id, now)

    async def force_clear(self, user_id: int, now: Optional[float] = None) -> bool:
        """Clear the remote context regardless of its age (/clear command)."""
        if now is None:
            now = time.time()
        return await self._clear(user_id, now)

    async def _clear(self, user_id: int, now: float) -> bool:
        handle = self.session_handle(user_id)
        try:
            await self._knowledge.clear_session(handle)
        except KnowledgeServiceError as e:
            logger.warning(
                "[Sessions] Failed to clear remote context %s: %s", handle, e
            )
            if self._update_on_failure:
                self._sessions.mark_cleared(user_id, now)
            return False

        self._sessions.mark_cleared(user_id, now)
        logger.info("[Sessions] Cleared remote context %s", handle)
        return True
