# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Process-scoped in-memory state.

All mutable per-user and per-procedure state lives in a single StateStore
that is created once per process and injected into the services that own
each part of it. Nothing here is persisted; a restart resets rate windows,
sessions and FAQ promotion.

Mutations happen in synchronous code only, so under the asyncio model they
never interleave with another handler. A multi-threaded deployment would
need per-user locking around the read-modify-write sequences.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from limits.storage import MemoryStorage


@dataclass
class UserSession:
    """Conversational and navigational state of one user."""

    user_id: int
    language_code: Optional[str] = None
    selected_course_id: Optional[str] = None
    # Epoch zero means the remote context was never cleared in this process
    last_external_clear_at: float = 0.0


@dataclass
class StateStore:
    """Container for every process-wide mutable map."""

    # Moving window hits per user, read and written by RateLimiter
    rate_limit_storage: MemoryStorage = field(default_factory=MemoryStorage)
    sessions: Dict[int, UserSession] = field(default_factory=dict)
    # procedure_id -> number of views
    click_counts: Dict[str, int] = field(default_factory=dict)
    # procedure ids in the order they crossed the FAQ threshold
    faq_order: List[str] = field(default_factory=list)


# Global state instance
state_store = StateStore()
