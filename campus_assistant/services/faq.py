# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
FAQ promotion by procedure view frequency.

Every procedure view increments a process-lifetime counter. A procedure
becomes FAQ-eligible once its count exceeds the threshold; counters never
decrease, so promotion is permanent until restart.
"""

import logging
from typing import List, Optional

from campus_assistant.core.config import settings
from campus_assistant.core.state import StateStore

logger = logging.getLogger(__name__)


class ClickFrequencyTracker:
    """Counts procedure views and exposes FAQ-eligible procedures."""

    def __init__(self, state: StateStore, threshold: Optional[int] = None):
        self._state = state
        self._threshold = threshold if threshold is not None else settings.FAQ_CLICK_THRESHOLD

    @property
    def threshold(self) -> int:
        return self._threshold

    def record_view(self, procedure_id: str) -> int:
        """Increment the view counter and return the new count."""
        count = self._state.click_counts.get(procedure_id, 0) + 1
        self._state.click_counts[procedure_id] = count
        if count == self._threshold + 1:
            self._state.faq_order.append(procedure_id)
            logger.info("[FAQ] Procedure %s promoted to FAQ", procedure_id)
        return count

    def count(self, procedure_id: str) -> int:
        return self._state.click_counts.get(procedure_id, 0)

    def is_faq_visible(self) -> bool:
        return bool(self._state.faq_order)

    def faq_eligible_procedures(self) -> List[str]:
        """Procedure IDs with count above the threshold, in promotion order."""
        return list(self._state.faq_order)
