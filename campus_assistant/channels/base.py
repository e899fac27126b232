# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Transport-agnostic message types and the reply channel interface.

Services never talk to the messaging SDK directly: inbound updates are
parsed into InboundEvent objects, menus are described as Menu objects, and
replies go through a ReplyChannel implementation (Telegram in production,
a recording fake in tests).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuButton:
    """Inline button carrying an opaque action identifier."""

    text: str
    action: str


@dataclass
class Menu:
    """Rows of inline buttons."""

    rows: List[List[MenuButton]] = field(default_factory=list)

    def add_row(self, *buttons: MenuButton) -> "Menu":
        self.rows.append(list(buttons))
        return self

    @property
    def actions(self) -> List[str]:
        return [button.action for row in self.rows for button in row]


@dataclass
class FileRef:
    """Reference to a file uploaded by the user."""

    file_id: str
    filename: str
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    is_photo: bool = False


@dataclass
class InboundEvent:
    """Context for an incoming user event, regardless of the source channel."""

    user_id: int
    chat_id: int
    text: str = ""
    username: Optional[str] = None
    language_code: Optional[str] = None  # Language reported by the platform
    message_id: Optional[int] = None
    callback_data: Optional[str] = None
    file: Optional[FileRef] = None

    @property
    def kind(self) -> str:
        if self.callback_data is not None:
            return "callback"
        if self.file is not None:
            return "photo" if self.file.is_photo else "document"
        return "text"

    @property
    def caption(self) -> Optional[str]:
        """Caption of an uploaded file (stored in ``text``)."""
        if self.file is None:
            return None
        return self.text.strip() or None


class ReplyChannel(ABC):
    """Outbound operations the assistant needs from a messaging platform.

    Implementations must not raise: delivery failures are logged and
    reported through the boolean return value.
    """

    @abstractmethod
    async def send_text(
        self,
        chat_id: int,
        text: str,
        menu: Optional[Menu] = None,
        parse_mode: Optional[str] = None,
    ) -> bool:
        """Send a text message, optionally with an inline menu."""

    @abstractmethod
    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        menu: Optional[Menu] = None,
    ) -> bool:
        """Replace the text (and menu) of a message sent earlier."""

    @abstractmethod
    async def send_document(self, chat_id: int, path: Path, filename: str) -> bool:
        """Send a local file as a document with the given display name."""

    @abstractmethod
    async def send_photo(
        self, chat_id: int, image: bytes, caption: Optional[str] = None
    ) -> bool:
        """Send an in-memory image."""

    @abstractmethod
    async def send_chat_action(self, chat_id: int, action: str) -> None:
        """Show a transient status such as "typing"."""

    @abstractmethod
    async def get_file_url(self, file_id: str) -> Optional[str]:
        """Resolve an uploaded file to a downloadable link, None on failure."""

    async def show(self, event: InboundEvent, text: str, menu: Optional[Menu] = None) -> bool:
        """Edit the message behind a button press, or send a new one.

        Falls back to sending a new message when the edit fails (for
        example when the original message is too old to edit).
        """
        if event.callback_data is not None and event.message_id:
            if await self.edit_text(event.chat_id, event.message_id, text, menu):
                return True
        return await self.send_text(event.chat_id, text, menu)
