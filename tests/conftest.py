# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from prometheus_client import CollectorRegistry

from campus_assistant.channels.base import FileRef, InboundEvent, Menu, ReplyChannel
from campus_assistant.core.config import settings
from campus_assistant.core.metrics import BotMetrics
from campus_assistant.core.state import StateStore
from campus_assistant.services.catalog import Catalog
from campus_assistant.services.i18n import LocaleResources, LocalizationResolver
from campus_assistant.services.sessions import SessionStore


class FakeReplyChannel(ReplyChannel):
    """ReplyChannel that records every outbound call."""

    def __init__(self):
        self.calls: List[Tuple] = []
        self.edit_result = True
        self.file_urls: Dict[str, str] = {}

    async def send_text(self, chat_id, text, menu=None, parse_mode=None):
        self.calls.append(("text", chat_id, text, menu, parse_mode))
        return True

    async def edit_text(self, chat_id, message_id, text, menu=None):
        self.calls.append(("edit", chat_id, message_id, text, menu))
        return self.edit_result

    async def send_document(self, chat_id, path, filename):
        self.calls.append(("document", chat_id, Path(path), filename))
        return True

    async def send_photo(self, chat_id, image, caption=None):
        self.calls.append(("photo", chat_id, image, caption))
        return True

    async def send_chat_action(self, chat_id, action):
        self.calls.append(("action", chat_id, action))

    async def get_file_url(self, file_id):
        return self.file_urls.get(file_id)

    def of_kind(self, kind: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == kind]

    @property
    def texts(self) -> List[str]:
        return [call[2] for call in self.calls if call[0] == "text"]

    @property
    def menus(self) -> List[Menu]:
        """Menus attached to sent or edited messages, oldest first."""
        menus = []
        for call in self.calls:
            if call[0] == "text" and call[3] is not None:
                menus.append(call[3])
            elif call[0] == "edit" and call[4] is not None:
                menus.append(call[4])
        return menus


@pytest.fixture
def channel() -> FakeReplyChannel:
    return FakeReplyChannel()


@pytest.fixture
def state() -> StateStore:
    return StateStore()


@pytest.fixture
def metrics() -> BotMetrics:
    """Metrics bound to a private registry so tests never collide."""
    return BotMetrics(registry=CollectorRegistry())


@pytest.fixture
def resources() -> LocaleResources:
    return LocaleResources.load(settings.LOCALES_DIR, ["en", "ru", "kk"])


@pytest.fixture
def sessions(state) -> SessionStore:
    return SessionStore(state)


@pytest.fixture
def i18n(resources, sessions) -> LocalizationResolver:
    return LocalizationResolver(resources, sessions, default_language="en")


@pytest.fixture
def catalog(tmp_path) -> Catalog:
    """Small catalog whose first procedure has a template on disk."""
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "certificate.docx").write_bytes(b"docx")
    raw = {
        "courses": {
            "1": ["certificate", "dormitory"],
            "2": ["certificate", "leave"],
        },
        "procedures": {
            "certificate": {
                "name": "Enrollment certificate",
                "instruction": "Apply at the dean's office.",
                "template": "templates/certificate.docx",
            },
            "dormitory": {
                "name": "Dormitory place",
                "instruction": "Apply at the housing department.",
                "template": "templates/dormitory.docx",
            },
            "leave": {
                "name": "Academic leave",
                "instruction": "Submit a written request.",
            },
        },
    }
    return Catalog.from_dict(raw, base_dir=tmp_path)


@pytest.fixture
def make_event() -> Callable[..., InboundEvent]:
    """Factory for inbound events from user 42 in chat 42."""

    def _make(
        text: str = "",
        user_id: int = 42,
        callback_data: Optional[str] = None,
        message_id: Optional[int] = None,
        file: Optional[FileRef] = None,
        language_code: Optional[str] = "en",
        username: Optional[str] = "student",
    ) -> InboundEvent:
        return InboundEvent(
            user_id=user_id,
            chat_id=user_id,
            text=text,
            username=username,
            language_code=language_code,
            message_id=message_id,
            callback_data=callback_data,
            file=file,
        )

    return _make


@pytest.fixture
def mock_http():
    """
    Build an httpx.AsyncClient served by a handler function.

    Every request is appended to the returned list for assertions.
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return client, requests

    return _make
