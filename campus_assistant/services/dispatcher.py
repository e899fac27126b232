# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Request dispatcher.

Routes free-form questions, flowchart requests and file uploads to the
knowledge service and the diagram renderer, then assembles the multi-part
reply (text, rendered diagram, source documents).

Every external call is wrapped at its call site: a failing backend, renderer
or download degrades to a localized message and never propagates.
"""

import html
import logging
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import httpx

from campus_assistant.channels.base import FileRef, InboundEvent, ReplyChannel
from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import (
    KnowledgeServiceError,
    RenderError,
    UnsupportedFileTypeError,
)
from campus_assistant.core.metrics import BotMetrics, get_bot_metrics
from campus_assistant.services.i18n import LocalizationResolver
from campus_assistant.services.knowledge import (
    DiagramRenderer,
    KnowledgeAnswer,
    KnowledgeServiceClient,
)
from campus_assistant.services.sessions import ExternalSessionManager
from campus_assistant.utils.files import (
    file_exists,
    file_extension,
    resolve_inside,
    strip_source_prefix,
)

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = frozenset({".docx", ".txt", ".pdf"})
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})

# Prompt sent with an upload that has no caption
DEFAULT_ANALYSIS_PROMPT = "Analyze this file"


@dataclass
class ChatRequest:
    text: str


@dataclass
class FlowchartRequest:
    text: str


@dataclass
class FileAnalysisRequest:
    file: FileRef
    caption: Optional[str] = None


Request = Union[ChatRequest, FlowchartRequest, FileAnalysisRequest]


def classify_extension(extension: str) -> str:
    """
    Map a file extension to its analysis category.

    Returns:
        "document" or "image"

    Raises:
        UnsupportedFileTypeError: For any other extension
    """
    if extension in DOCUMENT_EXTENSIONS:
        return "document"
    if extension in IMAGE_EXTENSIONS:
        return "image"
    raise UnsupportedFileTypeError(extension)


class RequestDispatcher:
    """Sends user requests to the backends and delivers the replies."""

    def __init__(
        self,
        channel: ReplyChannel,
        knowledge: KnowledgeServiceClient,
        renderer: DiagramRenderer,
        external_sessions: ExternalSessionManager,
        i18n: LocalizationResolver,
        http_client: httpx.AsyncClient,
        sources_dir: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
        metrics: Optional[BotMetrics] = None,
    ):
        self._channel = channel
        self._knowledge = knowledge
        self._renderer = renderer
        self._external_sessions = external_sessions
        self._i18n = i18n
        self._http = http_client
        self._sources_dir = Path(sources_dir or settings.SOURCES_DIR)
        self._max_upload_bytes = (
            max_upload_bytes
            if max_upload_bytes is not None
            else settings.MAX_UPLOAD_FILE_SIZE_MB * 1024 * 1024
        )
        self._metrics = metrics or get_bot_metrics()

    def _t(self, event: InboundEvent, key: str, **kwargs: object) -> str:
        return self._i18n.for_user(event.user_id, key, event.language_code, **kwargs)

    async def _reply(self, event: InboundEvent, key: str, **kwargs: object) -> bool:
        return await self._channel.send_text(event.chat_id, self._t(event, key, **kwargs))

    async def dispatch(self, event: InboundEvent, request: Request) -> bool:
        if isinstance(request, ChatRequest):
            return await self.chat(event, request.text)
        if isinstance(request, FlowchartRequest):
            return await self.flowchart(event, request.text)
        return await self.analyze_file(event, request.file, request.caption)

    # ==================== Chat ====================

    async def chat(self, event: InboundEvent, text: str) -> bool:
        """Answer a free-form question and attach its source documents."""
        started = time.monotonic()
        try:
            await self._external_sessions.ensure_fresh(event.user_id)
            await self._channel.send_chat_action(event.chat_id, "typing")

            try:
                answer = await self._knowledge.chat(
                    text, self._external_sessions.session_handle(event.user_id)
                )
            except KnowledgeServiceError as e:
                logger.error("[Dispatcher] Chat request failed for user %s: %s", event.user_id, e)
                return await self._reply(event, "fallback")

            if answer.answer:
                await self._channel.send_text(event.chat_id, answer.answer)
            else:
                await self._reply(event, "fallback")
            await self.send_sources(event, answer.sources)
            return True
        finally:
            self._metrics.observe_response_time("text_response", time.monotonic() - started)

    # ==================== Flowchart ====================

    async def flowchart(self, event: InboundEvent, text: str) -> bool:
        """Generate a flowchart, render it and attach its source documents."""
        if not text.strip():
            return await self._reply(event, "flowchart_usage")

        started = time.monotonic()
        try:
            await self._external_sessions.ensure_fresh(event.user_id)
            await self._channel.send_chat_action(event.chat_id, "upload_photo")

            try:
                answer = await self._knowledge.flowchart(
                    text, self._external_sessions.session_handle(event.user_id)
                )
            except KnowledgeServiceError as e:
                logger.error(
                    "[Dispatcher] Flowchart request failed for user %s: %s", event.user_id, e
                )
                return await self._reply(event, "fallback")

            if not answer.mermaid:
                logger.warning("[Dispatcher] Flowchart response has no diagram definition")
                return await self._reply(event, "fallback")

            await self._send_diagram(event, answer)
            await self.send_sources(event, answer.sources)
            return True
        finally:
            self._metrics.observe_response_time("flowchart", time.monotonic() - started)

    async def _send_diagram(self, event: InboundEvent, answer: KnowledgeAnswer) -> bool:
        try:
            image = await self._renderer.render(answer.mermaid)
        except RenderError as e:
            logger.warning("[Dispatcher] %s, sending diagram source instead", e)
            return await self._channel.send_text(
                event.chat_id,
                f"<pre>{html.escape(answer.mermaid)}</pre>",
                parse_mode="HTML",
            )

        caption = self._t(event, "sources_caption") if answer.sources else None
        return await self._channel.send_photo(event.chat_id, image, caption=caption)

    # ==================== Sources ====================

    async def send_sources(self, event: InboundEvent, sources: Iterable[str]) -> int:
        """
        Attach source documents that exist locally.

        Missing files are logged and skipped without telling the user.

        Returns:
            Number of documents sent
        """
        sent = 0
        for source in sources or []:
            path = resolve_inside(self._sources_dir, source)
            if path is None or not await file_exists(path):
                logger.info("[Dispatcher] Source file not found, skipping: %s", source)
                continue

            display_name = strip_source_prefix(Path(source).name)
            if await self._channel.send_document(event.chat_id, path, display_name):
                sent += 1
        return sent

    # ==================== File analysis ====================

    async def analyze_file(
        self, event: InboundEvent, file: FileRef, caption: Optional[str] = None
    ) -> bool:
        """Send an uploaded document or photo to the analysis endpoint."""
        extension = file_extension(file.filename)
        try:
            category = classify_extension(extension)
        except UnsupportedFileTypeError as e:
            logger.info("[Dispatcher] Rejected upload from user %s: %s", event.user_id, e)
            return await self._reply(event, "format_not_supported")

        if file.file_size and file.file_size > self._max_upload_bytes:
            logger.info(
                "[Dispatcher] Rejected upload of %d bytes from user %s",
                file.file_size,
                event.user_id,
            )
            return await self._reply(event, "file_too_large")

        started = time.monotonic()
        try:
            await self._channel.send_chat_action(event.chat_id, "typing")

            content = await self._download(file)
            if content is None:
                return await self._reply(event, "fallback")

            content_type = (
                file.mime_type
                or mimetypes.guess_type(file.filename)[0]
                or "application/octet-stream"
            )
            try:
                answer = await self._knowledge.analyze_document(
                    content,
                    file.filename,
                    caption or DEFAULT_ANALYSIS_PROMPT,
                    content_type=content_type,
                )
            except KnowledgeServiceError as e:
                logger.error(
                    "[Dispatcher] Analysis of %s %s failed: %s", category, file.filename, e
                )
                return await self._reply(event, "fallback")

            if not answer.answer:
                return await self._reply(event, "fallback")
            return await self._channel.send_text(event.chat_id, answer.answer)
        finally:
            self._metrics.observe_response_time("file_analysis", time.monotonic() - started)

    async def _download(self, file: FileRef) -> Optional[bytes]:
        url = await self._channel.get_file_url(file.file_id)
        if not url:
            logger.error("[Dispatcher] No download link for file %s", file.file_id)
            return None
        try:
            response = await self._http.get(url, timeout=settings.KNOWLEDGE_API_TIMEOUT_SECONDS)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("[Dispatcher] Failed to download %s: %r", file.filename, e)
            return None
        return response.content
