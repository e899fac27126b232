# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Clients for the external knowledge service and the diagram renderer.

Knowledge service API:
- POST {base}/chat          {query, session_id} -> {answer, sources?}
- POST {base}/flowchart     {query, session_id} -> {mermaid, sources?}
- GET  {base}/chat/clear?session_id={id}        -> 2xx
- POST {base}/docs/analyze  multipart {file, question} -> {answer}

Diagram renderer API (kroki compatible):
- POST {renderer}/mermaid/{format}  text/plain body -> image bytes

Every transport, HTTP status or payload failure is raised as
KnowledgeServiceError / RenderError so callers can degrade gracefully.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import KnowledgeServiceError, RenderError
from campus_assistant.core.metrics import BotMetrics, get_bot_metrics

logger = logging.getLogger(__name__)


class KnowledgeAnswer(BaseModel):
    """Answer returned by the knowledge service."""

    answer: str = ""
    sources: List[str] = Field(default_factory=list)
    mermaid: Optional[str] = None


class KnowledgeServiceClient:
    """Async client for the knowledge service REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        metrics: Optional[BotMetrics] = None,
    ):
        self._client = client
        self._base_url = (base_url or settings.KNOWLEDGE_API_URL).rstrip("/")
        self._timeout = (
            timeout if timeout is not None else settings.KNOWLEDGE_API_TIMEOUT_SECONDS
        )
        self._metrics = metrics or get_bot_metrics()

    async def chat(self, query: str, session_id: str) -> KnowledgeAnswer:
        data = await self._request(
            "chat", "POST", "/chat", json={"query": query, "session_id": session_id}
        )
        return self._parse_answer("chat", data)

    async def flowchart(self, query: str, session_id: str) -> KnowledgeAnswer:
        data = await self._request(
            "flowchart",
            "POST",
            "/flowchart",
            json={"query": query, "session_id": session_id},
        )
        return self._parse_answer("flowchart", data)

    async def clear_session(self, session_id: str) -> None:
        """Drop the conversation memory kept for a session handle."""
        # Any 2xx is success; the body is ignored
        await self._request(
            "clear",
            "GET",
            "/chat/clear",
            expect_json=False,
            params={"session_id": session_id},
        )

    async def analyze_document(
        self,
        content: bytes,
        filename: str,
        question: str,
        content_type: str = "application/octet-stream",
    ) -> KnowledgeAnswer:
        data = await self._request(
            "analyze",
            "POST",
            "/docs/analyze",
            files={"file": (filename, content, content_type)},
            data={"question": question},
        )
        return self._parse_answer("analyze", data)

    async def _request(
        self,
        endpoint: str,
        method: str,
        path: str,
        expect_json: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON body (empty for no body).

        With ``expect_json=False`` only the status is checked and ``{}`` is
        returned.
        """
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(
                method, url, timeout=self._timeout, **kwargs
            )
            response.raise_for_status()
            data = response.json() if expect_json and response.content else {}
        except httpx.TimeoutException as e:
            self._metrics.record_api_call(endpoint, "failure")
            raise KnowledgeServiceError(endpoint, f"timed out: {e!r}") from e
        except httpx.HTTPStatusError as e:
            self._metrics.record_api_call(endpoint, "failure")
            raise KnowledgeServiceError(
                endpoint,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self._metrics.record_api_call(endpoint, "failure")
            raise KnowledgeServiceError(endpoint, f"transport error: {e!r}") from e
        except ValueError as e:
            self._metrics.record_api_call(endpoint, "failure")
            raise KnowledgeServiceError(endpoint, "response is not valid JSON") from e

        if not isinstance(data, dict):
            self._metrics.record_api_call(endpoint, "failure")
            raise KnowledgeServiceError(endpoint, "response is not a JSON object")

        self._metrics.record_api_call(endpoint, "success")
        return data

    def _parse_answer(self, endpoint: str, data: Dict[str, Any]) -> KnowledgeAnswer:
        # Some backend versions return "sources": null
        if data.get("sources") is None:
            data = {**data, "sources": []}
        try:
            return KnowledgeAnswer.model_validate(data)
        except ValidationError as e:
            raise KnowledgeServiceError(endpoint, f"unexpected payload: {e}") from e


class DiagramRenderer:
    """Renders Mermaid diagram definitions to images."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        image_format: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._client = client
        self._base_url = (base_url or settings.MERMAID_RENDERER_URL).rstrip("/")
        self._format = image_format or settings.MERMAID_RENDER_FORMAT
        self._timeout = (
            timeout if timeout is not None else settings.RENDERER_TIMEOUT_SECONDS
        )

    @property
    def image_format(self) -> str:
        return self._format

    async def render(self, definition: str) -> bytes:
        """
        Render a Mermaid definition.

        Raises:
            RenderError: If the renderer is unreachable or returns no image
        """
        url = f"{self._base_url}/mermaid/{self._format}"
        try:
            response = await self._client.post(
                url,
                content=definition.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RenderError(f"Mermaid rendering failed: {e!r}") from e

        if not response.content:
            raise RenderError("Mermaid renderer returned an empty image")
        return response.content
