# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Optional

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AssistantError(Exception):
    """Base class for failures of the assistant's external collaborators"""


class KnowledgeServiceError(AssistantError):
    """Knowledge service unreachable, timed out or returned an error"""

    def __init__(self, endpoint: str, detail: str, status_code: Optional[int] = None):
        super().__init__(f"{endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail
        self.status_code = status_code


class RenderError(AssistantError):
    """Diagram renderer failed to produce an image"""


class UnsupportedFileTypeError(AssistantError):
    """Uploaded file extension is not accepted for analysis"""

    def __init__(self, extension: str):
        super().__init__(f"Unsupported file extension: {extension or '<none>'}")
        self.extension = extension


class EscalationError(AssistantError):
    """Request could not be forwarded to staff"""


class ValidationException(HTTPException):
    """Missing or invalid request field (400)"""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class CustomHTTPException(HTTPException):
    """HTTP error with an application error code"""

    def __init__(self, status_code: int, detail: str, error_code: Optional[int] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code


async def http_exception_handler(request, exc: HTTPException):
    """Render HTTP errors as {success, error_code, detail}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error_code": getattr(exc, "error_code", None) or exc.status_code,
            "detail": exc.detail,
        },
    )


async def validation_exception_handler(request, exc: RequestValidationError):
    """Malformed request bodies are reported as 400, not 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error_code": status.HTTP_400_BAD_REQUEST,
            "detail": "Request parameter validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def python_exception_handler(request, exc: Exception):
    """Last-resort handler; the traceback goes to the log only."""
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "detail": "Internal server error",
        },
    )
