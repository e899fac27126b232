# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_assistant.api.api import api_router
from campus_assistant.api.dependencies import get_locale_resources
from campus_assistant.channels.assistant import create_assistant
from campus_assistant.channels.telegram.service import TelegramChannelProvider
from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import (
    CustomHTTPException,
    RequestValidationError,
    http_exception_handler,
    python_exception_handler,
    validation_exception_handler,
)
from campus_assistant.core.http import close_http_client, get_http_client
from campus_assistant.core.logging import setup_logging
from campus_assistant.core.state import state_store

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Share one HTTP client between the bot and the API; run the bot alongside."""
    http_client = await get_http_client()
    logger.info("HTTP client ready")

    resources = get_locale_resources()
    provider = TelegramChannelProvider(
        bot_token=settings.TELEGRAM_BOT_TOKEN,
        assistant_factory=lambda channel: create_assistant(
            channel, http_client, state_store, resources=resources
        ),
        resources=resources,
    )
    app.state.telegram_provider = provider

    if await provider.start():
        logger.info("Telegram bot started")
    else:
        # The staff relay API keeps serving without the polling bot
        logger.warning("Telegram bot not started: %s", provider.get_status()["last_error"])

    yield

    logger.info("Shutting down")
    await provider.stop()
    await close_http_client()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    enable_docs = settings.ENABLE_API_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Campus assistant Telegram bot and staff relay API",
        version=settings.VERSION,
        openapi_url="/openapi.json" if enable_docs else None,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        lifespan=lifespan,
    )

    app.add_exception_handler(CustomHTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, python_exception_handler)

    app.include_router(api_router)

    return app


app = create_app()
