# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Assistant event handler.

Entry point for every inbound user event, independent of the messaging
platform:

1. count the event and the user for metrics
2. pass the per-user rate limiter (throttled events are answered and dropped)
3. route: button press -> MenuNavigator, upload -> RequestDispatcher,
   slash command -> CommandRegistry, other text -> RequestDispatcher.chat

Unexpected exceptions are logged here and never reach the transport.
"""

import logging
from typing import Optional

import httpx

from campus_assistant.channels.base import InboundEvent, ReplyChannel
from campus_assistant.channels.commands import (
    CommandRegistry,
    CommandType,
    parse_command,
)
from campus_assistant.core.config import settings
from campus_assistant.core.exceptions import EscalationError
from campus_assistant.core.metrics import BotMetrics, get_bot_metrics
from campus_assistant.core.state import StateStore
from campus_assistant.services.catalog import Catalog
from campus_assistant.services.dispatcher import RequestDispatcher
from campus_assistant.services.escalation import StaffEscalation
from campus_assistant.services.faq import ClickFrequencyTracker
from campus_assistant.services.i18n import LocaleResources, LocalizationResolver
from campus_assistant.services.knowledge import DiagramRenderer, KnowledgeServiceClient
from campus_assistant.services.navigator import MenuNavigator
from campus_assistant.services.rate_limiter import RateLimiter
from campus_assistant.services.sessions import ExternalSessionManager, SessionStore

logger = logging.getLogger(__name__)


class AssistantHandler:
    """Routes inbound events to the navigator, dispatcher and command handlers."""

    def __init__(
        self,
        channel: ReplyChannel,
        rate_limiter: RateLimiter,
        navigator: MenuNavigator,
        dispatcher: RequestDispatcher,
        external_sessions: ExternalSessionManager,
        escalation: StaffEscalation,
        i18n: LocalizationResolver,
        metrics: Optional[BotMetrics] = None,
        feedback_url: Optional[str] = None,
    ):
        self._channel = channel
        self._rate_limiter = rate_limiter
        self._navigator = navigator
        self._dispatcher = dispatcher
        self._external_sessions = external_sessions
        self._escalation = escalation
        self._i18n = i18n
        self._metrics = metrics or get_bot_metrics()
        self._feedback_url = feedback_url if feedback_url is not None else settings.FEEDBACK_URL

        self._commands = CommandRegistry()
        self._commands.register(CommandType.START, self._handle_start)
        self._commands.register(CommandType.LANGUAGE, self._handle_language)
        self._commands.register(CommandType.CLEAR, self._handle_clear)
        self._commands.register(CommandType.FEEDBACK, self._handle_feedback)
        self._commands.register(CommandType.REQUEST, self._handle_request)
        self._commands.register(CommandType.FLOWCHART, self._handle_flowchart)
        self._commands.register(CommandType.HELP, self._handle_help)

    @property
    def commands(self) -> CommandRegistry:
        return self._commands

    @property
    def navigator(self) -> MenuNavigator:
        return self._navigator

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    async def _reply(self, event: InboundEvent, key: str, **kwargs: object) -> bool:
        text = self._i18n.for_user(event.user_id, key, event.language_code, **kwargs)
        return await self._channel.send_text(event.chat_id, text)

    async def handle_event(self, event: InboundEvent) -> bool:
        """
        Process one inbound event.

        Returns:
            True if the event was admitted and handled successfully
        """
        self._metrics.record_message(event.kind)
        self._metrics.track_user(event.user_id)

        if not self._rate_limiter.admit(event.user_id):
            await self._reply(event, "rate_limited")
            return False

        try:
            return await self._route(event)
        except Exception as e:
            logger.exception(
                "[Assistant] Unhandled error for user %s (%s): %s",
                event.user_id,
                event.kind,
                e,
            )
            await self._reply(event, "fallback")
            return False

    async def _route(self, event: InboundEvent) -> bool:
        if event.callback_data is not None:
            return await self._navigator.handle_callback(event)

        if event.file is not None:
            return await self._dispatcher.analyze_file(event, event.file, event.caption)

        parsed = parse_command(event.text)
        if parsed is not None:
            self._metrics.record_command(parsed.command.value)
            logger.info("[Assistant] User %s issued %s", event.user_id, parsed.command.value)
            return await self._commands.dispatch(event, parsed)

        if event.text.lstrip().startswith("/"):
            # Unknown command: do not send it to the knowledge service
            return await self._reply(event, "help")

        if not event.text.strip():
            return False

        return await self._dispatcher.chat(event, event.text.strip())

    # ==================== Command handlers ====================

    async def _handle_start(self, event: InboundEvent, argument: Optional[str]) -> bool:
        return await self._navigator.show_welcome(event)

    async def _handle_language(self, event: InboundEvent, argument: Optional[str]) -> bool:
        if argument and self._i18n.is_supported(argument.lower()):
            return await self._navigator.select_language(event, argument.lower())
        return await self._navigator.show_language_menu(event)

    async def _handle_clear(self, event: InboundEvent, argument: Optional[str]) -> bool:
        if await self._external_sessions.force_clear(event.user_id):
            return await self._reply(event, "history_cleared")
        return await self._reply(event, "history_clear_failed")

    async def _handle_feedback(self, event: InboundEvent, argument: Optional[str]) -> bool:
        if not self._feedback_url:
            return await self._reply(event, "feedback_unavailable")
        return await self._reply(event, "feedback", url=self._feedback_url)

    async def _handle_request(self, event: InboundEvent, argument: Optional[str]) -> bool:
        if not argument:
            return await self._reply(event, "request_usage")
        try:
            await self._escalation.escalate(event.user_id, argument, username=event.username)
        except EscalationError:
            return await self._reply(event, "request_failed")
        return await self._reply(event, "request_sent")

    async def _handle_flowchart(self, event: InboundEvent, argument: Optional[str]) -> bool:
        return await self._dispatcher.flowchart(event, argument or "")

    async def _handle_help(self, event: InboundEvent, argument: Optional[str]) -> bool:
        return await self._reply(event, "help")


def create_assistant(
    channel: ReplyChannel,
    http_client: httpx.AsyncClient,
    state: StateStore,
    catalog: Optional[Catalog] = None,
    resources: Optional[LocaleResources] = None,
    metrics: Optional[BotMetrics] = None,
) -> AssistantHandler:
    """Wire an AssistantHandler and its services from settings."""
    metrics = metrics or get_bot_metrics()
    catalog = catalog or Catalog.load(settings.CATALOG_PATH)
    resources = resources or LocaleResources.load(
        settings.LOCALES_DIR, settings.supported_languages
    )

    sessions = SessionStore(state)
    i18n = LocalizationResolver(resources, sessions)
    knowledge = KnowledgeServiceClient(http_client, metrics=metrics)
    renderer = DiagramRenderer(http_client)
    external_sessions = ExternalSessionManager(sessions, knowledge)

    navigator = MenuNavigator(
        channel=channel,
        catalog=catalog,
        sessions=sessions,
        clicks=ClickFrequencyTracker(state),
        i18n=i18n,
    )
    dispatcher = RequestDispatcher(
        channel=channel,
        knowledge=knowledge,
        renderer=renderer,
        external_sessions=external_sessions,
        i18n=i18n,
        http_client=http_client,
        metrics=metrics,
    )
    return AssistantHandler(
        channel=channel,
        rate_limiter=RateLimiter(state, metrics=metrics),
        navigator=navigator,
        dispatcher=dispatcher,
        external_sessions=external_sessions,
        escalation=StaffEscalation(http_client),
        i18n=i18n,
        metrics=metrics,
    )
