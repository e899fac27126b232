# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Slash commands understood by the assistant.

    /start              welcome screen with the course menu
    /language           language picker
    /clear              reset the knowledge service conversation
    /feedback           link to the feedback form
    /request <text>     forward a request to staff
    /flowchart <text>   draw a flowchart of a process
    /help               list of commands
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from campus_assistant.channels.base import InboundEvent

logger = logging.getLogger(__name__)


class CommandType(str, Enum):
    START = "start"
    LANGUAGE = "language"
    CLEAR = "clear"
    FEEDBACK = "feedback"
    REQUEST = "request"
    FLOWCHART = "flowchart"
    HELP = "help"


@dataclass
class ParsedCommand:
    command: CommandType
    argument: Optional[str] = None

    def __str__(self) -> str:
        head = f"/{self.command.value}"
        return f"{head} {self.argument}" if self.argument else head


def parse_command(content: Optional[str]) -> Optional[ParsedCommand]:
    """
    Recognize a known slash command and split off its argument.

    ``/cmd@BotName`` (the group chat form) is accepted. Unknown commands and
    plain text both yield None.
    """
    text = (content or "").strip()
    if not text.startswith("/"):
        return None

    head, *rest = text.split(maxsplit=1)
    try:
        command = CommandType(head[1:].split("@", 1)[0].lower())
    except ValueError:
        return None
    return ParsedCommand(command=command, argument=rest[0].strip() if rest else None)


def is_command(content: Optional[str]) -> bool:
    return parse_command(content) is not None


CommandHandler = Callable[[InboundEvent, Optional[str]], Awaitable[bool]]


class CommandRegistry:
    """Maps command types to async handlers taking (event, argument)."""

    def __init__(self):
        self._handlers: Dict[CommandType, CommandHandler] = {}

    def register(self, command: CommandType, handler: CommandHandler) -> None:
        if command in self._handlers:
            logger.warning("[Commands] Replacing handler for /%s", command.value)
        self._handlers[command] = handler

    def get(self, command: CommandType) -> Optional[CommandHandler]:
        return self._handlers.get(command)

    @property
    def commands(self) -> list[CommandType]:
        return list(self._handlers)

    async def dispatch(self, event: InboundEvent, parsed: ParsedCommand) -> bool:
        handler = self._handlers.get(parsed.command)
        if handler is None:
            logger.warning("[Commands] No handler registered for %s", parsed)
            return False
        return await handler(event, parsed.argument)
