# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for command parsing and the command registry.
"""

from unittest.mock import AsyncMock

import pytest

from campus_assistant.channels.commands import (
    CommandRegistry,
    CommandType,
    ParsedCommand,
    is_command,
    parse_command,
)


class TestParseCommand:
    """Tests for parse_command."""

    def test_simple_command(self):
        parsed = parse_command("/start")
        assert parsed.command == CommandType.START
        assert parsed.argument is None

    def test_command_with_argument(self):
        parsed = parse_command("  /flowchart   admission process ")
        assert parsed.command == CommandType.FLOWCHART
        assert parsed.argument == "admission process"

    def test_bot_mention_stripped(self):
        parsed = parse_command("/Request@CampusBot need help")
        assert parsed.command == CommandType.REQUEST
        assert parsed.argument == "need help"

    @pytest.mark.parametrize("content", ["", "hello", "/unknown", "/"])
    def test_not_a_command(self, content):
        assert parse_command(content) is None
        assert not is_command(content)

    def test_str(self):
        assert str(ParsedCommand(CommandType.LANGUAGE, "ru")) == "/language ru"
        assert str(ParsedCommand(CommandType.HELP)) == "/help"


class TestCommandRegistry:
    """Tests for CommandRegistry."""

    @pytest.mark.asyncio
    async def test_dispatch_calls_handler(self, make_event):
        registry = CommandRegistry()
        handler = AsyncMock(return_value=True)
        registry.register(CommandType.CLEAR, handler)
        event = make_event("/clear")

        assert await registry.dispatch(event, ParsedCommand(CommandType.CLEAR)) is True
        handler.assert_awaited_once_with(event, None)

    @pytest.mark.asyncio
    async def test_dispatch_without_handler(self, make_event):
        registry = CommandRegistry()
        assert await registry.dispatch(make_event("/help"), ParsedCommand(CommandType.HELP)) is False

    def test_commands_listed(self):
        registry = CommandRegistry()
        registry.register(CommandType.START, AsyncMock())
        registry.register(CommandType.HELP, AsyncMock())
        assert registry.commands == [CommandType.START, CommandType.HELP]
        assert registry.get(CommandType.CLEAR) is None
