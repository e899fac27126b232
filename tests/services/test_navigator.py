# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the course / procedure / FAQ menu navigator.
"""

import pytest

from campus_assistant.services.faq import ClickFrequencyTracker
from campus_assistant.services.navigator import (
    CallbackAction,
    MenuNavigator,
    build_callback_data,
    parse_callback_data,
)


@pytest.fixture
def clicks(state):
    return ClickFrequencyTracker(state, threshold=2)


@pytest.fixture
def navigator(channel, catalog, sessions, clicks, i18n):
    return MenuNavigator(
        channel=channel, catalog=catalog, sessions=sessions, clicks=clicks, i18n=i18n
    )


class TestCallbackData:
    """Tests for callback data helpers."""

    def test_build(self):
        assert build_callback_data(CallbackAction.SELECT_COURSE, "2") == "course:2"
        assert build_callback_data(CallbackAction.FAQ) == "faq"

    def test_parse(self):
        assert parse_callback_data("procedure:leave") == ("procedure", "leave")
        assert parse_callback_data("years") == ("years", "")


class TestMenus:
    """Tests for menu construction."""

    def test_course_menu_without_faq(self, navigator):
        menu = navigator.course_menu("en")
        assert menu.actions == ["course:1", "course:2"]
        assert menu.rows[0][0].text == "1st Year"

    def test_course_menu_shows_faq_after_promotion(self, navigator, clicks):
        for _ in range(3):
            clicks.record_view("dormitory")

        assert navigator.course_menu("en").actions[-1] == "faq"

    def test_procedures_menu(self, navigator):
        menu = navigator.procedures_menu("1", "en")
        assert menu.actions == ["procedure:certificate", "procedure:dormitory", "years"]

    def test_procedure_names_localized(self, navigator):
        """Procedures with locale entries are shown in the user's language."""
        menu = navigator.procedures_menu("1", "ru")
        labels = [button.text for row in menu.rows for button in row]

        assert "Место в общежитии" in labels
        # No locale entry for this fixture id, so the catalog name is used
        assert "Enrollment certificate" in labels

    def test_faq_menu_placeholder(self, navigator):
        assert navigator.faq_menu("en").actions == ["no_faq", "years"]

    def test_language_menu(self, navigator):
        assert navigator.language_menu().actions == ["lang:en", "lang:ru", "lang:kk"]


class TestTransitions:
    """Tests for navigator transitions."""

    @pytest.mark.asyncio
    async def test_welcome_sends_course_menu(self, navigator, channel, make_event):
        await navigator.show_welcome(make_event("/start"))

        kind, _, text, menu, _ = channel.calls[0]
        assert kind == "text"
        assert text.startswith("Welcome!")
        assert menu.actions == ["course:1", "course:2"]

    @pytest.mark.asyncio
    async def test_select_course_edits_message(
        self, navigator, channel, sessions, make_event
    ):
        """A button press edits the message it belongs to."""
        event = make_event(callback_data="course:2", message_id=10)

        await navigator.handle_callback(event)

        kind, _, message_id, text, menu = channel.calls[0]
        assert (kind, message_id) == ("edit", 10)
        assert menu.actions == ["procedure:certificate", "procedure:leave", "years"]
        assert sessions.get(42).selected_course_id == "2"

    @pytest.mark.asyncio
    async def test_edit_failure_falls_back_to_send(self, navigator, channel, make_event):
        channel.edit_result = False

        await navigator.handle_callback(make_event(callback_data="course:1", message_id=10))

        assert [call[0] for call in channel.calls] == ["edit", "text"]

    @pytest.mark.asyncio
    async def test_unknown_course(self, navigator, channel, sessions, make_event):
        await navigator.handle_callback(make_event(callback_data="course:9"))

        assert "no longer available" in channel.texts[0]
        assert sessions.get(42).selected_course_id is None

    @pytest.mark.asyncio
    async def test_open_procedure_sends_instruction_and_template(
        self, navigator, channel, sessions, clicks, make_event
    ):
        sessions.set_selected_course(42, "2")

        await navigator.handle_callback(
            make_event(callback_data="procedure:certificate", message_id=10)
        )

        edit = channel.of_kind("edit")[0]
        assert edit[3] == "📝 Enrollment certificate\nApply at the dean's office."
        assert edit[4].actions == ["procedures:2"]

        document = channel.of_kind("document")[0]
        assert document[2].name == "certificate.docx"
        assert document[3] == "Template_Enrollment certificate.docx"
        assert clicks.count("certificate") == 1

    @pytest.mark.asyncio
    async def test_open_procedure_defaults_back_button_to_first_course(
        self, navigator, channel, make_event
    ):
        """Without a selected course the back button targets course 1."""
        await navigator.handle_callback(make_event(callback_data="procedure:leave"))

        assert channel.menus[0].actions == ["procedures:1"]

    @pytest.mark.asyncio
    async def test_missing_template_reported(self, navigator, channel, make_event):
        await navigator.handle_callback(make_event(callback_data="procedure:dormitory"))

        assert channel.of_kind("document") == []
        assert channel.texts[-1] == "Template file not found. Please contact administrator."

    @pytest.mark.asyncio
    async def test_back_to_procedures(self, navigator, channel, make_event):
        await navigator.handle_callback(make_event(callback_data="procedures:2"))

        assert channel.menus[0].actions == [
            "procedure:certificate",
            "procedure:leave",
            "years",
        ]

    @pytest.mark.asyncio
    async def test_back_to_procedures_unknown_course(self, navigator, channel, make_event):
        await navigator.handle_callback(make_event(callback_data="procedures:9"))

        assert channel.menus[0].actions[0] == "procedure:certificate"
        assert "procedure:dormitory" in channel.menus[0].actions

    @pytest.mark.asyncio
    async def test_back_to_years(self, navigator, channel, make_event):
        await navigator.handle_callback(make_event(callback_data="years"))

        assert channel.menus[0].actions == ["course:1", "course:2"]

    @pytest.mark.asyncio
    async def test_faq_lists_promoted_procedures(
        self, navigator, channel, clicks, make_event
    ):
        for _ in range(3):
            clicks.record_view("leave")

        await navigator.handle_callback(make_event(callback_data="faq"))

        assert channel.texts[0] == "Frequently Asked Procedures:"
        assert channel.menus[0].actions == ["procedure:leave", "years"]

    @pytest.mark.asyncio
    async def test_no_faq_returns_to_courses(self, navigator, channel, make_event):
        await navigator.handle_callback(make_event(callback_data="no_faq"))

        assert channel.texts[0].startswith("No FAQs available yet")
        assert channel.menus[0].actions == ["course:1", "course:2"]

    @pytest.mark.asyncio
    async def test_select_language(self, navigator, channel, sessions, make_event):
        """The confirmation is already in the new language."""
        await navigator.handle_callback(make_event(callback_data="lang:ru"))

        assert sessions.get(42).language_code == "ru"
        assert channel.texts[0] == "Язык изменён на русский."

    @pytest.mark.asyncio
    async def test_select_unsupported_language(
        self, navigator, channel, sessions, make_event
    ):
        await navigator.handle_callback(make_event(callback_data="lang:de"))

        assert sessions.get(42).language_code is None
        assert "no longer available" in channel.texts[0]

    @pytest.mark.asyncio
    async def test_session_language_used_for_menus(
        self, navigator, channel, sessions, make_event
    ):
        sessions.set_language(42, "kk")

        await navigator.show_welcome(make_event("/start", language_code="en"))

        assert channel.texts[0].startswith("Қош келдіңіз")

    @pytest.mark.asyncio
    async def test_unknown_action_ignored(self, navigator, channel, make_event):
        assert await navigator.handle_callback(make_event(callback_data="bogus:1")) is False
        assert channel.calls == []
