# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Button-driven catalog browsing.

Screens:
    Welcome -> CourseSelected(course) -> ProcedureOpened(course, procedure)
    Welcome <-> FAQView
plus a language selection sub-flow that only writes the session language.

Callback data format is ``action:value`` (e.g. ``course:2``,
``procedure:academic_leave``); actions without a value are bare
(``years``, ``faq``, ``no_faq``).
"""

import logging
from enum import Enum
from typing import List, Optional

from campus_assistant.channels.base import InboundEvent, Menu, MenuButton, ReplyChannel
from campus_assistant.services.catalog import Catalog, Procedure
from campus_assistant.services.faq import ClickFrequencyTracker
from campus_assistant.services.i18n import LocalizationResolver
from campus_assistant.services.sessions import SessionStore
from campus_assistant.utils.files import file_exists

logger = logging.getLogger(__name__)

# Course used to rebuild the procedure list when none was ever selected
DEFAULT_COURSE_ID = "1"


class CallbackAction(str, Enum):
    """Callback action types for inline keyboard buttons."""

    SELECT_COURSE = "course"
    OPEN_PROCEDURE = "procedure"
    BACK_TO_PROCEDURES = "procedures"
    BACK_TO_YEARS = "years"
    FAQ = "faq"
    NO_FAQ = "no_faq"
    SET_LANGUAGE = "lang"


def build_callback_data(action: CallbackAction, value: Optional[str] = None) -> str:
    if value is None:
        return action.value
    return f"{action.value}:{value}"


def parse_callback_data(callback_data: str) -> tuple[str, str]:
    """
    Parse callback data from inline keyboard button.

    Args:
        callback_data: Callback data string in format 'action:value'

    Returns:
        Tuple of (action, value)
    """
    if ":" in callback_data:
        parts = callback_data.split(":", 1)
        return parts[0], parts[1]
    return callback_data, ""


class MenuNavigator:
    """State machine behind the course/procedure/FAQ menus."""

    def __init__(
        self,
        channel: ReplyChannel,
        catalog: Catalog,
        sessions: SessionStore,
        clicks: ClickFrequencyTracker,
        i18n: LocalizationResolver,
    ):
        self._channel = channel
        self._catalog = catalog
        self._sessions = sessions
        self._clicks = clicks
        self._i18n = i18n

    def _lang(self, event: InboundEvent) -> str:
        return self._i18n.language_for(event.user_id, event.language_code)

    def _t(self, event: InboundEvent, key: str, **kwargs: object) -> str:
        return self._i18n.text(key, self._lang(event), **kwargs)

    def course_name(self, course_id: str, language: str) -> str:
        return self._i18n.text(f"course.{course_id}", language, default=course_id)

    def procedure_name(self, procedure: Procedure, language: str) -> str:
        return self._i18n.text(
            f"procedure.{procedure.procedure_id}.name", language, default=procedure.name
        )

    def procedure_instruction(self, procedure: Procedure, language: str) -> str:
        return self._i18n.text(
            f"procedure.{procedure.procedure_id}.instruction",
            language,
            default=procedure.instruction,
        )

    # ==================== Menus ====================

    def course_menu(self, language: str) -> Menu:
        menu = Menu()
        for course_id in self._catalog.course_ids:
            menu.add_row(
                MenuButton(
                    self.course_name(course_id, language),
                    build_callback_data(CallbackAction.SELECT_COURSE, course_id),
                )
            )
        if self._clicks.is_faq_visible():
            menu.add_row(
                MenuButton(
                    self._i18n.text("faq_button", language),
                    build_callback_data(CallbackAction.FAQ),
                )
            )
        return menu

    def procedures_menu(self, course_id: str, language: str) -> Menu:
        menu = Menu()
        for procedure in self._catalog.procedures_for(course_id):
            menu.add_row(self._procedure_button(procedure, language))
        menu.add_row(self._back_to_years_button(language))
        return menu

    def faq_menu(self, language: str) -> Menu:
        menu = Menu()
        procedures = self._faq_procedures()
        for procedure in procedures:
            menu.add_row(self._procedure_button(procedure, language))
        if not procedures:
            menu.add_row(
                MenuButton(
                    self._i18n.text("no_faq_button", language),
                    build_callback_data(CallbackAction.NO_FAQ),
                )
            )
        menu.add_row(self._back_to_years_button(language))
        return menu

    def language_menu(self) -> Menu:
        menu = Menu()
        for code in self._i18n.languages:
            menu.add_row(
                MenuButton(
                    self._i18n.text(f"language.{code}", code, default=code),
                    build_callback_data(CallbackAction.SET_LANGUAGE, code),
                )
            )
        return menu

    def _procedure_button(self, procedure: Procedure, language: str) -> MenuButton:
        return MenuButton(
            self.procedure_name(procedure, language),
            build_callback_data(CallbackAction.OPEN_PROCEDURE, procedure.procedure_id),
        )

    def _back_to_years_button(self, language: str) -> MenuButton:
        return MenuButton(
            self._i18n.text("back_to_years", language),
            build_callback_data(CallbackAction.BACK_TO_YEARS),
        )

    def _faq_procedures(self) -> List[Procedure]:
        procedures = []
        for procedure_id in self._clicks.faq_eligible_procedures():
            procedure = self._catalog.get_procedure(procedure_id)
            if procedure:
                procedures.append(procedure)
        return procedures

    # ==================== Transitions ====================

    async def show_welcome(self, event: InboundEvent) -> bool:
        language = self._lang(event)
        return await self._channel.show(
            event, self._i18n.text("welcome", language), self.course_menu(language)
        )

    async def select_course(self, event: InboundEvent, course_id: str) -> bool:
        if not self._catalog.has_course(course_id):
            logger.warning("[Navigator] Unknown course: %s", course_id)
            return await self._channel.send_text(
                event.chat_id, self._t(event, "unknown_option")
            )

        self._sessions.set_selected_course(event.user_id, course_id)
        language = self._lang(event)
        return await self._channel.show(
            event,
            self._i18n.text("select_procedure", language),
            self.procedures_menu(course_id, language),
        )

    async def open_procedure(self, event: InboundEvent, procedure_id: str) -> bool:
        procedure = self._catalog.get_procedure(procedure_id)
        if procedure is None:
            logger.warning("[Navigator] Unknown procedure: %s", procedure_id)
            return await self._channel.send_text(
                event.chat_id, self._t(event, "unknown_option")
            )

        self._clicks.record_view(procedure_id)

        language = self._lang(event)
        course_id = self._sessions.get(event.user_id).selected_course_id or DEFAULT_COURSE_ID
        name = self.procedure_name(procedure, language)
        back_menu = Menu().add_row(
            MenuButton(
                self._i18n.text("back_to_procedures", language),
                build_callback_data(CallbackAction.BACK_TO_PROCEDURES, course_id),
            )
        )
        await self._channel.show(
            event,
            f"📝 {name}\n{self.procedure_instruction(procedure, language)}",
            back_menu,
        )

        return await self._send_template(event, procedure, name, language)

    async def _send_template(
        self, event: InboundEvent, procedure: Procedure, name: str, language: str
    ) -> bool:
        path = procedure.template_path
        if path is None or not await file_exists(path):
            logger.warning(
                "[Navigator] Template for %s not found: %s", procedure.procedure_id, path
            )
            return await self._channel.send_text(
                event.chat_id, self._i18n.text("template_not_found", language)
            )

        filename = self._i18n.text("template_filename", language, name=name) + path.suffix
        return await self._channel.send_document(event.chat_id, path, filename)

    async def back_to_procedures(
        self, event: InboundEvent, course_id: Optional[str] = None
    ) -> bool:
        course_id = (
            course_id
            or self._sessions.get(event.user_id).selected_course_id
            or DEFAULT_COURSE_ID
        )
        if not self._catalog.has_course(course_id):
            course_id = DEFAULT_COURSE_ID
        language = self._lang(event)
        return await self._channel.show(
            event,
            self._i18n.text("select_procedure", language),
            self.procedures_menu(course_id, language),
        )

    async def show_faq(self, event: InboundEvent) -> bool:
        language = self._lang(event)
        return await self._channel.show(
            event, self._i18n.text("faq_title", language), self.faq_menu(language)
        )

    async def handle_no_faq(self, event: InboundEvent) -> bool:
        language = self._lang(event)
        return await self._channel.show(
            event,
            self._i18n.text("no_faq_available", language),
            self.course_menu(language),
        )

    async def show_language_menu(self, event: InboundEvent) -> bool:
        return await self._channel.send_text(
            event.chat_id, self._t(event, "choose_language"), self.language_menu()
        )

    async def select_language(self, event: InboundEvent, code: str) -> bool:
        if not self._i18n.is_supported(code):
            logger.warning("[Navigator] Unsupported language: %s", code)
            return await self._channel.send_text(
                event.chat_id, self._t(event, "unknown_option")
            )

        self._sessions.set_language(event.user_id, code)
        return await self._channel.send_text(
            event.chat_id, self._i18n.text("language_set", code)
        )

    async def handle_callback(self, event: InboundEvent) -> bool:
        """Route a button press to its transition."""
        action, value = parse_callback_data(event.callback_data or "")

        if action == CallbackAction.SELECT_COURSE.value:
            return await self.select_course(event, value)

        if action == CallbackAction.OPEN_PROCEDURE.value:
            return await self.open_procedure(event, value)

        if action == CallbackAction.BACK_TO_PROCEDURES.value:
            return await self.back_to_procedures(event, value or None)

        if action == CallbackAction.BACK_TO_YEARS.value:
            return await self.show_welcome(event)

        if action == CallbackAction.FAQ.value:
            return await self.show_faq(event)

        if action == CallbackAction.NO_FAQ.value:
            return await self.handle_no_faq(event)

        if action == CallbackAction.SET_LANGUAGE.value:
            return await self.select_language(event, value)

        logger.warning("[Navigator] Unknown callback action: %s", event.callback_data)
        return False
