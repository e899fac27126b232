# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Localized message lookup.

Locale files are flat JSON objects (``{"key": "text"}``), one per language
code, e.g. ``locales/en.json``. The language of a user is resolved with the
fallback chain:

    session language -> platform (Telegram) language -> default language

and a key missing in that language falls back to the default language,
then to the caller-supplied default, then to the key itself.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from campus_assistant.core.config import settings
from campus_assistant.services.sessions import SessionStore

logger = logging.getLogger(__name__)


class LocaleResources:
    """Immutable set of message catalogs keyed by language code."""

    def __init__(self, messages: Dict[str, Dict[str, str]]):
        self._messages = messages

    @classmethod
    def load(
        cls, locales_dir: str, languages: Optional[Iterable[str]] = None
    ) -> "LocaleResources":
        """Load ``<code>.json`` files from a directory."""
        directory = Path(locales_dir)
        codes = list(languages) if languages else [p.stem for p in directory.glob("*.json")]
        messages: Dict[str, Dict[str, str]] = {}
        for code in codes:
            path = directory / f"{code}.json"
            if not path.is_file():
                logger.warning("[i18n] Locale file not found: %s", path)
                continue
            with path.open(encoding="utf-8") as f:
                messages[code] = json.load(f)
        logger.info("[i18n] Loaded locales: %s", ", ".join(sorted(messages)))
        return cls(messages)

    @property
    def languages(self) -> list[str]:
        return list(self._messages)

    def has_language(self, code: Optional[str]) -> bool:
        return bool(code) and code in self._messages

    def lookup(self, language: str, key: str) -> Optional[str]:
        return self._messages.get(language, {}).get(key)

    def text(
        self,
        key: str,
        language: str,
        fallback_language: str,
        default: Optional[str] = None,
        **kwargs: object,
    ) -> str:
        """
        Resolve a key, falling back to another language, then to default.

        Args:
            key: Message key
            language: Preferred language code
            fallback_language: Language tried when the preferred one lacks the key
            default: Text used when no catalog defines the key
            **kwargs: Values substituted into ``{placeholders}``
        """
        template = self.lookup(language, key)
        if template is None and language != fallback_language:
            template = self.lookup(fallback_language, key)
        if template is None:
            if default is None:
                logger.warning("[i18n] Missing message key: %s", key)
                return key
            template = default

        if not kwargs:
            return template
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            logger.warning("[i18n] Failed to format message %s (%s)", key, language)
            return template


def normalize_language(code: Optional[str]) -> Optional[str]:
    """Reduce an IETF tag such as ``ru-RU`` to its primary subtag."""
    if not code:
        return None
    return code.split("-")[0].split("_")[0].lower()


class LocalizationResolver:
    """Resolves message keys to text in a user's language."""

    def __init__(
        self,
        resources: LocaleResources,
        sessions: SessionStore,
        default_language: Optional[str] = None,
    ):
        self._resources = resources
        self._sessions = sessions
        self._default_language = default_language or settings.DEFAULT_LANGUAGE

    @property
    def default_language(self) -> str:
        return self._default_language

    @property
    def languages(self) -> list[str]:
        return self._resources.languages

    def is_supported(self, code: Optional[str]) -> bool:
        return self._resources.has_language(code)

    def language_for(self, user_id: int, platform_language: Optional[str] = None) -> str:
        session_language = self._sessions.get(user_id).language_code
        if self._resources.has_language(session_language):
            return session_language

        inferred = normalize_language(platform_language)
        if self._resources.has_language(inferred):
            return inferred

        return self._default_language

    def text(
        self,
        key: str,
        language: Optional[str] = None,
        default: Optional[str] = None,
        **kwargs: object,
    ) -> str:
        """Resolve a key in the given language (the default language when omitted)."""
        return self._resources.text(
            key,
            language or self._default_language,
            self._default_language,
            default=default,
            **kwargs,
        )

    def for_user(
        self,
        user_id: int,
        key: str,
        platform_language: Optional[str] = None,
        default: Optional[str] = None,
        **kwargs: object,
    ) -> str:
        """Resolve a key in the language of a user."""
        language = self.language_for(user_id, platform_language)
        return self.text(key, language, default=default, **kwargs)
