# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from pathlib import Path

from pydantic_settings import BaseSettings

# Bundled catalog and locale files
DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    # Project configuration
    PROJECT_NAME: str = "Campus Assistant"
    VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    # API docs toggle (from env ENABLE_API_DOCS, default True)
    ENABLE_API_DOCS: bool = True
    LOG_LEVEL: str = "INFO"

    # Telegram configuration
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"

    # Knowledge service (RAG backend) configuration
    KNOWLEDGE_API_URL: str = "http://localhost:8000"
    KNOWLEDGE_API_TIMEOUT_SECONDS: float = 60.0

    # Mermaid renderer configuration (kroki-compatible)
    MERMAID_RENDERER_URL: str = "https://kroki.io"
    MERMAID_RENDER_FORMAT: str = "png"
    RENDERER_TIMEOUT_SECONDS: float = 30.0

    # Static catalog and localization
    CATALOG_PATH: str = str(DATA_DIR / "catalog.json")
    LOCALES_DIR: str = str(DATA_DIR / "locales")
    # Directory holding the documents referenced as answer sources
    SOURCES_DIR: str = "docs"
    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: str = "en,ru,kk"

    # Per-user sliding window rate limiting
    RATE_LIMIT_MAX_REQUESTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Remote conversation context is cleared once it is older than this
    EXTERNAL_SESSION_TTL_HOURS: float = 24.0
    # Whether a failed remote clear still resets the 24h timer
    SESSION_CLEAR_UPDATE_ON_FAILURE: bool = False

    # A procedure is promoted to FAQ once its view count exceeds this value
    FAQ_CLICK_THRESHOLD: int = 2

    # Staff escalation
    FEEDBACK_URL: str = ""
    STAFF_WEBHOOK_URL: str = ""
    STAFF_WEBHOOK_TIMEOUT_SECONDS: float = 15.0

    # File upload configuration
    MAX_UPLOAD_FILE_SIZE_MB: int = 20  # Telegram bot download limit

    @property
    def supported_languages(self) -> list[str]:
        return [
            code.strip()
            for code in self.SUPPORTED_LANGUAGES.split(",")
            if code.strip()
        ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global configuration instance
settings = Settings()
