# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

import uvicorn

from campus_assistant.core.config import settings


def main() -> None:
    """Run the bot and its HTTP API in one uvicorn process."""
    uvicorn.run(
        "campus_assistant.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="info",
    )


if __name__ == "__main__":
    main()
