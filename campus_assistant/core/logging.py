# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

import logging
import sys

from campus_assistant.core.config import settings

# Libraries that log every request at INFO; Bot API URLs embed the token
NOISY_LOGGERS = ("httpx", "httpcore", "telegram", "apscheduler")


def setup_logging() -> None:
    """Send all records to stdout in one plain format."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)-4s %(name)s : %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    )

    # uvicorn records go through the root handler; access lines are dropped
    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    access_logger = logging.getLogger("uvicorn.access")
    access_logger.handlers.clear()
    access_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
