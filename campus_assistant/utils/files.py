# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""File name helpers and non-blocking file system checks."""

import asyncio
import re
from pathlib import Path, PurePosixPath
from typing import Optional

# Numeric ordering prefix of source documents, e.g. "12-34-guide.pdf"
SOURCE_PREFIX_PATTERN = re.compile(r"^(?:\d+-)+")


def strip_source_prefix(filename: str) -> str:
    """Remove the leading numeric-dash prefix from a source file name.

    >>> strip_source_prefix("12-34-guide.pdf")
    'guide.pdf'
    """
    stripped = SOURCE_PREFIX_PATTERN.sub("", filename)
    return stripped or filename


def file_extension(filename: str) -> str:
    """Lower-case extension including the dot, or an empty string."""
    return PurePosixPath(filename).suffix.lower()


def resolve_inside(base_dir: Path, relative: str) -> Optional[Path]:
    """Join a backend-supplied name onto base_dir, refusing path traversal."""
    base = base_dir.resolve()
    candidate = (base / relative).resolve()
    if candidate != base and base not in candidate.parents:
        return None
    return candidate


async def file_exists(path: Path) -> bool:
    """Check for a regular file without blocking the event loop."""
    return await asyncio.to_thread(path.is_file)
