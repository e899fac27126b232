# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Static procedure catalog.

The catalog is a read-only JSON document mapping courses (years of study)
to ordered procedure IDs, and procedure IDs to their display name,
instruction text and template file path. Template paths are relative to
the catalog file's directory.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Procedure:
    """One administrative procedure."""

    procedure_id: str
    name: str
    instruction: str
    template_path: Optional[Path] = None


class Catalog:
    """Courses and procedures loaded from the catalog file."""

    def __init__(self, courses: Dict[str, List[str]], procedures: Dict[str, Procedure]):
        self._courses = courses
        self._procedures = procedures

    @classmethod
    def load(cls, path: str) -> "Catalog":
        catalog_path = Path(path)
        with catalog_path.open(encoding="utf-8") as f:
            raw = json.load(f)
        return cls.from_dict(raw, base_dir=catalog_path.parent)

    @classmethod
    def from_dict(cls, raw: dict, base_dir: Optional[Path] = None) -> "Catalog":
        base_dir = base_dir or Path.cwd()
        procedures: Dict[str, Procedure] = {}
        for procedure_id, data in raw.get("procedures", {}).items():
            template = data.get("template")
            procedures[procedure_id] = Procedure(
                procedure_id=procedure_id,
                name=data.get("name", procedure_id),
                instruction=data.get("instruction", ""),
                template_path=(base_dir / template) if template else None,
            )

        courses: Dict[str, List[str]] = {}
        for course_id, procedure_ids in raw.get("courses", {}).items():
            known = [p for p in procedure_ids if p in procedures]
            if len(known) != len(procedure_ids):
                logger.warning(
                    "[Catalog] Course %s references unknown procedures: %s",
                    course_id,
                    sorted(set(procedure_ids) - set(known)),
                )
            courses[str(course_id)] = known

        logger.info(
            "[Catalog] Loaded %d courses, %d procedures",
            len(courses),
            len(procedures),
        )
        return cls(courses, procedures)

    @property
    def course_ids(self) -> List[str]:
        return list(self._courses)

    def has_course(self, course_id: str) -> bool:
        return course_id in self._courses

    def procedures_for(self, course_id: str) -> List[Procedure]:
        return [self._procedures[p] for p in self._courses.get(course_id, [])]

    def get_procedure(self, procedure_id: str) -> Optional[Procedure]:
        return self._procedures.get(procedure_id)
