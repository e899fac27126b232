# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the static procedure catalog.
"""

import json

from campus_assistant.core.config import settings
from campus_assistant.services.catalog import Catalog


class TestCatalog:
    """Tests for Catalog."""

    def test_course_order_preserved(self, catalog):
        assert catalog.course_ids == ["1", "2"]
        assert [p.procedure_id for p in catalog.procedures_for("2")] == [
            "certificate",
            "leave",
        ]

    def test_template_resolved_against_base_dir(self, catalog, tmp_path):
        procedure = catalog.get_procedure("certificate")
        assert procedure.template_path == tmp_path / "templates" / "certificate.docx"

    def test_procedure_without_template(self, catalog):
        assert catalog.get_procedure("leave").template_path is None

    def test_unknown_lookups(self, catalog):
        assert catalog.get_procedure("missing") is None
        assert catalog.procedures_for("9") == []
        assert not catalog.has_course("9")

    def test_unknown_procedure_references_dropped(self, tmp_path):
        """Courses never list procedures that have no definition."""
        catalog = Catalog.from_dict(
            {"courses": {"1": ["a", "ghost"]}, "procedures": {"a": {"name": "A"}}},
            base_dir=tmp_path,
        )
        assert [p.procedure_id for p in catalog.procedures_for("1")] == ["a"]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(
            json.dumps(
                {
                    "courses": {"1": ["a"]},
                    "procedures": {"a": {"name": "A", "instruction": "Do", "template": "a.docx"}},
                }
            ),
            encoding="utf-8",
        )

        catalog = Catalog.load(str(path))

        assert catalog.get_procedure("a").template_path == tmp_path / "a.docx"

    def test_bundled_catalog_loads(self):
        """The packaged catalog has four courses."""
        catalog = Catalog.load(settings.CATALOG_PATH)
        assert catalog.course_ids == ["1", "2", "3", "4"]
        assert all(catalog.procedures_for(course) for course in catalog.course_ids)

    def test_bundled_templates_exist(self):
        """Every template the packaged catalog names is shipped with it."""
        catalog = Catalog.load(settings.CATALOG_PATH)
        procedures = {
            procedure.procedure_id: procedure
            for course in catalog.course_ids
            for procedure in catalog.procedures_for(course)
        }

        missing = [
            procedure_id
            for procedure_id, procedure in procedures.items()
            if procedure.template_path is None or not procedure.template_path.is_file()
        ]
        assert procedures
        assert missing == []
