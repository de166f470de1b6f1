"""Tests for output records and file extraction."""

import pytest

from docintel.errors import ExtractionError, UnsupportedFormatError
from docintel.extract.base import Criticality, Requirement, RequirementCategory
from docintel.extract_pages import extract_text
from docintel.records import load_jsonl, to_record, write_jsonl


class TestToRecord:
    def test_enums_become_values(self) -> None:
        req = Requirement(
            text="Data must be encrypted.",
            category=RequirementCategory.SECURITY,
            criticality=Criticality.MUST_HAVE,
            risk_factors=["Timeline pressure"],
        )
        rec = to_record(req)

        assert rec["category"] == "security"
        assert rec["criticality"] == "must_have"
        assert rec["capability_match"] == {"score": 0, "status": "unknown", "gaps": []}
        assert rec["risk_factors"] == ["Timeline pressure"]

    def test_rejects_non_dataclasses(self) -> None:
        with pytest.raises(TypeError):
            to_record({"a": 1})

    def test_jsonl_round_trip(self, tmp_path) -> None:
        rows = [{"id": 1, "text": "ä"}, {"id": 2, "text": "b"}]
        path = tmp_path / "out" / "rows.jsonl"
        assert write_jsonl(rows, path) == 2
        assert load_jsonl(path) == rows


class TestExtractText:
    def test_plain_text(self, tmp_path) -> None:
        path = tmp_path / "brief.txt"
        path.write_text("Scope of work.\nTimeline.", encoding="utf-8")
        extracted = extract_text(path)

        assert extracted.text == "Scope of work.\nTimeline."
        assert extracted.page_count is None

    def test_unsupported_format(self, tmp_path) -> None:
        path = tmp_path / "sheet.xlsx"
        path.write_bytes(b"PK\x03\x04")
        with pytest.raises(UnsupportedFormatError):
            extract_text(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ExtractionError):
            extract_text(tmp_path / "missing.pdf")

    def test_corrupt_pdf(self, tmp_path) -> None:
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(ExtractionError):
            extract_text(path)
