"""
Tests for WorkbookLoader and JSON export
"""

import json
import unittest
from pathlib import Path

import pytest

from twbgraph.core.models import WorkbookLoadError, ValidationError, ExportError
from twbgraph.extraction.assembler import extract_workbook
from twbgraph.io.workbook_loader import WorkbookLoader
from twbgraph.io.json_exporter import export_result_json


class TestFindWorkbooks:
    """Workbook discovery"""

    def test_single_file(self, sample_twb_file):
        assert WorkbookLoader(str(sample_twb_file)).find_workbooks() == [sample_twb_file]

    def test_directory_recursive(self, sample_twb_file):
        nested = sample_twb_file.parent / "nested"
        nested.mkdir()
        other = nested / "other.twb"
        other.write_text("<workbook/>", encoding="utf-8")
        (sample_twb_file.parent / "notes.txt").write_text("ignored", encoding="utf-8")

        found = WorkbookLoader(str(sample_twb_file.parent)).find_workbooks()

        assert found == sorted([sample_twb_file, other])

    def test_extension_with_dot(self, sample_twb_file):
        assert WorkbookLoader(str(sample_twb_file.parent), ".twb").find_workbooks() == [sample_twb_file]

    def test_missing_path(self, tmp_path):
        with pytest.raises(WorkbookLoadError):
            WorkbookLoader(str(tmp_path / "missing")).find_workbooks()

    def test_empty_directory(self, tmp_path):
        with pytest.raises(WorkbookLoadError):
            WorkbookLoader(str(tmp_path)).find_workbooks()

    def test_empty_extension(self, tmp_path):
        with pytest.raises(ValidationError):
            WorkbookLoader(str(tmp_path), "").find_workbooks()


class TestLoadTree(unittest.TestCase):
    """Workbook parsing"""

    def test_unparseable_xml(self):
        import tempfile
        with tempfile.TemporaryDirectory() as tmp:
            broken = Path(tmp) / "broken.twb"
            broken.write_text("<workbook><datasource>", encoding="utf-8")

            with self.assertRaises(WorkbookLoadError):
                WorkbookLoader.load_tree(broken)

    def test_missing_file(self):
        with self.assertRaises(WorkbookLoadError):
            WorkbookLoader.load_tree(Path("/nonexistent/workbook.twb"))


def test_load_and_extract(sample_twb_file):
    root = WorkbookLoader.load_tree(sample_twb_file)
    result = extract_workbook(root)

    assert root.tag == "workbook"
    assert len(result.fields) == 6
    assert len(result.relationships) == 4


def test_export_result_json(sample_twb_file, tmp_path):
    result = extract_workbook(WorkbookLoader.load_tree(sample_twb_file))

    written = export_result_json(result, tmp_path / "out" / "superstore_fields.json")

    with open(written, encoding="utf-8") as f:
        data = json.load(f)
    assert set(data) == {"mode", "fields", "calcs", "relationships"}
    assert data["relationships"][0] == {"from": "Profit", "to": "Profit Ratio"}
    profit_ratio = next(f for f in data["fields"] if f["caption"] == "Profit Ratio")
    assert profit_ratio["calculation_formula_original"] == "SUM([Profit])/SUM([Sales])"
    assert profit_ratio["category"] == "CalculatedField"


def test_export_to_directory_fails(sample_twb_file, tmp_path):
    result = extract_workbook(WorkbookLoader.load_tree(sample_twb_file))

    with pytest.raises(ExportError):
        export_result_json(result, tmp_path)
