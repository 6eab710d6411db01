"""
Tests for loading budget sheets from disk.
"""
import pandas as pd
import pytest

from budget_engine.domain.exceptions import SheetLoadError
from budget_engine.modules.etl import choose_sheet_name, file_hash, frame_to_rows, load_sheet


@pytest.fixture
def csv_file(tmp_path, template_header):
    path = tmp_path / "budget.csv"
    lines = [
        ",".join(template_header),
        '1,Grading,CY,100,,10,,Base/Grading,TON,,1.5,,,0,0,0,0,0,,',
        ',,,,,,,,,,,,,,,,,,,',
        '2,Curb,LF,50,,"$1,250.00",,Concrete',
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def xlsx_file(tmp_path, template_header):
    path = tmp_path / "budget.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["Summary", 1]]).to_excel(writer, sheet_name="Summary", header=False, index=False)
        pd.DataFrame([template_header, ["1", "Grading", "CY", 100, None, 10.5]]).to_excel(
            writer, sheet_name="Line Items", header=False, index=False
        )
    return path


class TestLoadCsv:
    """Tests for CSV loading."""

    def test_rows_as_text(self, csv_file, template_header):
        rows = load_sheet(csv_file)
        assert rows[0] == template_header
        assert rows[1][:4] == ["1", "Grading", "CY", "100"]
        assert rows[1][4] is None
        assert rows[2] == []
        assert rows[3][5] == "$1,250.00"

    def test_trailing_blanks_trimmed(self, csv_file):
        rows = load_sheet(csv_file)
        assert len(rows[1]) == 18
        assert len(rows[3]) == 8


class TestLoadExcel:
    """Tests for Excel loading."""

    def test_preferred_sheet(self, xlsx_file, template_header):
        """Test 'Line Items' is chosen over the first sheet."""
        rows = load_sheet(xlsx_file)
        assert rows[0] == template_header
        assert rows[1][:4] == ["1", "Grading", "CY", 100]
        assert rows[1][4] is None
        assert rows[1][5] == 10.5

    def test_requested_sheet(self, xlsx_file):
        rows = load_sheet(xlsx_file, sheet_name="Summary")
        assert rows == [["Summary", 1]]

    def test_missing_requested_sheet(self, xlsx_file):
        with pytest.raises(SheetLoadError, match="not found"):
            load_sheet(xlsx_file, sheet_name="Budget")


class TestLoadErrors:
    """Tests for unreadable input."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(SheetLoadError) as exc_info:
            load_sheet(tmp_path / "absent.xlsx")
        assert exc_info.value.code == "SHEET_LOAD_ERROR"

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "budget.txt"
        path.write_text("1,2,3\n")
        with pytest.raises(SheetLoadError, match="unsupported"):
            load_sheet(path)


class TestHelpers:
    """Tests for sheet selection and conversion helpers."""

    def test_choose_sheet_name(self, config):
        assert choose_sheet_name(["Summary", "Line Items"], config=config) == "Line Items"
        assert choose_sheet_name(["Line Items", "full location"], config=config) == "full location"
        assert choose_sheet_name(["Summary", "Other"], config=config) == "Summary"
        assert choose_sheet_name(["Summary", "Other"], "Other", config) == "Other"

    def test_choose_sheet_name_errors(self, config):
        with pytest.raises(ValueError):
            choose_sheet_name([], config=config)
        with pytest.raises(ValueError):
            choose_sheet_name(["Summary"], "Missing", config)

    def test_frame_to_rows(self):
        df = pd.DataFrame([["a", None, ""], [None, None, None]], dtype=object)
        assert frame_to_rows(df) == [["a"], []]

    def test_file_hash(self, tmp_path):
        path = tmp_path / "a.csv"
        path.write_text("x")
        assert file_hash(path) == "9dd4e461268c8034f5c8564e155c67a6"
        assert file_hash(tmp_path / "missing.csv") == ""
