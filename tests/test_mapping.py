"""
Tests for spreadsheet row mapping, column layouts and layout detection.
"""
import pytest
from decimal import Decimal

from budget_engine.domain.entities import ColumnLayout, get_layout, load_layouts
from budget_engine.domain.exceptions import LayoutConfigurationError, UnknownLayoutError
from budget_engine.modules.mapping import (
    derive_conversion_factor,
    detect_layout,
    map_row,
    map_sheet,
    row_has_data,
    score_header,
)
from budget_engine.modules.numeric import format_money, to_decimal


# =============================================================================
# Column Layouts
# =============================================================================

class TestColumnLayout:
    """Tests for ColumnLayout construction and lookups."""

    def test_builtin_layouts_load(self, config):
        """Test every configured layout is well-formed."""
        layouts = load_layouts(config)
        assert set(layouts) == {"template", "sw62", "sw62_legacy"}
        assert layouts["template"].width == 20
        assert layouts["sw62_legacy"].width == 21

    def test_layouts_differ_only_in_indices(self, config):
        """Test all layouts map the same field set."""
        layouts = load_layouts(config)
        field_sets = {frozenset(layout.columns) for layout in layouts.values()}
        assert len(field_sets) == 1

    def test_index_and_header_lookup(self, config):
        layout = get_layout("sw62_legacy", config)
        assert layout.index_of("cost_code") == 8
        assert layout.header_for("cost_code") == "Cost Code"
        assert get_layout("template", config).index_of("cost_code") == 7

    def test_default_layout(self, config):
        assert get_layout(None, config).name == "template"

    def test_unknown_layout(self, config):
        with pytest.raises(UnknownLayoutError) as exc_info:
            get_layout("nope", config)
        assert "template" in exc_info.value.available

    def test_missing_column_fails_fast(self, config):
        """Test a layout missing a field index is rejected."""
        definition = config.get_layout_definition("template")
        columns = dict(definition["columns"])
        del columns["hours"]
        with pytest.raises(LayoutConfigurationError, match="hours"):
            ColumnLayout.from_definition("broken", {"columns": columns})

    def test_duplicate_index_fails_fast(self, config):
        columns = dict(config.get_layout_definition("template")["columns"])
        columns["hours"] = columns["labor_cost"]
        with pytest.raises(LayoutConfigurationError, match="share"):
            ColumnLayout.from_definition("broken", {"columns": columns})

    def test_negative_index_fails_fast(self, config):
        columns = dict(config.get_layout_definition("template")["columns"])
        columns["hours"] = -1
        with pytest.raises(LayoutConfigurationError):
            ColumnLayout.from_definition("broken", {"columns": columns})

    def test_unknown_field_fails_fast(self, config):
        columns = dict(config.get_layout_definition("template")["columns"])
        columns["profit_margin"] = 30
        with pytest.raises(LayoutConfigurationError, match="profit_margin"):
            ColumnLayout.from_definition("broken", {"columns": columns})

    def test_unknown_field_lookup(self, config):
        with pytest.raises(LayoutConfigurationError):
            get_layout("template", config).index_of("bogus")


# =============================================================================
# Row Mapping
# =============================================================================

class TestMapRow:
    """Tests for map_row."""

    def test_blank_line_item_number_skipped(self, config, make_row):
        layout = get_layout("template", config)
        assert map_row(make_row(line_item_name="Grading"), layout) is None
        assert map_row(make_row(line_item_number="   ", line_item_name="Grading"), layout) is None

    def test_fields_mapped_by_layout(self, config, make_row):
        """Test text and numeric fields read from their layout columns."""
        layout = get_layout("template", config)
        row = make_row(
            line_item_number=" 3 ",
            line_item_name="Grading",
            unconverted_unit_of_measure="CY",
            unconverted_qty="100",
            unit_cost="$1,250.50",
            cost_code="base/grading",
            converted_unit_of_measure="TON",
            converted_qty="150",
            production_rate="1.5",
            equipment_cost="(250.00)",
        )
        item = map_row(row, layout)

        assert item.line_item_number == "3"
        assert item.line_item_name == "Grading"
        assert item.unconverted_unit_of_measure == "CY"
        assert item.converted_unit_of_measure == "TON"
        assert item.unconverted_qty == "100"
        assert item.unit_cost == "1250.5"
        assert item.cost_code == "Base/Grading"
        assert item.equipment_cost == "-250"
        assert item.conversion_factor == "1.5"
        assert item.is_group is False

    def test_blank_cells_default(self, config):
        """Test short rows default missing text to '' and numbers to '0'."""
        layout = get_layout("template", config)
        item = map_row(["7", "Mobilization"], layout)
        assert item.cost_code == ""
        assert item.unit_cost == "0"
        assert item.budget_total == "0"
        assert item.actual_qty == "0"
        assert item.notes == ""

    def test_malformed_numbers_coerced(self, config, make_row):
        """Test the mapper is lenient with bad numbers."""
        layout = get_layout("template", config)
        item = map_row(make_row(line_item_number="1", unconverted_qty="10", unit_cost="ten"), layout)
        assert item.unit_cost == "0"

    def test_group_row(self, config, make_row):
        """Test rows without either quantity are groups."""
        layout = get_layout("template", config)
        item = map_row(make_row(line_item_number="1", line_item_name="SITE WORK"), layout)
        assert item.is_group is True

    def test_converted_qty_alone_is_not_group(self, config, make_row):
        layout = get_layout("template", config)
        item = map_row(make_row(line_item_number="1", converted_qty="5"), layout)
        assert item.is_group is False

    def test_numeric_line_item_number(self, config, make_row):
        """Test numbers typed into the identifier column read as text."""
        layout = get_layout("template", config)
        assert map_row(make_row(line_item_number=3.0, unconverted_qty=1), layout).line_item_number == "3"
        assert map_row(make_row(line_item_number=3.2, unconverted_qty=1), layout).line_item_number == "3.2"

    def test_provided_fields(self, config, make_row):
        """Test which numeric fields the sheet supplied is recorded."""
        layout = get_layout("template", config)
        item = map_row(make_row(line_item_number="1", unconverted_qty="5", unit_total="50"), layout)
        assert item.provided == frozenset({"unconverted_qty", "unit_total"})

    def test_legacy_layout(self, config, make_row):
        """Test the 21-column layout reads cost code from column I."""
        layout = get_layout("sw62_legacy", config)
        row = make_row(layout="sw62_legacy", line_item_number="2", unconverted_qty="4",
                       cost_code="ASPHALT", converted_qty="8", billing="99")
        assert row[8] == "ASPHALT"
        item = map_row(row, layout)
        assert item.cost_code == "Asphalt"
        assert item.converted_qty == "8"
        assert item.conversion_factor == "2"
        assert item.billing == "99"


class TestConversionFactor:
    """Tests for conversion factor derivation."""

    def test_derived_from_quantities(self):
        assert derive_conversion_factor("100", "150") == "1.5"
        assert derive_conversion_factor("4", "1") == "0.25"

    def test_zero_unconverted_defaults_to_one(self):
        assert derive_conversion_factor("0", "10") == "1"

    def test_round_trip(self):
        """Test factor reapplied to the quantity reproduces converted qty at 2 decimals."""
        pairs = [("3", "1"), ("7", "22"), ("100", "150"), ("0.5", "0.25"), ("30000", "2")]
        for qty, converted in pairs:
            factor = derive_conversion_factor(qty, converted)
            reapplied = to_decimal(qty) * to_decimal(factor)
            assert format_money(reapplied) == format_money(converted)

    def test_blank_converted_qty_gives_zero_factor(self, config, make_row):
        """Test a blank converted qty reads as 0, so the factor is 0 / qty."""
        layout = get_layout("template", config)
        item = map_row(make_row(line_item_number="1", unconverted_qty="100"), layout)
        assert item.conversion_factor == "0"
        assert item.converted_qty == "0"

    def test_blank_quantities_give_unit_factor(self, config, make_row):
        """Test the factor defaults to 1 only when unconverted qty is zero."""
        layout = get_layout("template", config)
        assert map_row(make_row(line_item_number="1", converted_qty="5"), layout).conversion_factor == "1"
        assert map_row(make_row(line_item_number="2"), layout).conversion_factor == "1"

    def test_explicit_factor_column(self, config, make_row):
        """Test a layout with a conversion factor column uses it directly."""
        columns = dict(config.get_layout_definition("template")["columns"])
        columns["conversion_factor"] = 20
        layout = ColumnLayout.from_definition("with_factor", {"columns": columns})
        row = make_row(line_item_number="1", unconverted_qty="10", converted_qty="99") + ["2.5"]
        item = map_row(row, layout)
        assert item.conversion_factor == "2.5"
        assert Decimal(item.conversion_factor) == Decimal("2.5")


class TestMapSheet:
    """Tests for map_sheet."""

    def test_header_and_blank_rows_skipped(self, config, make_row, template_header):
        layout = get_layout("template", config)
        sheet = [
            template_header,
            make_row(line_item_number="1", line_item_name="SITE WORK"),
            make_row(line_item_number="1.1", unconverted_qty="10"),
            [],
            make_row(line_item_name="orphan note"),
            make_row(line_item_number="1.2", unconverted_qty="5"),
        ]
        items = map_sheet(sheet, layout)
        assert [i.line_item_number for i in items] == ["1", "1.1", "1.2"]

    def test_row_has_data(self):
        assert not row_has_data([])
        assert not row_has_data([None, "  ", None])
        assert row_has_data([None, 0])


# =============================================================================
# Layout Detection
# =============================================================================

class TestDetectLayout:
    """Tests for header-based layout detection."""

    def test_template_header(self, config, template_header):
        assert detect_layout(template_header, config).name == "template"

    def test_sw62_header(self, config, sw62_header):
        assert detect_layout(sw62_header, config).name == "sw62"

    def test_legacy_header(self, config, sw62_header):
        header = sw62_header[:7] + [None] + sw62_header[7:19] + ["BILLING"]
        assert detect_layout(header, config).name == "sw62_legacy"

    def test_case_and_spacing_ignored(self, config, template_header):
        header = [h.upper().replace(" ", "  ") for h in template_header]
        assert detect_layout(header, config).name == "template"

    def test_unrecognized_header_uses_default(self, config):
        assert detect_layout(["a", "b", "c"], config).name == "template"
        assert detect_layout([], config).name == "template"

    def test_score_header(self, config, template_header):
        layout = get_layout("template", config)
        assert score_header(template_header, layout) == 100.0
        assert score_header([], layout) == 0.0
