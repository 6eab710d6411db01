"""
Budget Validation Service - Whole-sheet checks before an import is accepted.

Implements the import rules:
- Line item number required and unique
- Cost code required and on the allow-list
- Numeric columns must hold numbers
- Sheet must contain at least one data row

Validation reads raw rows, independent of the row mapper, and never raises
on bad data: every problem in every row lands in the ValidationResult.
"""
import logging
from typing import Dict, Optional, Sequence

from ..entities import ColumnLayout, ValidationResult, get_layout
from ..exceptions import NumberFormatError
from ...config import BudgetEngineConfig, get_config
from ...modules.cost_codes import is_valid_cost_code, suggest_cost_code, valid_cost_codes
from ...modules.mapping import Row, get_cell, row_has_data
from ...modules.numeric import ParseFailurePolicy, cell_text, is_blank, to_decimal

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "required but missing"

# Column labels used in error reports, independent of the sheet's own headers
FIELD_LABELS = {
    "line_item_number": "Line Item Number",
    "line_item_name": "Line Item Name",
    "unconverted_unit_of_measure": "Unconverted Unit",
    "unconverted_qty": "Unconverted Qty",
    "actual_qty": "Actual Qty",
    "unit_cost": "Unit Cost",
    "unit_total": "Unit Total",
    "cost_code": "Cost Code",
    "converted_unit_of_measure": "Converted Unit",
    "converted_qty": "Converted Qty",
    "production_rate": "Production Rate",
    "hours": "Hours",
    "labor_cost": "Labor Cost",
    "equipment_cost": "Equipment Cost",
    "trucking_cost": "Trucking Cost",
    "dump_fees_cost": "Dump Fees",
    "material_cost": "Material Cost",
    "subcontractor_cost": "Subcontractor Cost",
    "budget_total": "Budget Total",
    "billing": "Billing",
}


class BudgetValidationService:
    """
    Service for validating a parsed budget sheet.

    Ensures an import only proceeds when:
    - Every data row has a unique line item number
    - Every data row has a valid cost code
    - Every numeric cell parses as a number
    """

    def __init__(self, config: Optional[BudgetEngineConfig] = None,
                 layout: Optional[ColumnLayout] = None):
        self.config = config or get_config()
        self.layout = layout or get_layout(self.config.validation_layout_name, self.config)
        self.numeric_columns = list(self.config.numeric_columns)

        # Unknown numeric columns are a configuration bug, not a data problem
        for name in self.numeric_columns:
            self.layout.index_of(name)

    def _cell(self, row: Row, field_name: str):
        return get_cell(row, self.layout.index_of(field_name))

    def validate(self, sheet: Sequence[Row]) -> ValidationResult:
        """
        Validate every row of a sheet (row 0 is the header).

        Args:
            sheet: Ordered rows of raw cell values

        Returns:
            ValidationResult with all errors and warnings
        """
        result = ValidationResult()

        if not sheet:
            result.add_error(0, "File", "File is empty")
            return result

        header = sheet[0] or []
        if len(header) < self.layout.width:
            result.warnings.append(
                f"Header row has {len(header)} columns, expected {self.layout.width} "
                f"for the '{self.layout.name}' layout"
            )

        seen: Dict[str, int] = {}
        for index, row in enumerate(sheet[1:], start=1):
            row = row or []
            if not row_has_data(row):
                continue

            number = cell_text(self._cell(row, "line_item_number"))
            if not number:
                result.add_error(index, FIELD_LABELS["line_item_number"], REQUIRED_MESSAGE)
                continue

            result.row_count += 1

            if number in seen:
                result.add_error(
                    index,
                    FIELD_LABELS["line_item_number"],
                    f"Duplicate line item number '{number}' (first used in row {seen[number]})",
                )
            else:
                seen[number] = index

            self._check_cost_code(result, index, row)
            self._check_numbers(result, index, row)

        if result.row_count == 0:
            result.add_error(0, "File", "No valid data rows found")

        if not result.is_valid:
            logger.warning(
                f"Sheet failed validation: {len(result.errors)} error(s) "
                f"in {result.row_count} data row(s)"
            )
        return result

    def _check_cost_code(self, result: ValidationResult, index: int, row: Row) -> None:
        raw = cell_text(self._cell(row, "cost_code"))
        if not raw:
            result.add_error(index, FIELD_LABELS["cost_code"], REQUIRED_MESSAGE)
            return

        if is_valid_cost_code(raw, self.config):
            return

        result.add_error(
            index,
            FIELD_LABELS["cost_code"],
            f"Invalid cost code '{raw}'. Valid codes: {', '.join(valid_cost_codes(self.config))}",
        )
        suggestion = suggest_cost_code(raw, self.config)
        if suggestion:
            result.warnings.append(f"Row {index}: cost code '{raw}' may be '{suggestion}'")

    def _check_numbers(self, result: ValidationResult, index: int, row: Row) -> None:
        for name in self.numeric_columns:
            value = self._cell(row, name)
            if is_blank(value):
                continue
            try:
                to_decimal(value, on_error=ParseFailurePolicy.REPORT)
            except NumberFormatError:
                result.add_error(index, FIELD_LABELS[name], f"Invalid number format: '{value}'")
