"""
Column Layout - Named map from budget fields to spreadsheet column indices.

Layout variants differ only in where each field lives; everything downstream
of the row mapper is shared. A malformed layout is a deployment bug, so
construction fails fast with LayoutConfigurationError.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..exceptions import LayoutConfigurationError, UnknownLayoutError
from .budget_line_item import MAPPABLE_FIELDS


class ColumnLayout(BaseModel):
    """
    Fixed-position spreadsheet layout.

    Attributes:
        name: Layout identifier (e.g. 'template', 'sw62')
        description: Human-readable description
        headers: Expected header row, used for layout detection
        columns: Field name -> zero-based column index
        conversion_factor: Optional column holding an explicit conversion factor
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    headers: List[str] = Field(default_factory=list)
    columns: Dict[str, int]
    conversion_factor: Optional[int] = None

    @model_validator(mode="after")
    def _check_columns(self) -> "ColumnLayout":
        missing = [f for f in MAPPABLE_FIELDS if f not in self.columns]
        if missing:
            raise ValueError(f"missing column index for: {', '.join(missing)}")

        unknown = sorted(set(self.columns) - set(MAPPABLE_FIELDS))
        if unknown:
            raise ValueError(f"unknown fields: {', '.join(unknown)}")

        indices = list(self.columns.values())
        if self.conversion_factor is not None:
            indices.append(self.conversion_factor)
        if any(i < 0 for i in indices):
            raise ValueError("column indices must be non-negative")
        if len(indices) != len(set(indices)):
            raise ValueError("two fields share a column index")
        return self

    @property
    def width(self) -> int:
        """Number of columns a complete row in this layout has."""
        if self.headers:
            return len(self.headers)
        return max(self.index_of(f) for f in self.columns) + 1

    def index_of(self, field_name: str) -> int:
        """Column index for a field."""
        if field_name == "conversion_factor" and self.conversion_factor is not None:
            return self.conversion_factor
        try:
            return self.columns[field_name]
        except KeyError:
            raise LayoutConfigurationError(self.name, f"no column for field '{field_name}'")

    def header_for(self, field_name: str) -> str:
        """Header label for a field, falling back to the field name."""
        index = self.index_of(field_name)
        if index < len(self.headers) and self.headers[index]:
            return self.headers[index]
        return field_name

    @classmethod
    def from_definition(cls, name: str, definition: dict) -> "ColumnLayout":
        """
        Build a layout from its config definition.

        Raises:
            LayoutConfigurationError: If the definition is malformed
        """
        if not isinstance(definition, dict):
            raise LayoutConfigurationError(name, "definition must be a mapping")
        columns = dict(definition.get("columns") or {})
        conversion_factor = columns.pop("conversion_factor", None)
        try:
            return cls(
                name=name,
                description=definition.get("description", ""),
                headers=[str(h) for h in definition.get("headers", [])],
                columns=columns,
                conversion_factor=conversion_factor,
            )
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            raise LayoutConfigurationError(name, reasons)


def load_layouts(config) -> Dict[str, ColumnLayout]:
    """Build every configured layout, failing fast on the first bad one."""
    return {
        name: ColumnLayout.from_definition(name, definition)
        for name, definition in config.layouts.items()
    }


def get_layout(name: Optional[str], config) -> ColumnLayout:
    """
    Look up a configured layout by name (default layout when name is None).

    Raises:
        UnknownLayoutError: If the layout is not configured
        LayoutConfigurationError: If it is configured but malformed
    """
    name = name or config.default_layout_name
    definition = config.get_layout_definition(name)
    if definition is None:
        raise UnknownLayoutError(name, sorted(config.layouts))
    return ColumnLayout.from_definition(name, definition)


# =============================================================================
# Template Columns
# =============================================================================

@dataclass(frozen=True)
class TemplateColumn:
    """One column of the downloadable budget template."""
    header: str
    key: str
    required: bool
    description: str


BUDGET_COLUMNS = (
    TemplateColumn("Line Item Number", "lineItemNumber", True, "Unique identifier for the line item (required)"),
    TemplateColumn("Line Item Name", "lineItemName", False, "Description of the work item"),
    TemplateColumn("Unconverted Unit", "unconvertedUnit", False, "Unit of measure (e.g., SF, CY, LF)"),
    TemplateColumn("Unconverted Qty", "unconvertedQty", False, "Original quantity"),
    TemplateColumn("Actual Qty", "actualQty", False, "Actual quantity used"),
    TemplateColumn("Unit Cost", "unitCost", False, "Cost per unit (number format)"),
    TemplateColumn("Unit Total", "unitTotal", False, "Formula: Unit Cost × Unconverted Qty"),
    TemplateColumn("Cost Code", "costCode", True, "Project cost code (see valid codes)"),
    TemplateColumn("Converted Unit", "convertedUnit", False, "Converted unit of measure"),
    TemplateColumn("Converted Qty", "convertedQty", False, "Formula: Unconverted Qty × Conversion Factor"),
    TemplateColumn("Production Rate", "productionRate", False, "Work rate per unit"),
    TemplateColumn("Hours", "hours", False, "Formula: Converted Qty × Production Rate"),
    TemplateColumn("Labor Cost", "laborCost", False, "Formula: Hours × labor rate"),
    TemplateColumn("Equipment Cost", "equipmentCost", False, "Equipment costs (number format)"),
    TemplateColumn("Trucking Cost", "truckingCost", False, "Trucking expenses (number format)"),
    TemplateColumn("Dump Fees", "dumpFees", False, "Dump fees (number format)"),
    TemplateColumn("Material Cost", "materialCost", False, "Material expenses (number format)"),
    TemplateColumn("Subcontractor Cost", "subcontractorCost", False, "Subcontractor fees (number format)"),
    TemplateColumn("Budget Total", "budgetTotal", False, "Formula: Sum of Labor through Subcontractor costs"),
    TemplateColumn("Billing", "billing", False, "Equal to Unit Total"),
)
