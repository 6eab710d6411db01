"""
Budget Line Item Entity - One row of a location's budget.

Numeric fields are decimal strings so values survive storage and transport
without binary float drift. Records are frozen; every change produces a new
instance through dataclasses.replace.
"""
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from typing import FrozenSet, Optional

from ...modules.numeric import to_decimal


# Fields read from the sheet as plain text
TEXT_FIELDS = (
    "line_item_number",
    "line_item_name",
    "unconverted_unit_of_measure",
    "converted_unit_of_measure",
    "cost_code",
)

# Fields read from the sheet through the numeric normalizer
NUMERIC_FIELDS = (
    "unconverted_qty",
    "actual_qty",
    "unit_cost",
    "unit_total",
    "converted_qty",
    "production_rate",
    "hours",
    "labor_cost",
    "equipment_cost",
    "trucking_cost",
    "dump_fees_cost",
    "material_cost",
    "subcontractor_cost",
    "budget_total",
    "billing",
)

# Columns a layout may map; conversion_factor is optional
MAPPABLE_FIELDS = TEXT_FIELDS + NUMERIC_FIELDS

# Cost components summed into budget_total
COST_COMPONENTS = (
    "labor_cost",
    "equipment_cost",
    "trucking_cost",
    "dump_fees_cost",
    "material_cost",
    "subcontractor_cost",
)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class BudgetLineItem:
    """
    Budget line item as imported from a spreadsheet.

    Attributes:
        line_item_number: Unique identifier within a sheet; "3.2" is a child of "3"
        line_item_name: Description of the work
        cost_code: Canonical work-category tag
        unconverted_unit_of_measure / unconverted_qty: Quantity as measured
        converted_unit_of_measure / converted_qty: Quantity as billed or tracked
        conversion_factor: converted_qty / unconverted_qty
        actual_qty / actual_conv_qty: Consumed quantities entered after budgeting
        is_group: Category header row with no quantities
        location_id: Owning location, set when the item is handed to storage
    """

    line_item_number: str
    line_item_name: str = ""
    cost_code: str = ""

    unconverted_unit_of_measure: str = ""
    unconverted_qty: str = "0"
    converted_unit_of_measure: str = ""
    converted_qty: str = "0"
    conversion_factor: str = "1"

    unit_cost: str = "0"
    unit_total: str = "0"
    production_rate: str = "0"
    hours: str = "0"
    labor_cost: str = "0"
    equipment_cost: str = "0"
    trucking_cost: str = "0"
    dump_fees_cost: str = "0"
    material_cost: str = "0"
    subcontractor_cost: str = "0"
    budget_total: str = "0"
    billing: str = "0"

    actual_qty: str = "0"
    actual_conv_qty: str = "0"

    notes: str = ""
    is_group: bool = False
    location_id: Optional[int] = None

    # Numeric fields that held a value in the source sheet
    provided: FrozenSet[str] = field(default=frozenset(), compare=False, repr=False)

    def decimal(self, field_name: str) -> Decimal:
        """Numeric field value as a Decimal (lenient)."""
        return to_decimal(getattr(self, field_name))

    @property
    def parent_number(self) -> Optional[str]:
        """Parent line item number for hierarchical numbers ("3.2" -> "3")."""
        if "." not in self.line_item_number:
            return None
        return self.line_item_number.rsplit(".", 1)[0]

    def with_location(self, location_id: int) -> "BudgetLineItem":
        """Copy of this item owned by a location."""
        return replace(self, location_id=location_id)

    def to_dict(self) -> dict:
        """Convert to the camelCase payload the storage API accepts."""
        return {
            _camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if f.name != "provided"
        }
