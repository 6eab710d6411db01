"""
Formula Engine - Derived budget fields and actuals recomputation.

Fixed formula set:
    unit_total    = unconverted_qty * unit_cost
    converted_qty = unconverted_qty * conversion_factor
    hours         = converted_qty * production_rate
    labor_cost    = hours * labor_rate
    budget_total  = labor_cost + equipment + trucking + dump fees + material + subcontractor
    billing       = unit_total

Every function here is pure: input records are never mutated, a new
BudgetLineItem is returned instead.
"""
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from ..entities.budget_line_item import BudgetLineItem, COST_COMPONENTS
from ...config import BudgetEngineConfig, get_config, SHEET_VALUE_POLICIES
from ...modules.numeric import ZERO, canonical, format_money, normalize_number, safe_divide, to_decimal

# Fields the engine derives; any sheet value for them is replaced under 'recompute'
DERIVED_FIELDS = ("unit_total", "converted_qty", "hours", "labor_cost", "budget_total", "billing")

# Cost components entered on the sheet; labor is derived
OTHER_COSTS = tuple(c for c in COST_COMPONENTS if c != "labor_cost")


class FormulaEngine:
    """
    Computes derived budget fields.

    Args:
        labor_rate: Per-hour labor rate (required; no built-in default)
        sheet_values: 'recompute' always applies the formulas. 'prefer_sheet'
            keeps a derived value the sheet supplied and only computes the
            blanks; later formulas then build on the kept value.
    """

    def __init__(self, labor_rate: Union[str, int, Decimal], sheet_values: str = "recompute"):
        if sheet_values not in SHEET_VALUE_POLICIES:
            raise ValueError(f"sheet_values must be one of {SHEET_VALUE_POLICIES}, got {sheet_values!r}")
        self.labor_rate = to_decimal(labor_rate)
        self.sheet_values = sheet_values

    @classmethod
    def from_config(cls, config: Optional[BudgetEngineConfig] = None) -> "FormulaEngine":
        """Build an engine with the configured labor rate and sheet-value policy."""
        config = config or get_config()
        return cls(labor_rate=config.labor_rate, sheet_values=config.sheet_value_policy)

    def _pick(self, item: BudgetLineItem, name: str, computed: Decimal) -> Decimal:
        if self.sheet_values == "prefer_sheet" and name in item.provided:
            return item.decimal(name)
        return computed

    def compute(self, item: BudgetLineItem) -> BudgetLineItem:
        """
        Forward computation (import): fill every derived field from the inputs.

        Inputs are used at full precision; only the derived fields are
        rendered to two decimals.

        Returns:
            New BudgetLineItem with derived fields rendered to two decimals
        """
        qty = item.decimal("unconverted_qty")
        factor = item.decimal("conversion_factor")

        unit_total = self._pick(item, "unit_total", qty * item.decimal("unit_cost"))
        converted_qty = self._pick(item, "converted_qty", qty * factor)
        hours = self._pick(item, "hours", converted_qty * item.decimal("production_rate"))
        labor_cost = self._pick(item, "labor_cost", hours * self.labor_rate)

        other_costs = sum((item.decimal(c) for c in OTHER_COSTS), ZERO)
        budget_total = self._pick(item, "budget_total", labor_cost + other_costs)
        billing = self._pick(item, "billing", unit_total)

        return replace(
            item,
            unit_total=format_money(unit_total),
            converted_qty=format_money(converted_qty),
            hours=format_money(hours),
            labor_cost=format_money(labor_cost),
            budget_total=format_money(budget_total),
            billing=format_money(billing),
        )

    def recalculate_on_qty_change(self, item: BudgetLineItem, new_unconverted_qty) -> BudgetLineItem:
        """
        Edit the budgeted unconverted quantity and recompute everything derived from it.

        The stored conversion factor is kept; sheet-supplied derived values no
        longer apply once the quantity changes.
        """
        edited = replace(
            item,
            unconverted_qty=normalize_number(new_unconverted_qty),
            provided=item.provided - set(DERIVED_FIELDS),
        )
        return self.compute(edited)


# =============================================================================
# Actuals (edit mode)
# =============================================================================

def apply_actual_qty(item: BudgetLineItem, value) -> BudgetLineItem:
    """
    Set actual_qty and recompute actual_conv_qty = actual_qty * conversion_factor.

    Both values are kept in canonical form, unrounded, so alternating edits of
    the pair settle on the same values; format_money them for display.
    """
    qty = to_decimal(value)
    conv = qty * item.decimal("conversion_factor")
    return replace(item, actual_qty=canonical(qty), actual_conv_qty=canonical(conv))


def apply_actual_conv_qty(item: BudgetLineItem, value) -> BudgetLineItem:
    """
    Set actual_conv_qty and recompute actual_qty = actual_conv_qty / conversion_factor.

    A zero conversion factor yields actual_qty "0".
    """
    conv = to_decimal(value)
    qty = safe_divide(conv, item.decimal("conversion_factor"))
    return replace(item, actual_qty=canonical(qty), actual_conv_qty=canonical(conv))


def rollup_parent_actuals(items: Sequence[BudgetLineItem]) -> List[BudgetLineItem]:
    """
    Give every parent line item the summed actuals of its direct children.

    "3.1" and "3.2" roll up into "3"; "3.2.1" rolls into "3.2" first, which
    then rolls into "3". Order of the input is preserved.
    """
    by_number = {item.line_item_number: item for item in items}
    children: Dict[str, List[str]] = defaultdict(list)
    for item in items:
        parent = item.parent_number
        if parent is not None and parent in by_number:
            children[parent].append(item.line_item_number)

    # Deepest parents first so nested totals feed their own parents
    for parent in sorted(children, key=lambda n: n.count("."), reverse=True):
        kids = [by_number[n] for n in children[parent]]
        qty = sum((k.decimal("actual_qty") for k in kids), ZERO)
        conv = sum((k.decimal("actual_conv_qty") for k in kids), ZERO)
        by_number[parent] = replace(
            by_number[parent],
            actual_qty=canonical(qty),
            actual_conv_qty=canonical(conv),
        )

    return [by_number[item.line_item_number] for item in items]


def summarize_hours_by_cost_code(items: Sequence[BudgetLineItem]) -> Dict[str, dict]:
    """
    Budgeted hours and labor cost per cost code, for project summaries.

    Group rows and items without a cost code are left out.
    """
    totals: Dict[str, dict] = {}
    for item in items:
        if item.is_group or not item.cost_code:
            continue
        entry = totals.setdefault(item.cost_code, {'hours': ZERO, 'labor_cost': ZERO, 'items': 0})
        entry['hours'] += item.decimal("hours")
        entry['labor_cost'] += item.decimal("labor_cost")
        entry['items'] += 1

    return {
        code: {
            'hours': format_money(entry['hours']),
            'labor_cost': format_money(entry['labor_cost']),
            'items': entry['items'],
        }
        for code, entry in totals.items()
    }
