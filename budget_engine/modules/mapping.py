"""
Row Mapping Module for the Budget Import Engine.

Converts fixed-position spreadsheet rows into BudgetLineItem drafts using a
ColumnLayout, and picks a layout from a sheet's header row.

Mapping is lenient: malformed numbers become "0" so a whole sheet can always
be parsed. Whether the sheet is acceptable is the validator's call.
"""
import logging
import re
from typing import Dict, List, Optional, Sequence

from rapidfuzz import fuzz

from ..config import BudgetEngineConfig, get_config
from ..domain.entities import BudgetLineItem, ColumnLayout, TEXT_FIELDS, NUMERIC_FIELDS
from ..domain.entities import load_layouts
from ..domain.exceptions import UnknownLayoutError
from .cost_codes import normalize_cost_code
from .numeric import Cell, canonical, cell_text, is_blank, normalize_number, safe_divide, to_decimal

logger = logging.getLogger(__name__)

Row = Sequence[Cell]


def get_cell(row: Row, index: int) -> Cell:
    """Cell at index, or None when the row is shorter than the layout."""
    if index < len(row):
        return row[index]
    return None


def row_has_data(row: Row) -> bool:
    """Whether any cell in the row is populated."""
    return any(not is_blank(cell) for cell in row)


def derive_conversion_factor(unconverted_qty: str, converted_qty: str) -> str:
    """
    conversion_factor = converted_qty / unconverted_qty, or "1" when unconverted is zero.
    """
    unconverted = to_decimal(unconverted_qty)
    if unconverted == 0:
        return "1"
    return canonical(safe_divide(to_decimal(converted_qty), unconverted))


def map_row(row: Row, layout: ColumnLayout,
            config: Optional[BudgetEngineConfig] = None) -> Optional[BudgetLineItem]:
    """
    Map one raw row to a BudgetLineItem draft.

    Rules:
    1. Blank line item number → None (row skipped)
    2. Text fields are trimmed, blank → ""
    3. Numeric fields go through the lenient normalizer, blank → "0"
    4. is_group when both quantity cells are blank
    5. conversion_factor from the layout's explicit column when present,
       else derived from the two quantities (a blank converted qty reads as 0)

    Derived columns are carried as read; FormulaEngine.compute fills them in.
    """
    config = config or get_config()

    number = cell_text(get_cell(row, layout.index_of("line_item_number")))
    if not number:
        return None

    values: Dict[str, object] = {}
    for name in TEXT_FIELDS:
        values[name] = cell_text(get_cell(row, layout.index_of(name)))
    values["cost_code"] = normalize_cost_code(values["cost_code"], config)

    provided = set()
    for name in NUMERIC_FIELDS:
        cell = get_cell(row, layout.index_of(name))
        values[name] = normalize_number(cell)
        if not is_blank(cell):
            provided.add(name)

    has_qty = "unconverted_qty" in provided
    has_converted_qty = "converted_qty" in provided

    factor_cell = None
    if layout.conversion_factor is not None:
        factor_cell = get_cell(row, layout.conversion_factor)
    if not is_blank(factor_cell):
        conversion_factor = normalize_number(factor_cell)
    else:
        conversion_factor = derive_conversion_factor(values["unconverted_qty"], values["converted_qty"])

    return BudgetLineItem(
        conversion_factor=conversion_factor,
        is_group=not has_qty and not has_converted_qty,
        provided=frozenset(provided),
        **values,
    )


def map_sheet(sheet: Sequence[Row], layout: ColumnLayout,
              config: Optional[BudgetEngineConfig] = None) -> List[BudgetLineItem]:
    """Map every body row (header row 0 excluded), dropping skipped rows."""
    items = []
    for index, row in enumerate(sheet[1:], start=1):
        item = map_row(row, layout, config)
        if item is None:
            logger.debug(f"Row {index}: blank line item number, skipped")
            continue
        items.append(item)
    return items


# =============================================================================
# Layout Detection
# =============================================================================

def _header_key(value: Cell) -> str:
    return re.sub(r"\s+", " ", cell_text(value)).lower()


def score_header(header_row: Row, layout: ColumnLayout) -> float:
    """
    Average per-column similarity (0-100) between a sheet header and a layout.
    """
    if not layout.headers:
        return 0.0
    scores = []
    for index, expected in enumerate(layout.headers):
        actual = _header_key(get_cell(header_row, index))
        expected = _header_key(expected)
        if not expected and not actual:
            scores.append(100.0)
        else:
            scores.append(fuzz.ratio(expected, actual))
    return sum(scores) / len(scores)


def detect_layout(header_row: Row, config: Optional[BudgetEngineConfig] = None,
                  layouts: Optional[Dict[str, ColumnLayout]] = None) -> ColumnLayout:
    """
    Pick the layout whose expected headers best match a sheet's header row.

    Falls back to the default layout when no layout reaches the configured
    detection threshold. Ties go to the default layout, then config order.
    """
    config = config or get_config()
    layouts = layouts or load_layouts(config)
    default_name = config.default_layout_name
    if default_name not in layouts:
        raise UnknownLayoutError(default_name, list(layouts))

    best_name, best_score = None, -1.0
    for name, layout in layouts.items():
        score = score_header(header_row, layout)
        logger.debug(f"Layout '{name}' header score: {score:.1f}")
        if score > best_score or (score == best_score and name == default_name):
            best_name, best_score = name, score

    if best_name is None or best_score < config.layout_detection_threshold:
        logger.debug(f"No layout reached threshold, using default '{default_name}'")
        return layouts[default_name]
    return layouts[best_name]
