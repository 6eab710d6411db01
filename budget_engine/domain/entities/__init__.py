"""
Domain Entities - Budget line items, column layouts and validation reports.
"""

from .budget_line_item import (
    BudgetLineItem,
    TEXT_FIELDS,
    NUMERIC_FIELDS,
    MAPPABLE_FIELDS,
    COST_COMPONENTS,
)
from .column_layout import (
    ColumnLayout,
    TemplateColumn,
    BUDGET_COLUMNS,
    load_layouts,
    get_layout,
)
from .validation_result import ValidationIssue, ValidationResult

__all__ = [
    'BudgetLineItem', 'TEXT_FIELDS', 'NUMERIC_FIELDS', 'MAPPABLE_FIELDS', 'COST_COMPONENTS',
    'ColumnLayout', 'TemplateColumn', 'BUDGET_COLUMNS', 'load_layouts', 'get_layout',
    'ValidationIssue', 'ValidationResult',
]
