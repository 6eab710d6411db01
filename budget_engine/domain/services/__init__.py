"""
Domain Services - Formula computation, sheet validation and the import pipeline.
"""

from .formula_engine import (
    FormulaEngine,
    apply_actual_qty,
    apply_actual_conv_qty,
    rollup_parent_actuals,
    summarize_hours_by_cost_code,
)
from .budget_validation_service import BudgetValidationService
from .budget_import_service import BudgetImportService, ImportResult

__all__ = [
    'FormulaEngine',
    'apply_actual_qty',
    'apply_actual_conv_qty',
    'rollup_parent_actuals',
    'summarize_hours_by_cost_code',
    'BudgetValidationService',
    'BudgetImportService',
    'ImportResult',
]
