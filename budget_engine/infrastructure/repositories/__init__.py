"""
Repository Layer - Persistence contracts for imported budget data.
"""

from .budget_repository import BudgetItemRepository

__all__ = [
    'BudgetItemRepository',
]
