"""
Domain Layer - Core business entities and services for budget imports.

This module contains:
- entities/: BudgetLineItem, ColumnLayout, ValidationResult
- services/: FormulaEngine, BudgetValidationService, BudgetImportService
- exceptions: DomainError hierarchy
"""
