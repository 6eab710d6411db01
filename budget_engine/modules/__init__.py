"""
Modules for the Budget Import Engine.

- numeric: Cell → canonical decimal string, Decimal helpers
- cost_codes: Cost code allow-list normalization
- mapping: Spreadsheet row → BudgetLineItem draft, layout detection
- etl: Loading sheets from .xlsx/.xlsm/.csv files
"""
