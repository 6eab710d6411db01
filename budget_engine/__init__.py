"""
Budget Import Engine.

Parses construction budget spreadsheets into typed line items, applies the
budget formulas and validates sheets before they reach storage.
"""

__version__ = "1.0.0"
