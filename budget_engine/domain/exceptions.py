"""
Domain Exceptions for the Budget Import Engine.

Row-level data problems are never raised; they are collected into a
ValidationResult. The exceptions here cover:
- Misconfigured column layouts (deployment bugs, fail fast)
- Strict numeric parsing
- Sheet loading
- Rejected imports
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Layout Exceptions
# =============================================================================

class LayoutConfigurationError(DomainError):
    """Raised when a column layout definition is malformed."""

    def __init__(self, layout_name: str, reason: str):
        message = f"Column layout '{layout_name}' is misconfigured: {reason}"
        super().__init__(message, code="LAYOUT_MISCONFIGURED")
        self.layout_name = layout_name
        self.reason = reason


class UnknownLayoutError(DomainError):
    """Raised when a layout name is not present in the configuration."""

    def __init__(self, layout_name: str, available: list):
        message = (
            f"Unknown column layout '{layout_name}'. "
            f"Available: {', '.join(available)}"
        )
        super().__init__(message, code="UNKNOWN_LAYOUT")
        self.layout_name = layout_name
        self.available = available


# =============================================================================
# Parsing Exceptions
# =============================================================================

class NumberFormatError(DomainError):
    """Raised by the strict numeric normalizer when a cell is not a number."""

    def __init__(self, value):
        message = f"Invalid number format: {value!r}"
        super().__init__(message, code="INVALID_NUMBER_FORMAT")
        self.value = value


class SheetLoadError(DomainError):
    """Raised when a spreadsheet file cannot be read."""

    def __init__(self, path: str, reason: str):
        message = f"Could not load sheet from '{path}': {reason}"
        super().__init__(message, code="SHEET_LOAD_ERROR")
        self.path = path
        self.reason = reason


# =============================================================================
# Import Exceptions
# =============================================================================

class ImportRejectedError(DomainError):
    """Raised when a strict import is attempted on a sheet that failed validation."""

    def __init__(self, validation):
        message = (
            f"Import rejected: {len(validation.errors)} validation error(s) "
            f"across {validation.row_count} data row(s)"
        )
        super().__init__(message, code="IMPORT_REJECTED")
        self.validation = validation
