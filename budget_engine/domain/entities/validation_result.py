"""
Validation Result - Structured report produced by the sheet validator.
"""
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single problem found in a sheet.

    Attributes:
        row: Zero-based row index in the sheet (row 0 is the header)
        column: Header label of the offending column, or 'File' for sheet-level issues
        message: Human-readable description
    """
    row: int
    column: str
    message: str

    def to_dict(self) -> dict:
        return {'row': self.row, 'column': self.column, 'message': self.message}


@dataclass
class ValidationResult:
    """Outcome of validating a whole sheet. Warnings never affect validity."""
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    row_count: int = 0

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, row: int, column: str, message: str) -> None:
        self.errors.append(ValidationIssue(row=row, column=column, message=message))

    def errors_for_row(self, row: int) -> List[ValidationIssue]:
        """All errors attributed to one sheet row."""
        return [e for e in self.errors if e.row == row]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'isValid': self.is_valid,
            'errors': [e.to_dict() for e in self.errors],
            'warnings': list(self.warnings),
            'rowCount': self.row_count,
        }
