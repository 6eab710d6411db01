"""
Numeric Normalizer for the Budget Import Engine.

Turns raw spreadsheet cells into canonical decimal strings and provides the
small set of Decimal helpers the formula engine uses. All arithmetic goes
through Decimal; binary floats are only ever an input format.
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Union

from ..domain.exceptions import NumberFormatError


Cell = Union[str, int, float, Decimal, None]

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")

_STRIP_CHARS = re.compile(r"[$,]")

# Plain decimal literal with optional exponent; no underscores, nan or infinity
_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class ParseFailurePolicy(str, Enum):
    """What normalize_number does with a cell that is not a number."""
    COERCE_TO_ZERO = "coerce_to_zero"
    REPORT = "report"


def is_blank(value: Cell) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def cell_text(value: Cell) -> str:
    """Render a cell as trimmed text; blank cells become ''."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands back 3.0 for a cell typed as 3
        return str(int(value))
    return str(value).strip()


def canonical(d: Decimal) -> str:
    """
    Restringify a Decimal without exponent or trailing zeros.

        Decimal('100')    → '100'
        Decimal('1.50')   → '1.5'
        Decimal('-0.00')  → '0'
    """
    if d == 0:
        return "0"
    text = format(d.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _parse(value: Cell) -> Decimal:
    """Parse a non-blank cell, raising NumberFormatError on failure."""
    if isinstance(value, bool):
        raise NumberFormatError(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise NumberFormatError(value)
        return value

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isinf(value):
            raise NumberFormatError(value)
        return Decimal(str(value))

    s = str(value).strip()

    # Accounting notation: (123.45) means -123.45
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1].strip()

    s = _STRIP_CHARS.sub("", s).strip()
    if not _NUMBER.fullmatch(s):
        raise NumberFormatError(value)

    try:
        return Decimal(s)
    except InvalidOperation:
        raise NumberFormatError(value)


def to_decimal(value: Cell, on_error: ParseFailurePolicy = ParseFailurePolicy.COERCE_TO_ZERO) -> Decimal:
    """
    Parse a raw cell into a Decimal.

    Handles:
        None, NaN, ""      → 0
        "(123.45)"         → -123.45 (accounting negative)
        "$1,234.56"        → 1234.56
        715643.5           → 715643.5 (float/int input)

    Args:
        value: Raw cell value
        on_error: COERCE_TO_ZERO returns 0 for malformed input,
            REPORT raises NumberFormatError

    Returns:
        Decimal value
    """
    if is_blank(value):
        return ZERO
    try:
        return _parse(value)
    except NumberFormatError:
        if on_error == ParseFailurePolicy.REPORT:
            raise
        return ZERO


def normalize_number(value: Cell, on_error: ParseFailurePolicy = ParseFailurePolicy.COERCE_TO_ZERO) -> str:
    """Normalize a raw cell to a canonical decimal string (see to_decimal)."""
    return canonical(to_decimal(value, on_error))


def format_money(value: Union[Decimal, str, int]) -> str:
    """Render a value with exactly two decimal places, rounding half up."""
    d = value if isinstance(value, Decimal) else to_decimal(value)
    quantized = d.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return f"{quantized:.2f}"


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning 0 when the denominator is zero."""
    if denominator == 0:
        return ZERO
    return numerator / denominator
