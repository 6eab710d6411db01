"""
ETL Module for the Budget Import Engine.
Loads budget spreadsheets from disk into the in-memory sheet form the
pipeline works on: a list of rows, each a list of raw cell values, with
blank cells as None.
"""
import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..config import BudgetEngineConfig, get_config
from ..domain.exceptions import SheetLoadError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {'.xlsx', '.xlsm'}
CSV_SUFFIXES = {'.csv'}


def file_hash(path: Path) -> str:
    """Compute MD5 hash of a file for import audit logging."""
    if not path.exists():
        return ''
    with open(path, 'rb') as f:
        return hashlib.md5(f.read()).hexdigest()


def choose_sheet_name(sheet_names: List[str], requested: Optional[str] = None,
                      config: Optional[BudgetEngineConfig] = None) -> str:
    """
    Pick the worksheet to import.

    Order: the requested name, then each configured preferred sheet
    ('full location', 'Line Items'), then the first sheet.
    """
    if not sheet_names:
        raise ValueError("Workbook has no sheets")
    if requested is not None:
        if requested not in sheet_names:
            raise ValueError(f"Sheet '{requested}' not found. Found: {sheet_names}")
        return requested
    for preferred in (config or get_config()).preferred_sheets:
        if preferred in sheet_names:
            return preferred
    return sheet_names[0]


def frame_to_rows(df: pd.DataFrame) -> List[list]:
    """
    Convert a header-less DataFrame to rows of raw cells.

    NaN and empty strings become None; trailing blank cells are dropped so a
    row's length reflects its populated width.
    """
    rows = []
    for values in df.astype(object).itertuples(index=False, name=None):
        row = [None if (pd.isna(v) or (isinstance(v, str) and v == '')) else v for v in values]
        while row and row[-1] is None:
            row.pop()
        rows.append(row)
    return rows


def load_sheet(path: Union[str, Path], sheet_name: Optional[str] = None,
               config: Optional[BudgetEngineConfig] = None) -> List[list]:
    """
    Load a budget sheet from an Excel or CSV file.

    Args:
        path: .xlsx/.xlsm or .csv file
        sheet_name: Worksheet to read (Excel only); see choose_sheet_name

    Returns:
        List of rows; row 0 is the header

    Raises:
        SheetLoadError: If the file is missing, unsupported or unreadable
    """
    path = Path(path)
    if not path.exists():
        raise SheetLoadError(str(path), "file not found")

    suffix = path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            with pd.ExcelFile(path) as workbook:
                chosen = choose_sheet_name(workbook.sheet_names, sheet_name, config)
                df = pd.read_excel(workbook, sheet_name=chosen, header=None, dtype=object)
            logger.debug(f"Reading sheet '{chosen}' from {path.name}")
        elif suffix in CSV_SUFFIXES:
            df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, encoding='utf-8-sig')
        else:
            raise SheetLoadError(str(path), f"unsupported file type '{suffix}'")
    except (ValueError, OSError, pd.errors.ParserError) as e:
        raise SheetLoadError(str(path), str(e))

    rows = frame_to_rows(df)
    logger.debug(f"Loaded {len(rows)} rows from {path.name}")
    return rows
