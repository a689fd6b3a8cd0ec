from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.case_record import REPORT_COLUMNS, CaseRecord

"""Upload workbook reader.

The first sheet of an uploaded workbook is read; the header row holds the
REPORT_COLUMNS names (順不同, 余分な列は無視) and every following non-blank row is
one case record.
"""


class SheetHeaderError(Exception):
    """Raised when the header row is missing or invalid."""


class MissingColumnsError(Exception):
    """Raised when expected columns are missing in sheet header."""


class InvalidValueError(Exception):
    """Raised when a cell cannot be converted to its column type."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # 正規化済 (列名→値)
    row_numbers: list[int] = field(default_factory=list)  # rows と同順の 1-based シート行番号


_TRUE_STRINGS = {"TRUE", "YES", "Y", "1"}
_FALSE_STRINGS = {"FALSE", "NO", "N", "0"}


def read_first_sheet(path: Path) -> tuple[str, pd.DataFrame]:
    """Read the first sheet of an Excel file as a raw (header-less) DataFrame."""
    xls = pd.ExcelFile(path)
    if not xls.sheet_names:
        raise SheetHeaderError(f"workbook '{path.name}' has no sheets")
    name = str(xls.sheet_names[0])
    # ヘッダなしで生読み (後で header_row を適用)
    df = xls.parse(xls.sheet_names[0], header=None, dtype=object)
    return name, df


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    expected_columns: set[str] | None = None,
    header_row: int = 0,
) -> SheetData:
    """Normalize a raw DataFrame using ``header_row`` as header.

    Steps:
    1. Validate the header row exists
    2. Extract header (stripped strings)
    3. Remaining rows become data rows; fully blank rows are skipped (each kept
       row remembers its 1-based sheet row number)
    4. Validate expected columns subset
    """
    if df.shape[0] <= header_row:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row + 1}")
    columns = [str(c).strip() for c in df.iloc[header_row].tolist()]

    if expected_columns is not None:
        missing = expected_columns - set(columns)
        if missing:
            raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {sorted(missing)}")

    rows: list[dict[str, Any]] = []
    row_numbers: list[int] = []
    for pos in range(header_row + 1, df.shape[0]):
        raw = df.iloc[pos]
        if raw.isna().all():
            continue
        row_dict: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if pd.isna(val):
                row_dict[col] = None
            elif isinstance(val, str) and val.strip() == "":
                row_dict[col] = None
            else:
                row_dict[col] = val
        rows.append(row_dict)
        row_numbers.append(pos + 1)

    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows, row_numbers=row_numbers)


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Excel 数値セル 123 -> 123.0 になるため整数化
        return str(int(value))
    return str(value).strip()


def _to_flag(value: Any, column: str) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().upper()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise InvalidValueError(f"column {column}: not a boolean value: {value!r}")


def _to_date(value: Any, column: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return pd.Timestamp(str(value).strip()).date()
    except (ValueError, TypeError) as e:
        raise InvalidValueError(f"column {column}: not a date value: {value!r}") from e


def row_to_record(row: dict[str, Any], file_name: str, row_number: int) -> CaseRecord:
    """Convert a normalized row into a CaseRecord.

    ``row_number`` is the 1-based sheet row, used only in error messages.
    """
    case_id = _to_text(row.get("CASE_ID"))
    if not case_id:
        raise InvalidValueError(f"row {row_number}: CASE_ID is empty")
    try:
        return CaseRecord(
            case_id=case_id,
            is_current_uk_resident=_to_flag(row.get("IS_CURRENT_UK_RESIDENT"), "IS_CURRENT_UK_RESIDENT"),
            first_name=_to_text(row.get("FIRST_NAME")),
            last_name=_to_text(row.get("LAST_NAME")),
            date_of_birth=_to_date(row.get("DATE_OF_BIRTH"), "DATE_OF_BIRTH"),
            third_party_reference_1=_to_text(row.get("THIRD_PARTY_REFERENCE_1")),
            file_name=file_name,
        )
    except InvalidValueError as e:
        raise InvalidValueError(f"row {row_number}: {e}") from e


def read_case_records(path: Path) -> list[CaseRecord]:
    """Read an uploaded workbook into CaseRecords tagged with ``path.name``."""
    sheet_name, df = read_first_sheet(path)
    sheet = normalize_sheet(df, sheet_name, expected_columns=set(REPORT_COLUMNS))
    return [
        row_to_record(row, path.name, row_number)
        for row, row_number in zip(sheet.rows, sheet.row_numbers, strict=True)
    ]
