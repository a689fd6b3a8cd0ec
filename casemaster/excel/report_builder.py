from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import EmptyInputError
from ..models.case_record import REPORT_COLUMNS, CaseRecord
from ..models.report import ReportArtifact

"""Excel report builder.

Turns a queried record set into a formatted .xlsx byte stream:
- fixed 6 column header (REPORT_COLUMNS order)
- one row per record, input order (並び替えなし)
- absent residency flag / birth date -> empty text cell (NULL セルにしない)
- birth date as native date cell formatted yyyy-mm-dd
- every column auto-sized to its rendered content width
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DATE_FORMAT",
    "DEFAULT_SHEET_NAME",
    "build_report",
    "records_to_frame",
]

DEFAULT_SHEET_NAME = "CaseMaster Report"
DATE_FORMAT = "yyyy-mm-dd"

# Padding added to the widest rendered value of each column
_WIDTH_PADDING = 2


def _flag_text(value: bool | None) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def _date_value(value: date | None) -> date | str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date()
    return value


def records_to_frame(records: Sequence[CaseRecord]) -> pd.DataFrame:
    """Map records to report rows (object dtype, no NaN coercion)."""
    rows = [
        [
            r.case_id,
            _flag_text(r.is_current_uk_resident),
            r.first_name,
            r.last_name,
            _date_value(r.date_of_birth),
            r.third_party_reference_1,
        ]
        for r in records
    ]
    return pd.DataFrame(rows, columns=list(REPORT_COLUMNS), dtype=object)


def _rendered_width(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, date):
        return len(value.isoformat()[:10])
    return len(str(value))


def _autosize_columns(ws: Worksheet, frame: pd.DataFrame) -> None:
    for idx, column in enumerate(frame.columns, start=1):
        widest = max([len(str(column))] + [_rendered_width(v) for v in frame[column].tolist()])
        ws.column_dimensions[get_column_letter(idx)].width = widest + _WIDTH_PADDING


def build_report(
    records: Sequence[CaseRecord], sheet_name: str = DEFAULT_SHEET_NAME
) -> ReportArtifact:
    """Build the report workbook and return it serialized.

    Parameters
    ----------
    records: 対象レコード (ReportService で 0 件チェック済み想定)
    sheet_name: 出力シート名

    Raises
    ------
    EmptyInputError: records is empty (never a valid report)
    """
    if not records:
        raise EmptyInputError("cannot build a report from an empty record set")

    frame = records_to_frame(records)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl", date_format=DATE_FORMAT) as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
        _autosize_columns(writer.sheets[sheet_name], frame)
    content = buffer.getvalue()
    logger.debug("report built sheet=%s rows=%d bytes=%d", sheet_name, len(frame), len(content))
    return content
