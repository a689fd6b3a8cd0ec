from __future__ import annotations

from dataclasses import dataclass
from datetime import date

"""CaseRecord domain model.

One persisted row of the ``case_master`` table. The report pipeline only reads
snapshots returned by a record store query; records are never mutated there.
"""

__all__ = [
    "CaseRecord",
    "REPORT_COLUMNS",
]

# Report / upload sheet column order (固定)
REPORT_COLUMNS: tuple[str, ...] = (
    "CASE_ID",
    "IS_CURRENT_UK_RESIDENT",
    "FIRST_NAME",
    "LAST_NAME",
    "DATE_OF_BIRTH",
    "THIRD_PARTY_REFERENCE_1",
)


@dataclass(frozen=True)
class CaseRecord:
    """Snapshot of a single case row.

    ``file_name`` is the name of the uploaded workbook the row came from and is
    the only attribute reports are filtered by.
    """
    case_id: str | int
    is_current_uk_resident: bool | None
    first_name: str | None
    last_name: str | None
    date_of_birth: date | None
    third_party_reference_1: str | None
    file_name: str = ""
