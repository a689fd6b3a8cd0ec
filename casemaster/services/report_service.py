from __future__ import annotations

import logging
import time
from pathlib import Path

from ..db.record_store import RecordStore
from ..errors import CaseMasterError, NotFoundError, ReportIOError, UnknownError
from ..excel.report_builder import DEFAULT_SHEET_NAME, build_report
from ..models.case_record import CaseRecord
from ..models.report import ReportArtifact, ReportQuery, ReportResult

"""Report generation service.

generate_report(file_name):
1. Query the record store (exact, case-sensitive file_name match, read-only)
2. Reject an empty result set with NotFoundError (ReportBuilder は呼ばない)
3. Delegate to build_report
4. Wrap failures with the file name for context

The service holds no per-call state; concurrent calls for different file names
do not interfere.
"""

logger = logging.getLogger(__name__)

REPORT_PREFIX = "report_"
REPORT_SUFFIX = ".xlsx"


def report_output_name(file_name: str) -> str:
    """``cases.xlsx`` -> ``report_cases.xlsx``."""
    base = file_name.replace(".xlsx", "").replace(".xls", "")
    return f"{REPORT_PREFIX}{base}{REPORT_SUFFIX}"


def save_report(content: ReportArtifact, output_dir: Path, file_name: str) -> Path:
    """Write ``content`` under ``output_dir`` (created if absent).

    Raises:
        ReportIOError: directory creation or file write failed
    """
    output_path = Path(output_dir) / report_output_name(file_name)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(content)
    except OSError as e:
        raise ReportIOError(f"Failed to write report to {output_path}: {e}") from e
    return output_path


class ReportService:
    def __init__(self, store: RecordStore, sheet_name: str = DEFAULT_SHEET_NAME) -> None:
        self.store = store
        self.sheet_name = sheet_name

    def _find_records(self, file_name: str) -> list[CaseRecord]:
        if not file_name:
            raise NotFoundError("No records found for file name: ''")
        query = ReportQuery(file_name)

        try:
            records = self.store.find_by_file_name(query.file_name)
        except CaseMasterError:
            raise
        except Exception as e:
            raise UnknownError(f"querying records for '{query.file_name}'", e) from e

        if not records:
            raise NotFoundError(f"No records found for file name: '{query.file_name}'")
        return list(records)

    def _build(self, file_name: str, records: list[CaseRecord]) -> ReportArtifact:
        try:
            return build_report(records, sheet_name=self.sheet_name)
        except OSError as e:
            raise ReportIOError(f"Failed to generate Excel report for '{file_name}': {e}") from e
        except Exception as e:
            raise UnknownError(f"building report for '{file_name}'", e) from e

    def generate_report(self, file_name: str) -> ReportArtifact:
        """Generate the .xlsx report for records uploaded from ``file_name``.

        The argument is used as-is (trimming is the caller's job).

        Raises:
            NotFoundError: empty file name or no matching records
            ReportIOError: serialization failure
            UnknownError: any other collaborator failure
        """
        records = self._find_records(file_name)
        return self._build(file_name, records)

    def generate_and_save(self, file_name: str, output_dir: Path) -> ReportResult:
        """Generate the report and write it to ``output_dir`` as one unit of work."""
        start = time.perf_counter()
        records = self._find_records(file_name)
        content = self._build(file_name, records)
        output_path = save_report(content, output_dir, file_name)
        elapsed = time.perf_counter() - start
        logger.info("report saved file=%s records=%d path=%s", file_name, len(records), output_path)
        return ReportResult(
            file_name=file_name,
            record_count=len(records),
            size_bytes=len(content),
            output_path=output_path,
            elapsed_seconds=elapsed,
        )
