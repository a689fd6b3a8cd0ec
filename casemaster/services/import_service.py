from __future__ import annotations

import logging
from pathlib import Path

from ..db.batch_insert import BatchInsertError
from ..db.record_store import RecordStore
from ..errors import UnknownError, UploadError
from ..excel.reader import InvalidValueError, MissingColumnsError, SheetHeaderError, read_case_records

"""Upload processing service.

Reads an uploaded workbook and stores its rows in the record store. The
returned message starts with SUCCESS_PREFIX only when rows were stored; the
controller relies on that prefix to style the outcome.
"""

logger = logging.getLogger(__name__)

SUCCESS_PREFIX = "Upload successful"

# openpyxl 読み込みのみ (旧 .xls 形式は非対応)
_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class ExcelImportService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def process_file(self, path: Path) -> str:
        """Import ``path`` and return a human readable result message.

        Raises:
            UploadError: file missing / unsupported file type / invalid content
                / database insert failure.
            UnknownError: any other reader or record store failure
        """
        path = Path(path)
        if not path.exists():
            raise UploadError(f"File not found: {path}")
        if path.suffix.lower() not in _EXCEL_SUFFIXES:
            raise UploadError(f"Unsupported file type: {path.name} (expected .xlsx or .xlsm)")

        try:
            records = read_case_records(path)
        except (SheetHeaderError, MissingColumnsError, InvalidValueError) as e:
            raise UploadError(f"Invalid workbook '{path.name}': {e}") from e
        except (OSError, ValueError) as e:
            # pandas / openpyxl の読み込み失敗 (破損ファイル等)
            raise UploadError(f"Could not read '{path.name}': {e}") from e
        except Exception as e:
            raise UnknownError(f"reading '{path.name}'", e) from e

        if not records:
            logger.warning("upload file=%s contains no data rows", path.name)
            return f"No records found in '{path.name}'."

        try:
            inserted = self.store.save_all(records)
        except BatchInsertError as e:
            raise UploadError(f"Database insert failed for '{path.name}': {e}") from e
        except Exception as e:
            raise UnknownError(f"importing '{path.name}'", e) from e

        logger.info("upload file=%s inserted_rows=%d", path.name, inserted)
        return f"{SUCCESS_PREFIX}! {inserted} records imported from '{path.name}'."
