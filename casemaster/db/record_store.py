from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol

from ..config.loader import DatabaseConfig
from ..models.case_record import CaseRecord
from .batch_insert import BatchMetrics, batch_insert
from .connection import db_connection

"""Record store implementations for the ``case_master`` table.

- PostgresRecordStore: psycopg2, 1 呼び出し = 1 接続 / 1 トランザクション
- InMemoryRecordStore: DB 無効時 (mock mode) とテスト用
"""

logger = logging.getLogger(__name__)

__all__ = [
    "RecordStore",
    "PostgresRecordStore",
    "InMemoryRecordStore",
    "INSERT_COLUMNS",
]

INSERT_COLUMNS: tuple[str, ...] = (
    "case_id",
    "is_current_uk_resident",
    "first_name",
    "last_name",
    "date_of_birth",
    "third_party_reference_1",
    "file_name",
)


class RecordStore(Protocol):
    def find_by_file_name(self, file_name: str) -> list[CaseRecord]: ...

    def save_all(self, records: Sequence[CaseRecord]) -> int: ...


def _record_to_row(record: CaseRecord) -> tuple[Any, ...]:
    return (
        str(record.case_id),
        record.is_current_uk_resident,
        record.first_name,
        record.last_name,
        record.date_of_birth,
        record.third_party_reference_1,
        record.file_name,
    )


class PostgresRecordStore:
    """Read / write CaseRecords through psycopg2.

    No state is shared between calls, so concurrent queries for different
    file names do not interfere.
    """

    def __init__(
        self,
        db_cfg: DatabaseConfig,
        connection_factory: Callable[[DatabaseConfig], AbstractContextManager[Any]] = db_connection,
        page_size: int = 1000,
    ) -> None:
        self.db_cfg = db_cfg
        self.table = db_cfg.table
        self._connection_factory = connection_factory
        self.page_size = page_size

    def find_by_file_name(self, file_name: str) -> list[CaseRecord]:
        """Exact (case-sensitive) match on file_name; [] when nothing matches."""
        cols_sql = ", ".join(INSERT_COLUMNS)
        sql = f"SELECT {cols_sql} FROM {self.table} WHERE file_name = %s ORDER BY id"
        with self._connection_factory(self.db_cfg) as cur:
            cur.execute(sql, (file_name,))
            rows = cur.fetchall()
        logger.debug("query table=%s file_name=%r rows=%d", self.table, file_name, len(rows))
        return [CaseRecord(*row) for row in rows]

    def save_all(self, records: Sequence[CaseRecord]) -> int:
        def _log_batch(metrics: BatchMetrics) -> None:
            logger.debug(
                "batch insert table=%s rows=%d elapsed=%.3fs",
                self.table, metrics.batch_size, metrics.elapsed_seconds,
            )

        with self._connection_factory(self.db_cfg) as cur:
            result = batch_insert(
                cur,
                self.table,
                INSERT_COLUMNS,
                (_record_to_row(r) for r in records),
                page_size=self.page_size,
                metrics_callback=_log_batch,
            )
        return result.inserted_rows


class InMemoryRecordStore:
    """Thread-safe in-memory store (insertion order preserved)."""

    def __init__(self, records: Sequence[CaseRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: list[CaseRecord] = list(records or [])

    def find_by_file_name(self, file_name: str) -> list[CaseRecord]:
        with self._lock:
            return [r for r in self._records if r.file_name == file_name]

    def save_all(self, records: Sequence[CaseRecord]) -> int:
        with self._lock:
            self._records.extend(records)
        return len(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
