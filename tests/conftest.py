# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from casemaster.db.record_store import InMemoryRecordStore
from casemaster.models.case_record import REPORT_COLUMNS, CaseRecord
from casemaster.services.task_runner import EventLoop


class FakeClock:
    """Manually advanced monotonic clock for timer tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
  table: case_master
report:
  sheet_name: CaseMaster Report
  output_directory: ./out
ui:
  success_delay_seconds: 3
  failure_delay_seconds: 5
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "casemaster.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_records() -> list[CaseRecord]:
    return [
        CaseRecord("C1", True, "Ann", "Lee", date(1990, 1, 2), "R9", "cases.xlsx"),
        CaseRecord("C2", None, "Ben", "Patel", None, "", "cases.xlsx"),
        CaseRecord("C3", False, "Chloe", "Smith", date(1985, 12, 31), "R10", "cases.xlsx"),
    ]


@pytest.fixture()
def store(sample_records: list[CaseRecord]) -> InMemoryRecordStore:
    other = CaseRecord("X1", True, "Zed", "Other", None, "R0", "other.xlsx")
    return InMemoryRecordStore([*sample_records, other])


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def event_loop(fake_clock: FakeClock) -> EventLoop:
    return EventLoop(clock=fake_clock)


def make_upload_workbook(path: Path, rows: list[list[object]], columns: list[str] | None = None) -> Path:
    """Write an upload workbook (header row + data rows) with pandas."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows, columns=columns or list(REPORT_COLUMNS))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Cases", index=False)
    return path


@pytest.fixture()
def upload_workbook():
    return make_upload_workbook
