from __future__ import annotations

import io
import time
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from casemaster.db.record_store import InMemoryRecordStore
from casemaster.models.interaction_state import Idle, ReportPrompt, Tone
from casemaster.services.controller import InteractionController
from casemaster.services.import_service import ExcelImportService
from casemaster.services.report_service import ReportService
from casemaster.services.task_runner import EventLoop, TaskRunner


def _pump_until(loop: EventLoop, predicate, limit: float = 10.0) -> None:
    deadline = time.monotonic() + limit
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not reached before timeout")
        loop.process_events(timeout=0.02)


@pytest.fixture()
def flow(tmp_path: Path):
    store = InMemoryRecordStore()
    loop = EventLoop()
    controller = InteractionController(
        ExcelImportService(store),
        ReportService(store),
        TaskRunner(loop),
        output_dir=tmp_path / "Downloads",
        success_delay=0.05,
        failure_delay=0.05,
    )
    return store, loop, controller


def test_upload_then_report_round_trip(flow, tmp_path: Path, upload_workbook):
    store, loop, controller = flow
    workbook = upload_workbook(
        tmp_path / "march_cases.xlsx",
        [
            ["C1", True, "Ann", "Lee", date(1990, 1, 2), "R9"],
            ["C2", None, "Ben", "Patel", None, None],
            ["C3", False, "Chloe", "Smith", date(1985, 12, 31), "R10"],
        ],
    )

    controller.select_file(workbook)
    controller.submit()
    _pump_until(loop, lambda: isinstance(controller.state, ReportPrompt))
    assert len(store) == 3

    controller.request_report("march_cases.xlsx")
    _pump_until(loop, lambda: controller.state.tone is Tone.SUCCESS)
    _pump_until(loop, lambda: isinstance(controller.state, Idle))

    report = tmp_path / "Downloads" / "report_march_cases.xlsx"
    df = pd.read_excel(io.BytesIO(report.read_bytes()), dtype=str, keep_default_na=False)
    assert df["CASE_ID"].tolist() == ["C1", "C2", "C3"]
    assert df["IS_CURRENT_UK_RESIDENT"].tolist() == ["true", "", "false"]
    assert df.loc[1, "DATE_OF_BIRTH"] == ""
    assert df.loc[0, "DATE_OF_BIRTH"].startswith("1990-01-02")


def test_report_for_unknown_file_returns_to_idle(flow, tmp_path: Path, upload_workbook):
    _, loop, controller = flow
    workbook = upload_workbook(tmp_path / "cases.xlsx", [["C1", None, "Ann", "Lee", None, "R1"]])

    controller.select_file(workbook)
    controller.submit()
    _pump_until(loop, lambda: isinstance(controller.state, ReportPrompt))

    controller.request_report("other.xlsx")
    _pump_until(loop, lambda: controller.state.tone is Tone.ERROR)
    assert controller.state.message == (
        "Error generating report: No records found for file name: 'other.xlsx'"
    )
    _pump_until(loop, lambda: isinstance(controller.state, Idle))
    assert not (tmp_path / "Downloads").exists()


def test_failed_upload_returns_to_idle(flow, tmp_path: Path):
    _, loop, controller = flow
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"not a workbook")

    controller.select_file(broken)
    controller.submit()
    _pump_until(loop, lambda: controller.state.tone is Tone.ERROR)
    assert controller.state.message.startswith("Error: Could not read 'broken.xlsx'")
    _pump_until(loop, lambda: isinstance(controller.state, Idle))
