from __future__ import annotations

from pathlib import Path

import pytest

from casemaster.models.report import ReportResult
from casemaster.services.summary import render_report_summary, render_upload_summary


def _result(elapsed: float, output: Path | None = Path("/tmp/report_cases.xlsx")) -> ReportResult:
    return ReportResult(
        file_name="cases.xlsx",
        record_count=3,
        size_bytes=6000,
        output_path=output,
        elapsed_seconds=elapsed,
    )


def test_render_report_summary_format():
    line = render_report_summary(_result(1.5))
    assert line == (
        "op=report file=cases.xlsx records=3 bytes=6000 elapsed_sec=1.5 "
        "output=/tmp/report_cases.xlsx"
    )


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [(0, "0"), (2.0, "2"), (0.1234, "0.123"), (0.000123, "0.000123")],
)
def test_elapsed_formatting(elapsed, expected):
    assert f"elapsed_sec={expected} " in render_report_summary(_result(elapsed))


def test_no_exponent_for_tiny_elapsed():
    assert "e-" not in render_report_summary(_result(1e-5))


def test_missing_output_path_rendered_as_dash():
    assert render_report_summary(_result(1, output=None)).endswith("output=-")


def test_render_upload_summary():
    assert render_upload_summary("a.xlsx", True) == "op=upload file=a.xlsx status=success"
    assert render_upload_summary("a.xlsx", False) == "op=upload file=a.xlsx status=failed"
