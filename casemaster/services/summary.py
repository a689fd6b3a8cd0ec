from __future__ import annotations

from ..models.report import ReportResult

"""SUMMARY line rendering.

Format:
    op=report file={name} records={n} bytes={n} elapsed_sec={s} output={path}
    op=upload file={name} status={success|failed}

The "SUMMARY " label itself is added by the logging formatter.
"""


def _format_seconds(value: float) -> str:
    # 整数はそのまま、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_report_summary(result: ReportResult) -> str:
    """Render the SUMMARY content for one finished report.

    Examples:
        >>> from pathlib import Path
        >>> r = ReportResult("cases.xlsx", 2, 5120, Path("/tmp/report_cases.xlsx"), 0.25)
        >>> render_report_summary(r)
        'op=report file=cases.xlsx records=2 bytes=5120 elapsed_sec=0.25 output=/tmp/report_cases.xlsx'
    """
    output = str(result.output_path) if result.output_path is not None else "-"
    return (
        f"op=report file={result.file_name} "
        f"records={result.record_count} "
        f"bytes={result.size_bytes} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)} "
        f"output={output}"
    )


def render_upload_summary(file_name: str, success: bool) -> str:
    return f"op=upload file={file_name} status={'success' if success else 'failed'}"
