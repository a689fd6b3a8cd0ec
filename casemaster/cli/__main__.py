from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv

from casemaster.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, default_config, load_config
from casemaster.db.connection import db_connection, db_disabled
from casemaster.db.record_store import InMemoryRecordStore, PostgresRecordStore, RecordStore
from casemaster.errors import CaseMasterError, ValidationError
from casemaster.logging.init import log_summary, set_debug, setup_logging
from casemaster.models.interaction_state import InteractionState, Tone
from casemaster.services.controller import InteractionController, View
from casemaster.services.import_service import ExcelImportService
from casemaster.services.progress import BusyIndicator
from casemaster.services.report_service import ReportService
from casemaster.services.summary import render_report_summary, render_upload_summary
from casemaster.services.task_runner import EventLoop, TaskRunner

"""CLI entrypoint.

Modes:
- (default) interactive console: upload a workbook, then request a report
- --upload PATH: one-shot import
- --report NAME: one-shot report written to the output directory
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_FAILED = 2

# 入力を受け付けず EventLoop を回し続ける状態
_WAITING_KINDS = {InteractionState.PROCESSING, InteractionState.GENERATING_REPORT}

QUIT_COMMANDS = {"q", "quit", ":q"}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values override the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CaseMaster upload & report utility")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--output-dir", type=Path, default=None, help="Report output directory")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--upload", type=Path, metavar="PATH", help="Import a workbook then exit")
    mode.add_argument("--report", metavar="FILE_NAME", help="Generate a report then exit")
    return p.parse_args(argv)


def _load_app_config(path: Path | None, logger: logging.Logger) -> AppConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.debug("no %s found -> built-in defaults", DEFAULT_CONFIG_PATH)
    return default_config()


def _build_store(cfg: AppConfig, logger: logging.Logger) -> tuple[RecordStore, str]:
    """Return (store, mode). Falls back to the in-memory store (mock mode)."""
    if db_disabled():
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        return InMemoryRecordStore(), "mock"
    try:
        with db_connection(cfg.database) as cur:
            cur.execute("SELECT 1")
    except Exception as e:
        logger.info(f"DB connection failed -> fallback to mock mode: {e}")
        return InMemoryRecordStore(), "mock"
    return PostgresRecordStore(cfg.database), "live"


def _run_upload(service: ExcelImportService, path: Path, success_prefix: str, logger: logging.Logger) -> int:
    try:
        message = service.process_file(path)
    except CaseMasterError as e:
        logger.error(f"upload: {e}")
        log_summary(render_upload_summary(path.name, False))
        return EXIT_FAILED
    success = message.startswith(success_prefix)
    (logger.info if success else logger.warning)(message)
    log_summary(render_upload_summary(path.name, success))
    return EXIT_SUCCESS if success else EXIT_FAILED


def _run_report(service: ReportService, file_name: str, output_dir: Path, logger: logging.Logger) -> int:
    try:
        result = service.generate_and_save(file_name.strip(), output_dir)
    except CaseMasterError as e:
        logger.error(f"report: {e}")
        return EXIT_FAILED
    log_summary(render_report_summary(result))
    return EXIT_SUCCESS


def format_view(view: View) -> str:
    if view.tone in (Tone.NEUTRAL, Tone.PROCESSING):
        return view.message
    return f"[{view.tone.value.upper()}] {view.message}"


def _prompt_for(view: View) -> str:
    if view.show_report_input:
        return "File name for report (q to quit) > "
    if view.show_submit:
        return f"[u] {view.upload_label}  [s] Submit  [q] Quit > "
    return f"[u] {view.upload_label}  [q] Quit > "


def run_console(
    controller: InteractionController,
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[[str], None] = print,
    pump_interval: float = 0.1,
) -> int:
    """Drive the controller from stdin until the operator quits (or EOF)."""
    last_view: View | None = None
    indicator: BusyIndicator | None = None
    try:
        while True:
            view = controller.view
            if view != last_view:
                if indicator is not None and not view.show_progress:
                    indicator.close()
                    indicator = None
                print_fn(format_view(view))
                if view.show_progress and indicator is None:
                    indicator = BusyIndicator(view.message)
                last_view = view

            if view.kind in _WAITING_KINDS:
                controller.loop.process_events(timeout=pump_interval)
                if indicator is not None:
                    indicator.tick()
                continue

            try:
                answer = input_fn(_prompt_for(view)).strip()
            except EOFError:
                return EXIT_SUCCESS
            if answer.lower() in QUIT_COMMANDS:
                return EXIT_SUCCESS

            if view.show_report_input:
                controller.request_report(answer)
            elif answer.lower() == "u":
                raw = input_fn("Excel file path (empty to cancel) > ").strip()
                try:
                    controller.select_file(Path(raw).expanduser() if raw else None)
                except ValidationError as e:
                    print_fn(f"[ERROR] {e}")
            elif answer.lower() == "s" and view.show_submit:
                controller.submit()
            # 完了済みタイマー / 投稿済みコールバックを処理
            controller.loop.process_events()
    finally:
        if indicator is not None:
            indicator.close()


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = _load_app_config(args.config, logger)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    store, db_mode = _build_store(cfg, logger)
    logger.info(f"mode={db_mode} table={cfg.database.table}")
    output_dir = args.output_dir.expanduser() if args.output_dir else cfg.report.output_path

    import_service = ExcelImportService(store)
    report_service = ReportService(store, sheet_name=cfg.report.sheet_name)

    if args.upload is not None:
        return _run_upload(import_service, args.upload, cfg.ui.success_prefix, logger)
    if args.report is not None:
        return _run_report(report_service, args.report, output_dir, logger)

    loop = EventLoop()
    controller = InteractionController(
        import_service,
        report_service,
        TaskRunner(loop),
        output_dir=output_dir,
        success_delay=cfg.ui.success_delay_seconds,
        failure_delay=cfg.ui.failure_delay_seconds,
        success_prefix=cfg.ui.success_prefix,
    )
    return run_console(controller)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
