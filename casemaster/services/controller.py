from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..errors import ValidationError
from ..logging.init import log_summary
from ..models.interaction_state import (
    FileSelected,
    GeneratingReport,
    Idle,
    InteractionState,
    Processing,
    ReportPrompt,
    State,
    Tone,
)
from ..models.report import ReportResult
from .import_service import SUCCESS_PREFIX
from .summary import render_report_summary, render_upload_summary
from .task_runner import TaskRunner, TimerHandle

"""Interaction controller (upload → report state machine).

Transitions:
    Idle            --select_file(path)-->   FileSelected
    Idle            --select_file(None)-->   Idle
    FileSelected    --select_file(path)-->   FileSelected (file replaced)
    FileSelected    --select_file(None)-->   FileSelected (no-op)
    FileSelected    --submit()-->            Processing (import task)
    Processing      --import ok-->           ReportPrompt after success_delay
    Processing      --import failed-->       Idle after failure_delay
    ReportPrompt    --request_report("")-->  ReportPrompt (validation message)
    ReportPrompt    --request_report(name)-> GeneratingReport (report task)
    GeneratingReport --report ok-->          Idle after success_delay
    GeneratingReport --report failed-->      Idle after failure_delay

All state changes happen on the interactive thread: operator actions are
called there, and task outcomes / timers arrive through the EventLoop.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "InteractionController",
    "View",
    "render",
    "format_file_size",
    "report_success_message",
]

MISSING_FILE_NAME_MESSAGE = "Please enter a file name for the report."
REPORT_SUCCESS_MESSAGE = "Download Successful! Report saved to Downloads folder."
DEFAULT_OUTPUT_FOLDER = "Downloads"
UNKNOWN_ERROR_MESSAGE = "Unknown error."


class ImportService(Protocol):
    def process_file(self, path: Path) -> str: ...


class ReportRunner(Protocol):
    def generate_and_save(self, file_name: str, output_dir: Path) -> ReportResult: ...


@dataclass(frozen=True)
class View:
    """Declarative rendering of one interaction state."""
    kind: InteractionState
    message: str
    tone: Tone
    upload_label: str = "Upload File"
    show_upload: bool = False
    show_submit: bool = False
    show_report_input: bool = False
    show_progress: bool = False


def render(state: State) -> View:
    """Map the active state variant to the controls that are live."""
    base = {"kind": state.kind, "message": state.message, "tone": state.tone}
    if isinstance(state, Idle):
        return View(**base, show_upload=True)
    if isinstance(state, FileSelected):
        return View(**base, upload_label="Replace File", show_upload=True, show_submit=True)
    if isinstance(state, ReportPrompt):
        return View(**base, show_report_input=True)
    if isinstance(state, (Processing, GeneratingReport)):
        return View(**base, show_progress=state.busy)
    raise TypeError(f"unknown state: {state!r}")


def format_file_size(size_bytes: int) -> str:
    """Bytes -> MB with at most 2 decimals (``1.5``, ``0``, ``12.34``)."""
    mb = size_bytes / (1024 * 1024)
    return f"{mb:.2f}".rstrip("0").rstrip(".")


def report_success_message(output_path: Path | None) -> str:
    """Success text; names the written path unless it sits in a Downloads folder."""
    if output_path is None or output_path.parent.name == DEFAULT_OUTPUT_FOLDER:
        return REPORT_SUCCESS_MESSAGE
    return f"Download Successful! Report saved to {output_path}."


def _error_text(error: BaseException) -> str:
    text = str(error)
    return text if text else UNKNOWN_ERROR_MESSAGE


class InteractionController:
    """Owns the current interaction state and drives its transitions."""

    def __init__(
        self,
        import_service: ImportService,
        report_service: ReportRunner,
        runner: TaskRunner,
        output_dir: Path,
        success_delay: float = 3.0,
        failure_delay: float = 5.0,
        success_prefix: str = SUCCESS_PREFIX,
        on_change: Callable[[State], None] | None = None,
    ) -> None:
        self.import_service = import_service
        self.report_service = report_service
        self.runner = runner
        self.loop = runner.loop
        self.output_dir = Path(output_dir)
        self.success_delay = success_delay
        self.failure_delay = failure_delay
        self.success_prefix = success_prefix
        self.on_change = on_change
        self._state: State = Idle()
        self._pending_timer: TimerHandle | None = None

    @property
    def state(self) -> State:
        return self._state

    @property
    def view(self) -> View:
        return render(self._state)

    def _transition(self, new_state: State) -> State:
        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None
        old = self._state
        self._state = new_state
        if old.kind is not new_state.kind:
            logger.debug("state %s -> %s", old.kind.value, new_state.kind.value)
        if self.on_change is not None:
            self.on_change(new_state)
        return new_state

    def _transition_later(self, delay: float, target: State) -> None:
        origin = self._state

        def _fire() -> None:
            if self._state is not origin:
                logger.debug("stale timer ignored (target=%s)", target.kind.value)
                return
            self._transition(target)

        self._pending_timer = self.loop.call_later(delay, _fire)

    def _ignored(self, action: str) -> State:
        logger.debug("action %s ignored in state %s", action, self._state.kind.value)
        return self._state

    # --- operator actions -------------------------------------------------

    def select_file(self, path: Path | None) -> State:
        """Store (or replace) the file chosen in the file dialog.

        ``None`` means the dialog was cancelled.

        Raises:
            ValidationError: the chosen path is not a readable file
        """
        if not isinstance(self._state, (Idle, FileSelected)):
            return self._ignored("select_file")
        if path is None:
            if isinstance(self._state, Idle):
                return self._transition(Idle())
            return self._state

        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ValidationError(f"Cannot read selected file: {path}") from e
        if not path.is_file():
            raise ValidationError(f"Not a file: {path}")
        message = f"Selected file: {path.name} ({format_file_size(size)} MB)"
        return self._transition(FileSelected(file=path, message=message))

    def submit(self) -> State:
        """Launch the import task for the selected file."""
        state = self._state
        if not isinstance(state, FileSelected):
            return self._ignored("submit")

        file = state.file
        busy = self._transition(Processing(file_name=file.name, message=f"Processing {file.name}..."))
        self.runner.run(
            lambda: self.import_service.process_file(file),
            lambda result: self._import_succeeded(busy, file.name, result),
            lambda error: self._import_failed(busy, file.name, error),
            name="import",
        )
        return busy

    def request_report(self, file_name: str) -> State:
        """Validate the entered file name and launch the report task."""
        if not isinstance(self._state, ReportPrompt):
            return self._ignored("request_report")

        name = (file_name or "").strip()
        if not name:
            return self._transition(ReportPrompt(message=MISSING_FILE_NAME_MESSAGE, tone=Tone.ERROR))

        busy = self._transition(
            GeneratingReport(file_name=name, message=f"Generating report for '{name}'...")
        )
        output_dir = self.output_dir
        self.runner.run(
            lambda: self.report_service.generate_and_save(name, output_dir),
            lambda result: self._report_succeeded(busy, result),
            lambda error: self._report_failed(busy, name, error),
            name="report",
        )
        return busy

    # --- task outcomes (interactive thread) -------------------------------

    def _import_succeeded(self, busy: State, file_name: str, message: str) -> None:
        if self._state is not busy:
            logger.debug("late import result ignored file=%s", file_name)
            return
        # 例外が無くても prefix 不一致ならエラー表示 (遷移先は同じ)
        success = str(message).startswith(self.success_prefix)
        tone = Tone.SUCCESS if success else Tone.ERROR
        if success:
            logger.info("upload finished file=%s: %s", file_name, message)
        else:
            logger.warning("upload finished without success file=%s: %s", file_name, message)
        log_summary(render_upload_summary(file_name, success))
        self._transition(Processing(file_name=file_name, message=str(message), tone=tone, busy=False))
        self._transition_later(self.success_delay, ReportPrompt())

    def _import_failed(self, busy: State, file_name: str, error: BaseException) -> None:
        if self._state is not busy:
            logger.debug("late import failure ignored file=%s", file_name)
            return
        message = f"Error: {_error_text(error)}"
        logger.error("Error processing Excel file %s: %s", file_name, message, exc_info=error)
        log_summary(render_upload_summary(file_name, False))
        self._transition(Processing(file_name=file_name, message=message, tone=Tone.ERROR, busy=False))
        self._transition_later(self.failure_delay, Idle())

    def _report_succeeded(self, busy: State, result: ReportResult) -> None:
        if self._state is not busy:
            logger.debug("late report result ignored file=%s", result.file_name)
            return
        log_summary(render_report_summary(result))
        self._transition(
            GeneratingReport(
                file_name=result.file_name,
                message=report_success_message(result.output_path),
                tone=Tone.SUCCESS,
                busy=False,
            )
        )
        self._transition_later(self.success_delay, Idle())

    def _report_failed(self, busy: State, file_name: str, error: BaseException) -> None:
        if self._state is not busy:
            logger.debug("late report failure ignored file=%s", file_name)
            return
        message = f"Error generating report: {_error_text(error)}"
        logger.error("Error generating report for %s: %s", file_name, message, exc_info=error)
        self._transition(
            GeneratingReport(file_name=file_name, message=message, tone=Tone.ERROR, busy=False)
        )
        self._transition_later(self.failure_delay, Idle())
