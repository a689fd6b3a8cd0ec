"""Domain models for the CaseMaster upload & report utility.

This package contains the record snapshot, report request/result, task and
interaction state models used throughout the application.
"""

from .case_record import REPORT_COLUMNS, CaseRecord
from .interaction_state import (
    FileSelected,
    GeneratingReport,
    Idle,
    InteractionState,
    Processing,
    ReportPrompt,
    State,
    Tone,
)
from .report import ReportArtifact, ReportQuery, ReportResult
from .task import Task, TaskStatus

__all__ = [
    # Records / reports
    "CaseRecord",
    "REPORT_COLUMNS",
    "ReportArtifact",
    "ReportQuery",
    "ReportResult",
    # Tasks
    "Task",
    "TaskStatus",
    # Interaction state
    "InteractionState",
    "Tone",
    "Idle",
    "FileSelected",
    "Processing",
    "ReportPrompt",
    "GeneratingReport",
    "State",
]
