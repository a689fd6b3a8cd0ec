from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union

"""Interaction state models for the upload / report controller.

The active state is exactly one of the variant dataclasses below. Each variant
carries the message on display and its tone; only FileSelected carries a
selected file reference.

State cycle: idle → file_selected → processing → report_prompt
→ generating_report → idle
"""

__all__ = [
    "InteractionState",
    "Tone",
    "Idle",
    "FileSelected",
    "Processing",
    "ReportPrompt",
    "GeneratingReport",
    "State",
    "IDLE_MESSAGE",
    "REPORT_PROMPT_MESSAGE",
]

IDLE_MESSAGE = "Click 'Upload File' to select an Excel document."
REPORT_PROMPT_MESSAGE = "Enter the file name to generate a report."


class InteractionState(Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    PROCESSING = "processing"
    REPORT_PROMPT = "report_prompt"
    GENERATING_REPORT = "generating_report"


class Tone(Enum):
    """Message styling (neutral / processing / success / error)."""
    NEUTRAL = "neutral"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Idle:
    kind: ClassVar[InteractionState] = InteractionState.IDLE
    message: str = IDLE_MESSAGE
    tone: Tone = Tone.NEUTRAL


@dataclass(frozen=True)
class FileSelected:
    kind: ClassVar[InteractionState] = InteractionState.FILE_SELECTED
    file: Path
    message: str
    tone: Tone = Tone.NEUTRAL


@dataclass(frozen=True)
class Processing:
    """Import task in flight (busy) or its outcome on display (not busy)."""
    kind: ClassVar[InteractionState] = InteractionState.PROCESSING
    file_name: str
    message: str
    tone: Tone = Tone.PROCESSING
    busy: bool = True


@dataclass(frozen=True)
class ReportPrompt:
    kind: ClassVar[InteractionState] = InteractionState.REPORT_PROMPT
    message: str = REPORT_PROMPT_MESSAGE
    tone: Tone = Tone.NEUTRAL


@dataclass(frozen=True)
class GeneratingReport:
    kind: ClassVar[InteractionState] = InteractionState.GENERATING_REPORT
    file_name: str
    message: str
    tone: Tone = Tone.PROCESSING
    busy: bool = True


State = Union[Idle, FileSelected, Processing, ReportPrompt, GeneratingReport]
