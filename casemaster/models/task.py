from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Task model for work executed off the interactive thread.

A Task is created per operator action and discarded once its single outcome
has been delivered. Tasks are never reused or cancelled mid-flight.
"""

__all__ = [
    "Task",
    "TaskStatus",
    "next_task_id",
]

_task_ids = itertools.count(1)


def next_task_id() -> int:
    """Return the next monotonic task identity (logging only)."""
    return next(_task_ids)


class TaskStatus(Enum):
    """Lifecycle: pending → running → (succeeded | failed)"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(eq=False)
class Task:
    work: Callable[[], Any]
    on_success: Callable[[Any], None]
    on_failure: Callable[[BaseException], None]
    task_id: int = field(default_factory=next_task_id)
    name: str = "task"
    status: TaskStatus = TaskStatus.PENDING

    @property
    def done(self) -> bool:
        return self.status in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"Task(id={self.task_id}, name={self.name!r}, status={self.status.value})"
