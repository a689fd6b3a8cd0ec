from __future__ import annotations

import functools
import heapq
import itertools
import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ..models.task import Task, TaskStatus

"""Asynchronous task execution and interactive-thread event loop.

EventLoop: the interactive (UI) thread surface.
- post(callback): thread-safe, run on the next process_events() call (FIFO)
- call_later(delay, callback): single-shot timer on an injectable clock
- process_events(timeout): run posted callbacks then due timers

TaskRunner: run(work, on_success, on_failure)
- work runs on its own daemon worker thread
- exactly one of on_success / on_failure is posted back to the EventLoop
- no cancellation; nothing raised by work (BaseException included) escapes
  the worker thread
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EventLoop",
    "TimerHandle",
    "TaskRunner",
]

T = TypeVar("T")


@dataclass(order=True)
class TimerHandle:
    """Single-shot deferred callback. Ordered by (deadline, seq)."""
    deadline: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventLoop:
    """Callback queue + timer heap pumped by the interactive thread.

    Pending timers live only in memory; they are dropped when the process
    exits.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._posted: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()
        self._timers: list[TimerHandle] = []
        self._seq = itertools.count()
        self._wakeup = threading.Event()

    def post(self, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` on the interactive thread (safe from any thread)."""
        self._posted.put(callback)
        self._wakeup.set()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once, ``delay`` seconds from now (interactive thread only)."""
        handle = TimerHandle(self.clock() + max(delay, 0.0), next(self._seq), callback)
        heapq.heappush(self._timers, handle)
        return handle

    def next_deadline(self) -> float | None:
        """Deadline of the earliest live timer, or None."""
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        return self._timers[0].deadline if self._timers else None

    def has_pending(self) -> bool:
        return not self._posted.empty() or self.next_deadline() is not None

    def process_events(self, timeout: float = 0.0) -> int:
        """Run posted callbacks and due timers; return how many ran.

        With ``timeout`` > 0 and nothing runnable, blocks up to ``timeout``
        seconds (or until the next timer deadline / a post) first.
        """
        if timeout > 0 and self._posted.empty():
            wait = timeout
            deadline = self.next_deadline()
            if deadline is not None:
                wait = min(wait, max(deadline - self.clock(), 0.0))
            if wait > 0:
                self._wakeup.wait(wait)
        self._wakeup.clear()

        ran = 0
        while True:
            try:
                callback = self._posted.get_nowait()
            except queue.Empty:
                break
            callback()
            ran += 1

        now = self.clock()
        while self._timers and self._timers[0].deadline <= now:
            handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran


class TaskRunner:
    """Run work off the interactive thread, deliver the outcome back on it."""

    def __init__(self, loop: EventLoop) -> None:
        self.loop = loop

    def run(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[BaseException], None],
        name: str = "task",
    ) -> Task:
        task = Task(work=work, on_success=on_success, on_failure=on_failure, name=name)
        thread = threading.Thread(
            target=self._execute, args=(task,), name=f"{name}-{task.task_id}", daemon=True
        )
        task.status = TaskStatus.RUNNING
        logger.debug("task started id=%d name=%s", task.task_id, name)
        thread.start()
        return task

    def _execute(self, task: Task) -> None:
        # worker thread: work 以外の状態変更は loop.post 経由で UI スレッドへ
        try:
            result: Any = task.work()
        except BaseException as e:  # SystemExit 等も on_failure へ
            logger.debug("task failed id=%d name=%s error=%s", task.task_id, task.name, e)
            self.loop.post(functools.partial(self._deliver_failure, task, e))
        else:
            self.loop.post(functools.partial(self._deliver_success, task, result))

    def _deliver_success(self, task: Task, result: Any) -> None:
        task.status = TaskStatus.SUCCEEDED
        logger.debug("task succeeded id=%d name=%s", task.task_id, task.name)
        task.on_success(result)

    def _deliver_failure(self, task: Task, error: BaseException) -> None:
        task.status = TaskStatus.FAILED
        task.on_failure(error)
