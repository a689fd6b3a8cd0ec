from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Busy indicator with tqdm (TTY only).

Shown while an import / report task is in flight. The work has no known
size, so the indicator is an elapsed-time counter rather than a bar. In
non-TTY environments (CI, piped output) it is disabled to avoid ANSI control
sequence spam.
"""

__all__ = [
    "BusyIndicator",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class BusyIndicator:
    """Indeterminate progress display for one busy period."""

    def __init__(self, description: str, *, enabled: bool | None = None) -> None:
        self.description = description
        self.enabled = is_tty_enabled() if enabled is None else enabled
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=None,
                desc=description,
                bar_format="{desc} [{elapsed}]",
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def tick(self) -> None:
        """Refresh the elapsed time (call from the event pump)."""
        if self.enabled and self.pbar is not None:
            self.pbar.refresh()

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> BusyIndicator:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
