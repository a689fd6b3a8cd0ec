from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""Report request / result models."""

__all__ = [
    "ReportArtifact",
    "ReportQuery",
    "ReportResult",
]

# Complete .xlsx document. No identity beyond the bytes themselves.
ReportArtifact = bytes


@dataclass(frozen=True)
class ReportQuery:
    """A single report request keyed by the originating upload file name."""
    file_name: str

    def __post_init__(self) -> None:
        if not self.file_name:
            raise ValueError("file_name must be a non-empty string")


@dataclass(frozen=True)
class ReportResult:
    """Outcome of one generate-and-save run (used for SUMMARY output)."""
    file_name: str
    record_count: int
    size_bytes: int
    output_path: Path | None
    elapsed_seconds: float
