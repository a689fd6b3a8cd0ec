from __future__ import annotations

"""Error taxonomy for the upload / report flows.

- ValidationError: 必須入力が空 (controller 側で処理、状態は進めない)
- NotFoundError: 対象ファイル名のレコードが 0 件
- ReportIOError: シリアライズ / ファイル書き込み失敗
- UnknownError: 想定外の collaborator 例外 (汎用 prefix 付きでラップ)
- UploadError: 取り込み処理の失敗
"""

__all__ = [
    "CaseMasterError",
    "ValidationError",
    "NotFoundError",
    "ReportIOError",
    "UnknownError",
    "UploadError",
    "EmptyInputError",
]


class CaseMasterError(Exception):
    """Base exception for domain errors."""


class ValidationError(CaseMasterError):
    """Raised when a required operator input is empty or missing."""


class NotFoundError(CaseMasterError):
    """Raised when a query yields no records."""


class ReportIOError(CaseMasterError, OSError):
    """Raised when a report cannot be serialized or written to disk."""


class UnknownError(CaseMasterError):
    """Wraps an unexpected collaborator failure."""

    PREFIX = "Unexpected error"

    def __init__(self, context: str, cause: BaseException) -> None:
        self.context = context
        self.cause = cause
        super().__init__(f"{self.PREFIX} ({context}): {cause}")


class UploadError(CaseMasterError):
    """Raised when an uploaded workbook cannot be imported."""


class EmptyInputError(ValueError):
    """Raised when a report is requested for an empty record sequence.

    Callers are expected to reject empty result sets before building, so this
    signals a programming error rather than an operator mistake.
    """
