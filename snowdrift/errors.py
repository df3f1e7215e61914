"""Error taxonomy shared by the registration engine.

Every failure surfaced to the kiosk operator is a :class:`KioskError` carrying
a machine-readable ``reason`` and a human readable ``message`` that can be
shown as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ValidationFailure(str, Enum):
    """Reasons a registration form is rejected before it reaches the store."""

    MISSING_FIELD = "missing_field"
    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"


class StorageFailure(str, Enum):
    """Reasons the entry store could not complete an operation."""

    CONSTRAINT_VIOLATION = "constraint_violation"
    IO_FAILURE = "io_failure"


class ExportFailure(str, Enum):
    """Reasons a spreadsheet export could not be produced."""

    NO_DATA = "no_data"
    WRITE_FAILURE = "write_failure"


class KioskError(Exception):
    """Base class for errors that carry an operator-facing message."""

    def __init__(self, reason: Enum, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<{type(self).__name__}(reason={self.reason.value}, message={self.message!r})>"


class ValidationError(KioskError, ValueError):
    """Raised when submitted form fields do not pass the acceptance rules."""

    reason: ValidationFailure

    _MESSAGES = {
        ValidationFailure.MISSING_FIELD: "Please fill all fields!",
        ValidationFailure.NOT_A_NUMBER: "Number must be a whole number!",
        ValidationFailure.OUT_OF_RANGE: "Number must be >= 1",
    }

    def __init__(self, reason: ValidationFailure, message: Optional[str] = None) -> None:
        super().__init__(reason, message or self._MESSAGES[reason])


class StorageError(KioskError, RuntimeError):
    """Raised when the entry store fails to read or persist data."""

    reason: StorageFailure

    def __init__(self, reason: StorageFailure, detail: str) -> None:
        super().__init__(reason, f"Database error: {detail}")
        self.detail = detail


class ExportError(KioskError, RuntimeError):
    """Raised when the current entries cannot be exported."""

    reason: ExportFailure

    def __init__(self, reason: ExportFailure, detail: Optional[str] = None) -> None:
        if reason is ExportFailure.NO_DATA:
            message = "No data to export!"
        else:
            message = f"Write error: {detail}" if detail else "Write error"
        super().__init__(reason, message)
        self.detail = detail


__all__ = [
    "ExportError",
    "ExportFailure",
    "KioskError",
    "StorageError",
    "StorageFailure",
    "ValidationError",
    "ValidationFailure",
]
