"""Registration, ranking and export engine for the Snow Drift raffle kiosk."""

from .errors import (
    ExportError,
    ExportFailure,
    KioskError,
    StorageError,
    StorageFailure,
    ValidationError,
    ValidationFailure,
)
from .store import EntryStore
from .workflows import (
    ExportResult,
    SubmissionResult,
    export_current_data,
    get_display_table,
    run_winner_selection,
    submit_registration,
)

__version__ = "0.1.0"

__all__ = [
    "EntryStore",
    "ExportError",
    "ExportFailure",
    "ExportResult",
    "KioskError",
    "StorageError",
    "StorageFailure",
    "SubmissionResult",
    "ValidationError",
    "ValidationFailure",
    "export_current_data",
    "get_display_table",
    "run_winner_selection",
    "submit_registration",
]
