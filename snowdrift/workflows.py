"""Operations consumed by the kiosk front end.

Each workflow composes validation, the entry store, ranking and export. The
presentation layer only talks to the functions in this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .errors import ExportError, KioskError, StorageError, ValidationError
from .export import export, write_export
from .models import Entry
from .ranking import rank
from .store import EntryStore
from .validation import validate

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS_MESSAGE = "Registration successful!"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of :func:`submit_registration`.

    Attributes
    ----------
    entry : Optional[Entry]
        The stored entry, or ``None`` when the submission was rejected.
    message : str
        Message to show to the entrant.
    error : Optional[KioskError]
        The validation or storage error behind a rejection.
    """

    entry: Optional[Entry]
    message: str
    error: Optional[KioskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExportResult:
    """Outcome of :func:`export_current_data`.

    Attributes
    ----------
    path : Optional[Path]
        Written file, or ``None`` on failure.
    row_count : int
        Number of data rows (the header is not counted).
    message : str
        Message to show to the operator.
    error : Optional[KioskError]
        The export or storage error behind a failure.
    """

    path: Optional[Path]
    row_count: int
    message: str
    error: Optional[KioskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def submit_registration(
    store: EntryStore,
    first_name: str,
    surname: str,
    email: str,
    number_text: str,
) -> SubmissionResult:
    """Validate a registration form and store it.

    Validation and storage failures never propagate; they are returned as a
    result carrying the user-facing message and the underlying error.

    Parameters
    ----------
    store : EntryStore
        Store receiving the new entry.
    first_name, surname, email : str
        Text fields as typed by the entrant.
    number_text : str
        The guess as typed by the entrant.

    Returns
    -------
    SubmissionResult
        ``ok`` with the created entry, or the rejection message.
    """
    try:
        registration = validate(first_name, surname, email, number_text)
    except ValidationError as exc:
        logger.warning(f"Registration rejected: {exc.reason.value}")
        return SubmissionResult(entry=None, message=exc.message, error=exc)

    try:
        entry = store.insert(
            registration.first_name,
            registration.surname,
            registration.email,
            registration.number,
        )
    except StorageError as exc:
        return SubmissionResult(entry=None, message=exc.message, error=exc)

    logger.info(f"Registered entry id={entry.id}")
    return SubmissionResult(entry=entry, message=REGISTRATION_SUCCESS_MESSAGE)


def get_display_table(store: EntryStore, target_number: int) -> list[Entry]:
    """Return all entries in display order for ``target_number``.

    Winners for that target come first, then the remaining entries by
    ascending distance; ties go to the lower id.

    Raises
    ------
    StorageError
        If the entries cannot be read.
    """
    return rank(store.list_all(), target_number).ordered


def run_winner_selection(store: EntryStore, target_number: int) -> int:
    """Select the winners for ``target_number`` and persist their flags.

    The read, ranking and write happen while holding the store lock, so a
    concurrent insert is either fully considered or not at all. Running the
    selection again with the same target and no new entries yields the same
    winner set.

    Parameters
    ----------
    store : EntryStore
        Store whose entries are ranked and updated.
    target_number : int
        Target the guesses are compared against.

    Returns
    -------
    int
        Number of winners marked, ``min(5, entry count)``.

    Raises
    ------
    StorageError
        If the entries cannot be read or the flags cannot be written.
    """
    with store.exclusive():
        entries = store.list_all()
        if not entries:
            logger.info("Winner selection skipped: no entries")
            return 0
        result = rank(entries, target_number)
        store.reset_and_mark_winners(result.winner_ids)

    logger.info(
        f"Marked {len(result.winner_ids)} winners out of {len(entries)} entries "
        f"for target {target_number}"
    )
    return len(result.winner_ids)


def export_current_data(
    store: EntryStore,
    export_dir: Optional[Union[str, Path]] = None,
    *,
    target_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ExportResult:
    """Export every entry to a new xlsx file.

    Rows follow insertion order and the Winner column shows the stored flags.
    When ``target_number`` is given, the display ordering for that target is
    exported and the Winner column shows the winners for that target, whether
    or not they have been persisted.

    Parameters
    ----------
    store : EntryStore
        Source of the entries.
    export_dir : Optional[Union[str, Path]], default: None
        Destination directory. Defaults to the configured ``EXPORT_DIR``.
    target_number : Optional[int], default: None
        Export in display order for this target instead of insertion order.
    now : Optional[datetime], default: None
        Timestamp used for the file name; defaults to the current time.

    Returns
    -------
    ExportResult
        The written path and row count, or the failure message.
    """
    if export_dir is None:
        from .config import load_settings

        export_dir = load_settings().export_dir

    try:
        entries = store.list_all()
    except StorageError as exc:
        return ExportResult(path=None, row_count=0, message=exc.message, error=exc)

    winner_ids = None
    if target_number is not None:
        ranking = rank(entries, target_number)
        entries = ranking.ordered
        winner_ids = ranking.winner_ids

    try:
        payload = export(entries, winner_ids)
        path = write_export(payload, Path(export_dir), now=now)
    except ExportError as exc:
        logger.warning(f"Export failed: {exc.message}")
        return ExportResult(path=None, row_count=0, message=exc.message, error=exc)

    logger.info(f"Exported {len(entries)} entries to {path}")
    return ExportResult(
        path=path,
        row_count=len(entries),
        message=f"Exported {len(entries)} users to {path.name}",
    )


__all__ = [
    "ExportResult",
    "SubmissionResult",
    "export_current_data",
    "get_display_table",
    "run_winner_selection",
    "submit_registration",
]
