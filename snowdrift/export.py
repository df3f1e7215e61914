"""Spreadsheet export of registrations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import AbstractSet, Optional, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .errors import ExportError, ExportFailure
from .models import Entry

logger = logging.getLogger(__name__)

SHEET_TITLE = "Registrations"
HEADER = ("First Name", "Surname", "Email", "Number", "Winner")
COLUMN_WIDTHS = (15.0, 15.0, 25.0, 12.0, 10.0)
FILENAME_PREFIX = "registrations"
FILENAME_SUFFIX = ".xlsx"
MAX_NAME_ATTEMPTS = 100


def _text(value: str) -> str:
    # Control characters are not allowed in xlsx cells.
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def _row_values(entry: Entry, winner: bool) -> tuple:
    return (
        _text(entry.first_name),
        _text(entry.surname),
        _text(entry.email),
        entry.number,
        "YES" if winner else "NO",
    )


def export(
    entries: Sequence[Entry],
    winner_ids: Optional[AbstractSet[int]] = None,
) -> bytes:
    """Serialize ``entries`` into an xlsx workbook and return its bytes.

    Rows are written in the order supplied; no reordering happens here. The
    numeric id is not exported.

    Parameters
    ----------
    entries : Sequence[Entry]
        Rows to write.
    winner_ids : Optional[AbstractSet[int]], default: None
        Ids rendered ``YES`` in the Winner column. When omitted the stored
        ``winner`` flag of each entry is used.

    Raises
    ------
    ExportError
        ``NO_DATA`` when ``entries`` is empty.
    """
    if not entries:
        raise ExportError(ExportFailure.NO_DATA)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    bold = Font(bold=True)
    for col_idx, (title, width) in enumerate(zip(HEADER, COLUMN_WIDTHS), start=1):
        cell = sheet.cell(row=1, column=col_idx, value=title)
        cell.font = bold
        sheet.column_dimensions[get_column_letter(col_idx)].width = width

    for row_idx, entry in enumerate(entries, start=2):
        winner = entry.winner if winner_ids is None else entry.id in winner_ids
        for col_idx, value in enumerate(_row_values(entry, winner), start=1):
            cell = sheet.cell(row=row_idx, column=col_idx, value=value)
            if isinstance(value, str):
                # Entrant text is always a literal string, never a formula.
                cell.data_type = "s"

    sheet.freeze_panes = "A2"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(now: datetime, attempt: int = 0) -> str:
    """Return the export file name for ``now``.

    The timestamp carries microseconds; ``attempt`` adds a ``-<n>`` suffix used
    when a file with the plain name already exists.
    """
    stamp = now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S_%fZ")
    suffix = f"-{attempt}" if attempt else ""
    return f"{FILENAME_PREFIX}_{stamp}{suffix}{FILENAME_SUFFIX}"


def write_export(
    payload: bytes,
    directory: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Write ``payload`` to a new file in ``directory`` and return its path.

    Existing files are never overwritten: the file is created exclusively and
    the name gets a numeric suffix on collision.

    Raises
    ------
    ExportError
        ``WRITE_FAILURE`` if the directory or file cannot be written.
    """
    now = now or datetime.now(timezone.utc)
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        for attempt in range(MAX_NAME_ATTEMPTS):
            path = directory / export_filename(now, attempt)
            try:
                with path.open("xb") as handle:
                    handle.write(payload)
            except FileExistsError:
                logger.debug(f"Export name {path.name} taken, retrying")
                continue
            return path
    except OSError as exc:
        logger.error(f"Failed to write export to {directory}: {exc}")
        raise ExportError(ExportFailure.WRITE_FAILURE, str(exc)) from exc

    raise ExportError(
        ExportFailure.WRITE_FAILURE,
        f"no free file name in {directory} after {MAX_NAME_ATTEMPTS} attempts",
    )


__all__ = [
    "HEADER",
    "SHEET_TITLE",
    "export",
    "export_filename",
    "write_export",
]
