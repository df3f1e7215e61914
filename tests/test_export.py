from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

from openpyxl import load_workbook

from snowdrift.errors import ExportError, ExportFailure
from snowdrift.export import HEADER, SHEET_TITLE, export, export_filename, write_export
from snowdrift.models import Entry


def _entry(entry_id: int, number: int, *, winner: bool = False, first_name: str = "Jo") -> Entry:
    return Entry(
        id=entry_id,
        first_name=first_name,
        surname="Doe",
        email=f"jo{entry_id}@example.com",
        number=number,
        winner=winner,
    )


def _rows(payload: bytes) -> list[tuple]:
    workbook = load_workbook(BytesIO(payload))
    sheet = workbook[SHEET_TITLE]
    return list(sheet.iter_rows(values_only=True))


class ExportFormatterTests(unittest.TestCase):
    def test_empty_entries_rejected(self) -> None:
        with self.assertRaises(ExportError) as ctx:
            export([])
        self.assertEqual(ctx.exception.reason, ExportFailure.NO_DATA)
        self.assertEqual(ctx.exception.message, "No data to export!")

    def test_header_and_rows_in_supplied_order(self) -> None:
        entries = [_entry(3, 70, winner=True), _entry(1, 10), _entry(2, 50, winner=True)]
        rows = _rows(export(entries))

        self.assertEqual(rows[0], HEADER)
        self.assertEqual(
            rows[1:],
            [
                ("Jo", "Doe", "jo3@example.com", 70, "YES"),
                ("Jo", "Doe", "jo1@example.com", 10, "NO"),
                ("Jo", "Doe", "jo2@example.com", 50, "YES"),
            ],
        )

    def test_winner_ids_override_stored_flags(self) -> None:
        entries = [_entry(1, 10, winner=True), _entry(2, 50), _entry(3, 55)]
        rows = _rows(export(entries, frozenset({2, 3})))
        self.assertEqual([row[4] for row in rows[1:]], ["NO", "YES", "YES"])

    def test_single_sheet_with_bold_header(self) -> None:
        workbook = load_workbook(BytesIO(export([_entry(1, 5)])))
        self.assertEqual(workbook.sheetnames, [SHEET_TITLE])
        sheet = workbook[SHEET_TITLE]
        self.assertTrue(all(cell.font.bold for cell in sheet[1]))

    def test_formula_like_text_stays_literal(self) -> None:
        entry = _entry(1, 5, first_name="=HYPERLINK(\"http://x\")")
        workbook = load_workbook(BytesIO(export([entry])))
        cell = workbook[SHEET_TITLE]["A2"]
        self.assertEqual(cell.value, "=HYPERLINK(\"http://x\")")
        self.assertEqual(cell.data_type, "s")

    def test_control_characters_are_dropped(self) -> None:
        rows = _rows(export([_entry(1, 5, first_name="Jo\x07")]))
        self.assertEqual(rows[1][0], "Jo")


class ExportFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name)
        self.now = datetime(2026, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_filename_carries_microseconds(self) -> None:
        self.assertEqual(
            export_filename(self.now), "registrations_20260102T030405_678901Z.xlsx"
        )
        self.assertEqual(
            export_filename(self.now, 2), "registrations_20260102T030405_678901Z-2.xlsx"
        )

    def test_write_creates_directory(self) -> None:
        target = self.directory / "nested" / "exports"
        path = write_export(b"payload", target, now=self.now)
        self.assertEqual(path.parent, target)
        self.assertEqual(path.read_bytes(), b"payload")

    def test_same_timestamp_never_overwrites(self) -> None:
        first = write_export(b"one", self.directory, now=self.now)
        second = write_export(b"two", self.directory, now=self.now)
        self.assertNotEqual(first, second)
        self.assertEqual(first.read_bytes(), b"one")
        self.assertEqual(second.read_bytes(), b"two")
        self.assertTrue(second.name.endswith("-1.xlsx"))

    def test_os_error_becomes_write_failure(self) -> None:
        with patch.object(Path, "open", side_effect=PermissionError("read-only")):
            with self.assertRaises(ExportError) as ctx:
                write_export(b"payload", self.directory, now=self.now)
        self.assertEqual(ctx.exception.reason, ExportFailure.WRITE_FAILURE)
        self.assertIn("read-only", ctx.exception.message)

    def test_directory_that_is_a_file(self) -> None:
        blocker = self.directory / "blocker"
        blocker.write_text("x")
        with self.assertRaises(ExportError) as ctx:
            write_export(b"payload", blocker, now=self.now)
        self.assertEqual(ctx.exception.reason, ExportFailure.WRITE_FAILURE)


if __name__ == "__main__":
    unittest.main()
