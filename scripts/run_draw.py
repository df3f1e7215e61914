"""Rank stored entries against a target number and mark the winners.

This is the operator's counterpart of the kiosk's developer window: it prints
the display table, persists the winner set and can export the result.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from snowdrift.config import load_settings
from snowdrift.errors import StorageError, ValidationError
from snowdrift.ranking import distance
from snowdrift.store import EntryStore
from snowdrift.validation import parse_target_number
from snowdrift.workflows import (
    export_current_data,
    get_display_table,
    run_winner_selection,
)


def _print_table(entries, target_number: int) -> None:
    print(f"{'#':>3}  {'Name':<30} {'Number':>10} {'Dist':>8}  Winner")
    for position, entry in enumerate(entries, start=1):
        print(
            f"{position:>3}  {entry.full_name[:30]:<30} {entry.number:>10} "
            f"{distance(entry.number, target_number):>8}  {'YES' if entry.winner else 'NO'}"
        )


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--target",
        default=str(settings.target_number),
        help="target number (default: TARGET_NUMBER)",
    )
    parser.add_argument("--export", action="store_true", help="write an xlsx export")
    parser.add_argument("--dir", default=None, help="export directory (default: EXPORT_DIR)")
    parser.add_argument("--json", action="store_true", help="print the table as JSON")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level)

    try:
        target_number = parse_target_number(args.target)
    except ValidationError as exc:
        print(f"Invalid target number {args.target!r}: {exc.message}", file=sys.stderr)
        return 2

    try:
        store = EntryStore.open(settings.db_url)
        marked = run_winner_selection(store, target_number)
        table = get_display_table(store, target_number)
    except StorageError as exc:
        print(exc.message, file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([entry.to_json() for entry in table], indent=2))
    else:
        _print_table(table, target_number)
        print(f"\n{marked} winner(s) marked for target {target_number}.")

    if args.export:
        result = export_current_data(
            store,
            args.dir or settings.export_dir,
            target_number=target_number,
        )
        print(result.message)
        if not result.ok:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
