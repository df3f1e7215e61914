"""Apply Alembic migrations to the configured file database."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from snowdrift.config import load_settings
from snowdrift.db.utils import is_memory_sqlite_url
from snowdrift.store import EntryStore

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report(database_url: str) -> None:
    """Print the tables and the number of stored entries."""
    store = EntryStore.open(database_url, create_schema=False)
    tables = sorted(inspect(store.engine).get_table_names())
    print("Current tables:", ", ".join(tables))
    if "entries" in tables:
        print(f"Stored entries: {store.count()}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--revision", default="head", help="Alembic revision to upgrade to"
    )
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    if is_memory_sqlite_url(settings.db_url):
        print("DB_URL points at an in-memory database; set it to a file URL first.")
        return 1

    upgrade_db(args.revision)
    report(settings.db_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
