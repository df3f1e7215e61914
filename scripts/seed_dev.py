"""Reset the development database and seed sample registrations."""

from __future__ import annotations

import logging

from snowdrift.config import load_settings
from snowdrift.db.engine import make_engine
from snowdrift.db.utils import is_memory_sqlite_url
from snowdrift.models import Base
from snowdrift.store import EntryStore
from snowdrift.workflows import submit_registration

SAMPLE_ENTRIES = [
    ("Alice", "Frost", "alice@example.com", "42"),
    ("Bob", "Winter", "bob@example.com", "97"),
    ("Carla", "Snow", "carla@example.com", "100"),
    ("Dmitri", "Ice", "dmitri@example.com", "150"),
    ("Eve", "Hail", "eve@example.com", "101"),
    ("Farah", "Sleet", "farah@example.com", "7"),
    ("Gus", "Drift", "gus@example.com", "99"),
]


def main() -> int:
    """Seed the development database with sample data."""
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    if is_memory_sqlite_url(settings.db_url):
        print("DB_URL points at an in-memory database; nothing would persist.")
        return 1

    engine = make_engine(settings.db_url)
    # Drop and recreate so ids start from 1 again.
    Base.metadata.drop_all(engine)
    store = EntryStore(engine)

    for first_name, surname, email, number in SAMPLE_ENTRIES:
        result = submit_registration(store, first_name, surname, email, number)
        if not result.ok:
            print(f"Could not seed {first_name}: {result.message}")
            return 1

    print(f"Seeded {store.count()} entries into {engine.url.render_as_string(hide_password=True)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
