import threading
import time
import unittest

from snowdrift.db.engine import make_engine
from snowdrift.errors import StorageError, StorageFailure
from snowdrift.models import Base
from snowdrift.ranking import rank
from snowdrift.store import EntryStore


class EntryStoreTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        self.store = EntryStore(self.engine)

    def tearDown(self):
        self.engine.dispose()

    def _insert_numbers(self, numbers):
        return [
            self.store.insert(f"First{n}", f"Last{n}", f"user{n}@example.com", n)
            for n in numbers
        ]

    def test_insert_returns_populated_entry(self):
        entry = self.store.insert("Jo", "Doe", "a@b.com", 5)
        self.assertIsNotNone(entry.id)
        self.assertEqual(entry.first_name, "Jo")
        self.assertEqual(entry.surname, "Doe")
        self.assertEqual(entry.email, "a@b.com")
        self.assertEqual(entry.number, 5)
        self.assertFalse(entry.winner)

    def test_ids_increase_and_list_is_ordered(self):
        entries = self._insert_numbers([30, 10, 20])
        ids = [e.id for e in entries]
        self.assertEqual(ids, sorted(ids))
        self.assertEqual(len(set(ids)), 3)

        listed = self.store.list_all()
        self.assertEqual([e.id for e in listed], ids)
        self.assertEqual([e.number for e in listed], [30, 10, 20])
        self.assertEqual(self.store.count(), 3)

    def test_duplicate_registrations_are_separate_entries(self):
        first = self.store.insert("Jo", "Doe", "a@b.com", 5)
        second = self.store.insert("Jo", "Doe", "a@b.com", 5)
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(self.store.count(), 2)

    def test_get(self):
        entry = self.store.insert("Jo", "Doe", "a@b.com", 5)
        fetched = self.store.get(entry.id)
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.email, "a@b.com")
        self.assertIsNone(self.store.get(entry.id + 100))

    def test_empty_store(self):
        self.assertEqual(self.store.list_all(), [])
        self.assertEqual(self.store.count(), 0)

    def test_constraint_violation_writes_nothing(self):
        with self.assertRaises(StorageError) as ctx:
            self.store.insert("Jo", "Doe", "a@b.com", 0)
        self.assertEqual(ctx.exception.reason, StorageFailure.CONSTRAINT_VIOLATION)
        self.assertTrue(ctx.exception.message.startswith("Database error:"))
        self.assertEqual(self.store.count(), 0)

    def test_null_field_is_constraint_violation(self):
        with self.assertRaises(StorageError) as ctx:
            self.store.insert(None, "Doe", "a@b.com", 3)  # type: ignore[arg-type]
        self.assertEqual(ctx.exception.reason, StorageFailure.CONSTRAINT_VIOLATION)

    def test_ids_not_reused_after_failed_insert(self):
        first = self.store.insert("A", "B", "c", 1)
        with self.assertRaises(StorageError):
            self.store.insert("A", "B", "c", -1)
        second = self.store.insert("A", "B", "c", 2)
        self.assertGreater(second.id, first.id)

    def test_reset_and_mark_winners_replaces_set(self):
        entries = self._insert_numbers([1, 2, 3, 4])
        self.store.reset_and_mark_winners({entries[0].id, entries[1].id})
        flags = {e.id: e.winner for e in self.store.list_all()}
        self.assertEqual(
            flags,
            {entries[0].id: True, entries[1].id: True, entries[2].id: False, entries[3].id: False},
        )

        self.store.reset_and_mark_winners([entries[3].id])
        winners = [e.id for e in self.store.list_all() if e.winner]
        self.assertEqual(winners, [entries[3].id])

    def test_reset_with_empty_set_clears_all(self):
        entries = self._insert_numbers([1, 2])
        self.store.reset_and_mark_winners({e.id for e in entries})
        self.store.reset_and_mark_winners(set())
        self.assertFalse(any(e.winner for e in self.store.list_all()))

    def test_unknown_winner_id_rolls_back(self):
        entries = self._insert_numbers([1, 2, 3])
        self.store.reset_and_mark_winners({entries[0].id})

        with self.assertRaises(StorageError) as ctx:
            self.store.reset_and_mark_winners({entries[1].id, 9999})
        self.assertEqual(ctx.exception.reason, StorageFailure.CONSTRAINT_VIOLATION)
        self.assertIn("9999", ctx.exception.message)

        winners = [e.id for e in self.store.list_all() if e.winner]
        self.assertEqual(winners, [entries[0].id])

    def test_failed_insert_does_not_log_entrant_fields(self):
        with self.assertLogs("snowdrift.store", level="ERROR") as logs:
            with self.assertRaises(StorageError):
                self.store.insert("Secretname", "Hiddensurname", "secret@mail.com", 0)
        output = "\n".join(logs.output)
        self.assertIn("Failed to insert entry", output)
        for value in ("Secretname", "Hiddensurname", "secret@mail.com"):
            self.assertNotIn(value, output)

    def test_missing_table_does_not_log_entrant_fields(self):
        self.store.insert("Secretname", "Hiddensurname", "secret@mail.com", 5)
        Base.metadata.drop_all(self.engine)
        with self.assertLogs("snowdrift.store", level="ERROR") as logs:
            with self.assertRaises(StorageError):
                self.store.insert("Secretname", "Hiddensurname", "secret@mail.com", 6)
            with self.assertRaises(StorageError):
                self.store.list_all()
        output = "\n".join(logs.output)
        for value in ("Secretname", "Hiddensurname", "secret@mail.com"):
            self.assertNotIn(value, output)

    def test_unknown_winner_id_is_logged(self):
        entry = self.store.insert("Jo", "Doe", "a@b.com", 5)
        with self.assertLogs("snowdrift.store", level="ERROR") as logs:
            with self.assertRaises(StorageError):
                self.store.reset_and_mark_winners({entry.id, 9999})
        self.assertIn("9999", "\n".join(logs.output))

    def test_returned_entries_are_snapshots(self):
        entry = self.store.insert("Jo", "Doe", "a@b.com", 5)
        before = self.store.list_all()
        self.store.reset_and_mark_winners({entry.id})
        self.assertFalse(before[0].winner)
        self.assertTrue(self.store.list_all()[0].winner)

    def test_missing_table_is_io_failure(self):
        self.store.insert("Jo", "Doe", "a@b.com", 5)
        Base.metadata.drop_all(self.engine)
        with self.assertRaises(StorageError) as ctx:
            self.store.list_all()
        self.assertEqual(ctx.exception.reason, StorageFailure.IO_FAILURE)
        with self.assertRaises(StorageError) as ctx:
            self.store.reset_and_mark_winners(set())
        self.assertEqual(ctx.exception.reason, StorageFailure.IO_FAILURE)

    def test_schema_not_created_when_disabled(self):
        engine = make_engine("sqlite+pysqlite:///:memory:")
        try:
            store = EntryStore(engine, create_schema=False)
            with self.assertRaises(StorageError) as ctx:
                store.count()
            self.assertEqual(ctx.exception.reason, StorageFailure.IO_FAILURE)
        finally:
            engine.dispose()


class EntryStoreConcurrencyTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        self.store = EntryStore(self.engine)

    def tearDown(self):
        self.engine.dispose()

    def test_concurrent_inserts_get_unique_ids(self):
        errors = []

        def worker(offset):
            try:
                for i in range(25):
                    self.store.insert("T", str(offset), "t@example.com", offset * 100 + i + 1)
            except Exception as exc:  # pragma: no cover - surfaced by the assertion
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        entries = self.store.list_all()
        self.assertEqual(len(entries), 200)
        self.assertEqual(len({e.id for e in entries}), 200)

    def test_readers_never_see_partial_winner_set(self):
        self.store.insert("Seed", "Entry", "s@example.com", 1)
        for n in range(2, 12):
            self.store.insert("Seed", "Entry", "s@example.com", n)
        self.store.reset_and_mark_winners(rank(self.store.list_all(), 1).winner_ids)

        observed = []

        def writer():
            target = 1
            for _ in range(100):
                target = 12 - target
                with self.store.exclusive():
                    result = rank(self.store.list_all(), target)
                    self.store.reset_and_mark_winners(result.winner_ids)
                time.sleep(0.0005)

        def reader():
            for _ in range(100):
                observed.append(sum(1 for e in self.store.list_all() if e.winner))
                time.sleep(0.0005)

        writer_thread = threading.Thread(target=writer)
        readers = [threading.Thread(target=reader) for _ in range(3)]
        writer_thread.start()
        for t in readers:
            t.start()
        for t in readers:
            t.join()
        writer_thread.join()

        self.assertEqual(set(observed), {5})


if __name__ == "__main__":
    unittest.main()
