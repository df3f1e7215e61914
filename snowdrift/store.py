"""Lock-guarded persistence for raffle entries."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from sqlalchemy import func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .db.engine import get_sessionmaker, make_engine
from .errors import StorageError, StorageFailure
from .models import Base, Entry

logger = logging.getLogger(__name__)


def _storage_error(exc: SQLAlchemyError) -> StorageError:
    if isinstance(exc, IntegrityError):
        reason = StorageFailure.CONSTRAINT_VIOLATION
    else:
        reason = StorageFailure.IO_FAILURE
    return StorageError(reason, _failure_detail(exc))


def _failure_detail(exc: SQLAlchemyError) -> str:
    # str(exc) embeds the SQL parameters, i.e. entrant names and emails.
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return f"{type(orig).__name__}: {orig}"
    return type(exc).__name__


class EntryStore:
    """Exclusive owner of the ``entries`` table.

    Every operation runs in its own transaction while holding a single
    re-entrant lock, so concurrent callers observe either the state before or
    after any write and never a partial one. Returned :class:`Entry` objects are
    detached snapshots.
    """

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        """Bind the store to ``engine``.

        Parameters
        ----------
        engine : Engine
            SQLAlchemy engine; see :func:`snowdrift.db.engine.make_engine`.
        create_schema : bool, default: True
            Create the ``entries`` table when it does not exist yet. Disable
            when the schema is managed by Alembic.
        """
        self._engine = engine
        self._Session = get_sessionmaker(engine)
        self._lock = threading.RLock()
        if create_schema:
            try:
                Base.metadata.create_all(engine)
            except SQLAlchemyError as exc:
                raise _storage_error(exc) from exc

    @classmethod
    def open(cls, database_url: Optional[str] = None, **kwargs) -> "EntryStore":
        """Create a store for ``database_url`` (defaults to the configured ``DB_URL``)."""
        return cls(make_engine(database_url), **kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def exclusive(self) -> Iterator["EntryStore"]:
        """Hold the store lock across several operations.

        Used for read-rank-write sequences so no insert lands between reading
        the entries and writing back the winner set.
        """
        with self._lock:
            yield self

    def insert(self, first_name: str, surname: str, email: str, number: int) -> Entry:
        """Append a new entry with ``winner = False`` and return it.

        Values are persisted as given; run :func:`snowdrift.validation.validate`
        first.

        Raises
        ------
        StorageError
            ``CONSTRAINT_VIOLATION`` when the row breaks a table constraint,
            ``IO_FAILURE`` for any other database failure. Nothing is written
            in either case.
        """
        entry = Entry(
            first_name=first_name,
            surname=surname,
            email=email,
            number=number,
        )
        with self._lock:
            try:
                with self._Session.begin() as session:
                    session.add(entry)
                    session.flush()
            except SQLAlchemyError as exc:
                logger.error(f"Failed to insert entry: {_failure_detail(exc)}")
                raise _storage_error(exc) from exc
        logger.debug(f"Inserted entry id={entry.id}")
        return entry

    def list_all(self) -> list[Entry]:
        """Return every entry ordered by ascending id (insertion order)."""
        with self._lock:
            try:
                with self._Session() as session:
                    return list(session.scalars(select(Entry).order_by(Entry.id.asc())).all())
            except SQLAlchemyError as exc:
                logger.error(f"Failed to list entries: {_failure_detail(exc)}")
                raise _storage_error(exc) from exc

    def get(self, entry_id: int) -> Optional[Entry]:
        """Return the entry with ``entry_id``, or ``None``."""
        with self._lock:
            try:
                with self._Session() as session:
                    return Entry.get_by_id(session, entry_id)
            except SQLAlchemyError as exc:
                logger.error(f"Failed to read entry id={entry_id}: {_failure_detail(exc)}")
                raise _storage_error(exc) from exc

    def count(self) -> int:
        with self._lock:
            try:
                with self._Session() as session:
                    return int(session.scalar(select(func.count(Entry.id))) or 0)
            except SQLAlchemyError as exc:
                logger.error(f"Failed to count entries: {_failure_detail(exc)}")
                raise _storage_error(exc) from exc

    def reset_and_mark_winners(self, winner_ids: Iterable[int]) -> None:
        """Replace the winner set with exactly ``winner_ids`` in one transaction.

        All flags are cleared and then set for the given ids. If any id does
        not exist the transaction is rolled back and the previous winner set
        is kept.

        Raises
        ------
        StorageError
            ``CONSTRAINT_VIOLATION`` for unknown ids, ``IO_FAILURE`` when the
            database cannot be written.
        """
        ids = set(winner_ids)
        with self._lock:
            try:
                with self._Session.begin() as session:
                    session.execute(
                        update(Entry)
                        .values(winner=False)
                        .execution_options(synchronize_session=False)
                    )
                    if ids:
                        marked = session.execute(
                            update(Entry)
                            .where(Entry.id.in_(ids))
                            .values(winner=True)
                            .execution_options(synchronize_session=False)
                        ).rowcount
                        if marked != len(ids):
                            known = set(
                                session.scalars(select(Entry.id).where(Entry.id.in_(ids)))
                            )
                            missing = sorted(ids - known)
                            logger.error(f"Winner update rejected, unknown entry ids {missing}")
                            raise StorageError(
                                StorageFailure.CONSTRAINT_VIOLATION,
                                f"unknown entry ids {missing}",
                            )
            except SQLAlchemyError as exc:
                logger.error(f"Failed to update winner flags: {_failure_detail(exc)}")
                raise _storage_error(exc) from exc
        logger.debug(f"Winner set replaced with {len(ids)} entries")


__all__ = ["EntryStore"]
