"""Winner selection and display ordering for a target number."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Sequence, TypeVar

from .distance import Rankable, distance, ranking_key

WINNER_COUNT = 5

E = TypeVar("E", bound=Rankable)


@dataclass(frozen=True)
class RankedEntry(Generic[E]):
    """One row of a ranking.

    Attributes
    ----------
    entry : E
        The ranked entry.
    distance : int
        Absolute distance between the entry's number and the target.
    winner : bool
        Whether this ranking selects the entry as a winner. This reflects the
        computed result, not the entry's stored ``winner`` flag.
    """

    entry: E
    distance: int
    winner: bool


@dataclass(frozen=True)
class RankingResult(Generic[E]):
    """Outcome of :func:`rank`.

    Attributes
    ----------
    target_number : int
        Target the entries were ranked against.
    ranked : tuple[RankedEntry, ...]
        Rows in display order: winners first, then the rest by ascending
        distance.
    winner_ids : frozenset[int]
        Ids of the selected winners, ready for
        :meth:`EntryStore.reset_and_mark_winners`.
    """

    target_number: int
    ranked: tuple[RankedEntry[E], ...]
    winner_ids: frozenset[int]

    @property
    def ordered(self) -> list[E]:
        """Entries in display order."""
        return [row.entry for row in self.ranked]

    @property
    def winners(self) -> list[E]:
        """Winning entries, closest first."""
        return [row.entry for row in self.ranked if row.winner]


def rank(
    entries: Iterable[E],
    target_number: int,
    *,
    winner_count: int = WINNER_COUNT,
) -> RankingResult[E]:
    """Rank ``entries`` by closeness to ``target_number`` and pick the winners.

    Entries are sorted by ``(distance, id)`` so the lowest id wins a tie. The
    first ``min(winner_count, len(entries))`` become winners. Because winners
    and non-winners share the same key, the display ordering (winners first,
    then the rest by distance) is the sorted sequence itself.

    The function is pure: persisting the winner set is up to the caller. An
    empty input yields an empty result with no winners.

    Parameters
    ----------
    entries : Iterable[E]
        Persisted entries exposing ``id`` and ``number``.
    target_number : int
        Value the guesses are compared against.
    winner_count : int, default: WINNER_COUNT
        Maximum number of winners.

    Returns
    -------
    RankingResult
        Display ordering and the winner id set.

    Raises
    ------
    ValueError
        If ``winner_count`` is negative, or an entry has no id.
    """
    if winner_count < 0:
        raise ValueError("winner_count must be non-negative")

    materialized: Sequence[E] = list(entries)
    ordered = sorted(materialized, key=lambda entry: ranking_key(entry, target_number))
    cutoff = min(winner_count, len(ordered))

    ranked = tuple(
        RankedEntry(
            entry=entry,
            distance=distance(entry.number, target_number),
            winner=position < cutoff,
        )
        for position, entry in enumerate(ordered)
    )
    winner_ids = frozenset(entry.id for entry in ordered[:cutoff])
    return RankingResult(target_number=target_number, ranked=ranked, winner_ids=winner_ids)


__all__ = ["WINNER_COUNT", "RankedEntry", "RankingResult", "rank"]
