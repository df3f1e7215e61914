"""Distance helpers for closest-guess ranking."""

from __future__ import annotations

from typing import Protocol


class Rankable(Protocol):
    id: int
    number: int


def distance(number: int, target_number: int) -> int:
    """Return the absolute distance between a guess and the target."""
    return abs(number - target_number)


def ranking_key(entry: Rankable, target_number: int) -> tuple[int, int]:
    """Sort key ``(distance, id)``; the lowest id wins a tie on distance.

    Raises
    ------
    ValueError
        If ``entry`` has not been persisted yet and therefore has no id.
    """
    if entry.id is None:
        raise ValueError("Entry must be persisted before it can be ranked")
    return distance(entry.number, target_number), entry.id


__all__ = ["Rankable", "distance", "ranking_key"]
