"""Closest-guess ranking for raffle entries."""

from .distance import distance, ranking_key
from .engine import WINNER_COUNT, RankedEntry, RankingResult, rank

__all__ = [
    "WINNER_COUNT",
    "RankedEntry",
    "RankingResult",
    "distance",
    "rank",
    "ranking_key",
]
