from __future__ import annotations

"""
Leaderboard ranking.

Entries are ordered by total descending, then by entity id ascending so that
equal totals always come out in the same order no matter how the rows were
returned. Ties are not collapsed: every entry gets its own 1-based position.
The first three positions carry a badge glyph, the rest an empty string.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Sequence, TypeVar

T = TypeVar("T")

STUDENT_BADGES: Sequence[str] = ("🥇", "🥈", "🥉")
SCHOOL_BADGES: Sequence[str] = ("🏆", "🥈", "🥉")


@dataclass(frozen=True)
class RankedEntry(Generic[T]):
    rank: int
    item: T
    total: float
    badge: str


def badge_for(rank: int, badges: Sequence[str] = STUDENT_BADGES) -> str:
    if 1 <= rank <= len(badges):
        return badges[rank - 1]
    return ""


def rank_entries(
    items: Iterable[T],
    total: Callable[[T], float],
    key: Callable[[T], str],
    badges: Sequence[str] = STUDENT_BADGES,
) -> List[RankedEntry[T]]:
    ordered = sorted(items, key=lambda item: (-total(item), str(key(item))))
    return [
        RankedEntry(rank=position, item=item, total=total(item), badge=badge_for(position, badges))
        for position, item in enumerate(ordered, start=1)
    ]


__all__ = ["RankedEntry", "rank_entries", "badge_for", "STUDENT_BADGES", "SCHOOL_BADGES"]
