"""Pure domain functions for ranking expansion candidates.

Why (SAM): Deterministic, pure functions with no I/O. Candidate ordering must
not depend on the order feedback documents were inserted, so ties are broken
by a key of the item itself rather than by container order.

Functions:
- rank_by_score_desc: Descending sort by score, ties broken by key ascending
- top_k: Slice helper that treats k <= 0 as "nothing"
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def rank_by_score_desc(
    items: Sequence[T],
    scores: Sequence[float],
    key: Callable[[T], str],
) -> list[tuple[T, float]]:
    """Pure function: pair items with scores and order them best first.

    Args:
        items: Items to rank (any type)
        scores: Corresponding scores (must have same length as items)
        key: Tie-break key; equal scores are ordered by ascending key

    Returns:
        (item, score) pairs sorted by descending score.

    Examples:
        >>> rank_by_score_desc(["b", "a", "c"], [0.5, 0.5, 0.9], key=str)
        [('c', 0.9), ('a', 0.5), ('b', 0.5)]
    """
    if len(items) != len(scores):
        raise ValueError("items and scores must have the same length")
    pairs = list(zip(items, scores, strict=True))
    pairs.sort(key=lambda p: (-p[1], key(p[0])))
    return pairs


def top_k(ranked: Sequence[T], k: int) -> list[T]:
    if k <= 0:
        return []
    return list(ranked[:k])
