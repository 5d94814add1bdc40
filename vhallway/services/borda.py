from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from vhallway.services.errors import RankingLengthMismatch


def borda_points(scores: Sequence[int]) -> List[int]:
    """Map one voter's raw scores to Borda points, aligned with the input.

    The least preferred (lowest score) candidate gets 0 points and the most
    preferred gets ``len(scores) - 1``. Equal scores keep their input order.
    """
    order = sorted(range(len(scores)), key=lambda index: scores[index])
    points = [0] * len(scores)
    for position, index in enumerate(order):
        points[index] = position
    return points


def borda_count(rankings: Sequence[Sequence[int]]) -> List[int]:
    """Sum every voter's Borda points per candidate position.

    All rankings must cover the same candidates in the same order. Ties in
    the returned totals are left for the caller to break.
    """
    if not rankings:
        return []
    expected = len(rankings[0])
    for ranking in rankings[1:]:
        if len(ranking) != expected:
            raise RankingLengthMismatch(expected, len(ranking))

    totals = [0] * expected
    for ranking in rankings:
        for index, points in enumerate(borda_points(ranking)):
            totals[index] += points
    return totals


def select_winners(
    topic_ids: Sequence[int],
    totals: Sequence[int],
    count: int,
) -> List[Tuple[int, int]]:
    """Return the top ``count`` (topic_id, total) pairs.

    Highest total first; equal totals go to the lower topic id.
    """
    by_topic: Dict[int, int] = dict(zip(topic_ids, totals))
    ranked = sorted(by_topic.items(), key=lambda item: (-item[1], item[0]))
    return ranked[: max(0, count)]
