"""Ranking of cells by connection count."""

from __future__ import annotations

import heapq
from typing import Iterable, Iterator

from cell_residence.models import CellGroup


class ActivityRanker:
    """Max-heap view over (cell tag, connection count).

    Cells come out most active first; equal counts are ordered by tag so the
    ranking is deterministic. The heap is rebuilt from the current counts on
    construction, so a new ranker can be made at any time from the same groups.
    """

    def __init__(self, counts: Iterable[tuple[str, int]]) -> None:
        self._heap: list[tuple[int, str]] = [(-count, tag) for tag, count in counts]
        heapq.heapify(self._heap)

    @classmethod
    def from_groups(cls, groups: Iterable[CellGroup]) -> ActivityRanker:
        return cls((g.tag, g.count) for g in groups)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def peek(self) -> tuple[str, int]:
        neg_count, tag = self._heap[0]
        return tag, -neg_count

    def pop_most_active(self) -> tuple[str, int]:
        """Remove and return the most active (tag, count).

        Raises:
            IndexError: If the ranking is exhausted.
        """

        neg_count, tag = heapq.heappop(self._heap)
        return tag, -neg_count

    def __iter__(self) -> Iterator[tuple[str, int]]:
        # Consuming: callers may stop early without draining the heap.
        while self._heap:
            yield self.pop_most_active()
