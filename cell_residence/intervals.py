"""Dwell-interval segmentation and interval-list merging."""

from __future__ import annotations

from typing import Sequence

from cell_residence.models import PreconditionError, TimeInterval


def segment_times(times: Sequence[int], gap_threshold_s: float) -> list[TimeInterval]:
    """Split sorted timestamps into maximal dwell intervals.

    A timestamp stays in the current interval while its distance from the
    interval's FIRST timestamp is <= gap_threshold_s (a maximum window, not a
    maximum gap between neighbours). Each interval ends at the last timestamp
    that still fit.

    Args:
        times: Epoch seconds, sorted ascending, at least one element.
        gap_threshold_s: Window length in seconds (>= 0).

    Returns:
        Intervals sorted by start, pairwise disjoint.

    Raises:
        PreconditionError: On empty input, negative threshold or unsorted input.
    """

    if not times:
        raise PreconditionError("时间序列为空，无法切分区间")
    if gap_threshold_s < 0:
        raise PreconditionError(f"无效间隔阈值：{gap_threshold_s}")

    out: list[TimeInterval] = []
    low = times[0]
    prev = times[0]
    for t in times[1:]:
        if t < prev:
            raise PreconditionError(f"时间序列未排序：{t} < {prev}")
        if t - low > gap_threshold_s:
            out.append(TimeInterval(low, prev))
            low = t
        prev = t
    out.append(TimeInterval(low, prev))
    return out


def merge_intervals(a: Sequence[TimeInterval], b: Sequence[TimeInterval]) -> list[TimeInterval]:
    """Merge two sorted, disjoint interval lists into one.

    Intervals are taken in order of start (b first on equal starts). An
    interval starting strictly after the last output end opens a new output
    interval; otherwise it extends the last one. Touching intervals
    ([10, 20] and [20, 30]) therefore coalesce; [10, 19] and [20, 30] do not.

    Returns:
        Sorted list in which no two intervals overlap or touch.
    """

    merged: list[TimeInterval] = []

    def _place(iv: TimeInterval) -> None:
        if not merged or merged[-1].end < iv.start:
            merged.append(iv)
        elif merged[-1].end < iv.end:
            merged[-1] = TimeInterval(merged[-1].start, iv.end)

    i = j = 0
    while i < len(a) and j < len(b):
        if a[i].start < b[j].start:
            _place(a[i])
            i += 1
        else:
            _place(b[j])
            j += 1

    # the tail may still touch the last placed interval
    for iv in a[i:]:
        _place(iv)
    for iv in b[j:]:
        _place(iv)
    return merged


def overlaps(a: Sequence[TimeInterval], b: Sequence[TimeInterval]) -> tuple[bool, list[TimeInterval]]:
    """Merge a and b and report whether any intervals coalesced.

    Returns:
        (coalesced, merged): coalesced is True when the merged list is shorter
        than len(a) + len(b).
    """

    merged = merge_intervals(a, b)
    return len(merged) < len(a) + len(b), merged
