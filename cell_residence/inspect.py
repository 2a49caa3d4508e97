"""Inspect a connection log: time range, sampling intervals, cell activity."""

from __future__ import annotations

from dataclasses import dataclass

from cell_residence.models import EventLog
from cell_residence.timeutils import DeltaStats, delta_stats


@dataclass(frozen=True, slots=True)
class InspectResult:
    """High-level log inspection result."""

    events: int
    cells: int
    min_time_s: int | None
    max_time_s: int | None
    delta: DeltaStats | None
    min_lat: float | None
    max_lat: float | None
    min_lon: float | None
    max_lon: float | None
    duplicates_time: int
    busiest_cell: str | None
    busiest_count: int


def inspect_log(log: EventLog) -> InspectResult:
    """Inspect an already-loaded log."""

    events = log.events
    if not events:
        return InspectResult(
            events=0,
            cells=0,
            min_time_s=None,
            max_time_s=None,
            delta=None,
            min_lat=None,
            max_lat=None,
            min_lon=None,
            max_lon=None,
            duplicates_time=0,
            busiest_cell=None,
            busiest_count=0,
        )

    times = [e.epoch_s for e in events]
    dupe = 0
    for i in range(1, len(times)):
        if times[i] == times[i - 1]:
            dupe += 1

    busiest = min(log.groups.values(), key=lambda g: (-g.count, g.tag))
    lats = [e.latitude for e in events]
    lons = [e.longitude for e in events]
    return InspectResult(
        events=len(events),
        cells=len(log.groups),
        min_time_s=times[0],
        max_time_s=times[-1],
        delta=delta_stats(times),
        min_lat=min(lats),
        max_lat=max(lats),
        min_lon=min(lons),
        max_lon=max(lons),
        duplicates_time=dupe,
        busiest_cell=busiest.tag,
        busiest_count=busiest.count,
    )
