"""Data models for connection events, cells, dwell intervals and areas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Iterable, Sequence


DEFAULT_TZ: Final[str] = "Asia/Taipei"
TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


class PreconditionError(ValueError):
    """Raised when an operation is called with input it cannot handle.

    Examples: empty segment input, negative thresholds, unsorted timestamps,
    unknown cell tags. These are programmer or input-data errors; the batch
    driver (CLI) stops the run and reports the message.
    """


@dataclass(frozen=True, slots=True)
class Event:
    """A single cell-tower connection record.

    Attributes:
        epoch_s: Unix epoch seconds.
        longitude: Longitude in decimal degrees.
        latitude: Latitude in decimal degrees.
        cell_tag: Identifier of the serving cell.
        area_id: None while unassigned, otherwise the residential area id (>= 1).
    """

    epoch_s: int
    longitude: float
    latitude: float
    cell_tag: str
    area_id: int | None = None

    @property
    def area_code(self) -> int:
        """Area id as written to output files (0 = unassigned)."""

        return 0 if self.area_id is None else self.area_id


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """A contiguous dwell period [start, end] in epoch seconds."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise PreconditionError(f"无效区间：start={self.start} > end={self.end}")

    @property
    def duration_s(self) -> int:
        return self.end - self.start


@dataclass(slots=True)
class CellGroup:
    """All events logged for one cell tag."""

    tag: str
    events: list[Event] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of connections logged for this cell."""

        return len(self.events)

    def add(self, event: Event) -> None:
        self.events.append(event)

    def sort_by_time(self) -> None:
        self.events.sort(key=lambda e: e.epoch_s)

    @property
    def times(self) -> list[int]:
        """Connection timestamps in epoch seconds, in event order."""

        return [e.epoch_s for e in self.events]


@dataclass(slots=True)
class EventLog:
    """Chronologically sorted events plus their partitioning by cell tag.

    Note:
        Groups keep first-seen order; each group is sorted by time once at
        construction, because the source file may be out of order.
    """

    events: list[Event]
    groups: dict[str, CellGroup]

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> EventLog:
        ordered: list[Event] = []
        groups: dict[str, CellGroup] = {}
        for ev in events:
            ordered.append(ev)
            grp = groups.get(ev.cell_tag)
            if grp is None:
                grp = groups[ev.cell_tag] = CellGroup(tag=ev.cell_tag)
            grp.add(ev)

        for grp in groups.values():
            grp.sort_by_time()
        ordered.sort(key=lambda e: e.epoch_s)
        return cls(events=ordered, groups=groups)

    def group(self, tag: str) -> CellGroup:
        try:
            return self.groups[tag]
        except KeyError:
            raise PreconditionError(f"小区不存在：{tag!r}") from None

    def num_connections(self, tag: str) -> int:
        return self.group(tag).count

    def events_in_area(self, area_id: int) -> list[Event]:
        return [e for e in self.events if e.area_id == area_id]


@dataclass(slots=True)
class Area:
    """A residential area: the merged dwell intervals of its cells.

    The interval set only grows; ids start at 1 in discovery order.
    """

    area_id: int
    intervals: Sequence[TimeInterval]
    cells: list[str] = field(default_factory=list)

    @property
    def dwell_seconds(self) -> int:
        return sum(iv.duration_s for iv in self.intervals)
