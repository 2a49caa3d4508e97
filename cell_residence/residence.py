"""Residential area discovery from ranked cell dwell intervals."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from cell_residence.intervals import overlaps, segment_times
from cell_residence.models import Area, CellGroup, Event, PreconditionError, TimeInterval
from cell_residence.ranking import ActivityRanker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveryParams:
    """Parameters controlling residential area discovery."""

    # Window length used to cut a cell's connections into dwell intervals.
    gap_threshold_s: float = 180.0
    # A cell qualifies only if (intervals * gap_threshold_s) exceeds this.
    min_stay_s: float = 3600.0

    @property
    def min_connections(self) -> float:
        """Fewest connections that could still reach min_stay_s."""

        return self.min_stay_s / self.gap_threshold_s


@dataclass(slots=True)
class Discovery:
    """Result of discover_residential_areas."""

    area_by_cell: dict[str, int] = field(default_factory=dict)
    areas: list[Area] = field(default_factory=list)

    @property
    def area_count(self) -> int:
        return len(self.areas)


def discover_residential_areas(
    groups: Mapping[str, CellGroup],
    ranking: ActivityRanker | None = None,
    params: DiscoveryParams = DiscoveryParams(),
) -> Discovery:
    """Assign the most active cells to residential areas.

    Cells are visited most active first. The loop stops as soon as a cell has
    fewer connections than params.min_connections, since no less active cell
    can qualify either. A qualifying cell joins the FIRST existing area whose
    intervals coalesce with its own (creation order), otherwise it opens a new
    area.

    Args:
        groups: Cell groups by tag, each sorted by time.
        ranking: Activity ranking to consume; built from groups if omitted.
        params: Thresholds.

    Returns:
        Discovery with the cell -> area mapping and the areas in id order.

    Raises:
        PreconditionError: If gap_threshold_s <= 0 or the ranking names an
            unknown cell.
    """

    if params.gap_threshold_s <= 0:
        raise PreconditionError(f"无效间隔阈值：{params.gap_threshold_s}")
    if ranking is None:
        ranking = ActivityRanker.from_groups(groups.values())

    result = Discovery()
    while ranking:
        tag, count = ranking.pop_most_active()
        if count < params.min_connections:
            logger.debug("小区 %s 连接数 %s 低于下限 %.1f，停止搜索", tag, count, params.min_connections)
            break

        try:
            group = groups[tag]
        except KeyError:
            raise PreconditionError(f"小区不存在：{tag!r}") from None
        segments = segment_times(group.times, params.gap_threshold_s)
        stay_s = len(segments) * params.gap_threshold_s
        if stay_s <= params.min_stay_s:
            logger.debug("小区 %s 停留 %.0fs 不足，跳过", tag, stay_s)
            continue

        area = _first_overlapping_area(result.areas, segments)
        if area is None:
            area = Area(area_id=len(result.areas) + 1, intervals=segments)
            result.areas.append(area)
            logger.debug("小区 %s 开辟新区域 %s", tag, area.area_id)
        else:
            logger.debug("小区 %s 并入区域 %s", tag, area.area_id)
        area.cells.append(tag)
        result.area_by_cell[tag] = area.area_id

    logger.info("识别到居住区域 %s 个，涉及小区 %s 个", result.area_count, len(result.area_by_cell))
    return result


def _first_overlapping_area(areas: list[Area], segments: list[TimeInterval]) -> Area | None:
    for area in areas:
        coalesced, merged = overlaps(segments, area.intervals)
        if coalesced:
            area.intervals = merged
            return area
    return None


def label_events(events: Iterable[Event], area_by_cell: Mapping[str, int]) -> list[Event]:
    """Return copies of events with area_id set from the cell mapping.

    Events of cells without an area stay unassigned.

    Raises:
        PreconditionError: If an event already carries an area id.
    """

    out: list[Event] = []
    for ev in events:
        if ev.area_id is not None:
            raise PreconditionError(f"事件已标注区域 {ev.area_id}：{ev.cell_tag} @ {ev.epoch_s}")
        area_id = area_by_cell.get(ev.cell_tag)
        out.append(ev if area_id is None else replace(ev, area_id=area_id))
    return out


@dataclass(frozen=True, slots=True)
class TopCell:
    """One entry of the top-k most active cells."""

    rank: int
    tag: str
    count: int
    segments: list[TimeInterval]


def top_cells(
    groups: Mapping[str, CellGroup],
    k: int,
    gap_threshold_s: float,
    ranking: ActivityRanker | None = None,
) -> list[TopCell]:
    """List the k most active cells together with their dwell intervals.

    Raises:
        PreconditionError: If the ranking names a cell missing from groups.
    """

    if ranking is None:
        ranking = ActivityRanker.from_groups(groups.values())
    out: list[TopCell] = []
    while ranking and len(out) < k:
        tag, count = ranking.pop_most_active()
        try:
            group = groups[tag]
        except KeyError:
            raise PreconditionError(f"小区不存在：{tag!r}") from None
        out.append(
            TopCell(
                rank=len(out) + 1,
                tag=tag,
                count=count,
                segments=segment_times(group.times, gap_threshold_s),
            )
        )
    return out
