"""Movement segmentation by implied travel speed.

Works on the whole chronological log, independent of cells and areas: a jump
between two consecutive positions that would require moving faster than a
human travel speed ends the current dwell window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from cell_residence.geo import haversine_km
from cell_residence.models import Event, PreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SpeedParams:
    """Parameters controlling speed-based segmentation."""

    # 45 km/h expressed in km per second.
    speed_threshold_kmps: float = 0.0125
    # Great-circle distance underestimates the travelled path.
    distance_upscale: float = 1.1
    # Windows must last strictly longer than this to be reported.
    min_dwell_s: float = 600.0


@dataclass(frozen=True, slots=True)
class DwellSegment:
    """A stationary window over the sorted log, indices inclusive."""

    segment_id: int
    start_index: int
    end_index: int
    start_s: int
    end_s: int

    @property
    def duration_s(self) -> int:
        return self.end_s - self.start_s

    @property
    def points(self) -> int:
        return self.end_index - self.start_index + 1


def _elapsed_s(prev: Event, cur: Event) -> int:
    elapsed = cur.epoch_s - prev.epoch_s
    if elapsed < 0:
        raise PreconditionError(f"时间差为负（{elapsed}s），输入未按时间排序")
    return elapsed


def segment_by_speed(events: Sequence[Event], params: SpeedParams = SpeedParams()) -> list[DwellSegment]:
    """Split the time-sorted log into dwell windows separated by fast moves.

    Consecutive pairs with zero distance or zero elapsed time carry no speed
    signal and are skipped. When the implied speed
    distance * distance_upscale / elapsed exceeds speed_threshold_kmps the
    window [low, i - 1] is closed and a new one opens at i. Closed windows
    (including the trailing one) are kept when they last longer than
    min_dwell_s.

    Args:
        events: Events sorted ascending by time.
        params: Thresholds.

    Returns:
        Qualifying windows in time order.

    Raises:
        PreconditionError: If two consecutive events go back in time.
    """

    if not events:
        return []

    out: list[DwellSegment] = []

    def _close(low: int, high: int) -> None:
        duration = events[high].epoch_s - events[low].epoch_s
        if duration > params.min_dwell_s:
            out.append(
                DwellSegment(
                    segment_id=len(out) + 1,
                    start_index=low,
                    end_index=high,
                    start_s=events[low].epoch_s,
                    end_s=events[high].epoch_s,
                )
            )

    low = 0
    for i in range(1, len(events)):
        prev, cur = events[i - 1], events[i]
        elapsed = _elapsed_s(prev, cur)
        shift_km = haversine_km(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        if shift_km == 0 or elapsed == 0:
            continue

        speed = shift_km * params.distance_upscale / elapsed
        if speed > params.speed_threshold_kmps:
            _close(low, i - 1)
            low = i

    _close(low, len(events) - 1)
    logger.info("按速度切分：%s 个停留段（共 %s 个点）", len(out), len(events))
    return out


def speed_series(events: Sequence[Event]) -> Iterator[tuple[int, float]]:
    """Yield (epoch_s, km/h) for each consecutive pair with non-zero elapsed time.

    Raises:
        PreconditionError: If two consecutive events go back in time.
    """

    for i in range(1, len(events)):
        prev, cur = events[i - 1], events[i]
        elapsed = _elapsed_s(prev, cur)
        if elapsed == 0:
            continue
        shift_km = haversine_km(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        yield cur.epoch_s, 3600.0 * shift_km / elapsed
