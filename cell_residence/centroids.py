"""Per-area centroid estimation and spread statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Sequence

from cell_residence.geo import center_of_gravity, haversine_km, mean_center
from cell_residence.models import Event

CDF_STEPS: Final[int] = 50

CENTER_METHODS: Final[dict[str, Callable[..., tuple[float, float]]]] = {
    "gravity": center_of_gravity,
    "average": mean_center,
}


@dataclass(frozen=True, slots=True)
class CentroidReport:
    """Center of one area and how far its events lie from it (km)."""

    area_id: int
    method: str
    center_lat: float
    center_lon: float
    points: int
    mean_km: float
    max_km: float
    min_km: float
    # (bound_km, percent of events within bound_km)
    cdf: list[tuple[float, float]]


def area_centroid_report(
    events: Sequence[Event],
    area_id: int,
    method: str = "gravity",
    steps: int = CDF_STEPS,
) -> CentroidReport:
    """Compute the center of an area's events and their distance distribution.

    Args:
        events: Labeled events (any order); only those with area_id are used.
        area_id: Area to report on.
        method: "gravity" (spherical center of gravity) or "average" (mean lat/lon).
        steps: Number of CDF sample points between 0 and the max distance.

    Raises:
        ValueError: If the method is unknown or the area has no events.
    """

    try:
        center_fn = CENTER_METHODS[method]
    except KeyError:
        raise ValueError(f"未知中心点算法：{method!r}，可选：{', '.join(CENTER_METHODS)}") from None

    members = [e for e in events if e.area_id == area_id]
    if not members:
        raise ValueError(f"区域 {area_id} 没有任何事件")

    lat, lon = center_fn((e.latitude, e.longitude) for e in members)
    dists = [haversine_km(lat, lon, e.latitude, e.longitude) for e in members]
    max_km = max(dists)

    cdf: list[tuple[float, float]] = []
    for j in range(1, steps + 1):
        bound = max_km if j == steps else max_km * j / steps
        within = sum(1 for d in dists if d <= bound)
        cdf.append((bound, 100.0 * within / len(dists)))

    return CentroidReport(
        area_id=area_id,
        method=method,
        center_lat=lat,
        center_lon=lon,
        points=len(members),
        mean_km=sum(dists) / len(dists),
        max_km=max_km,
        min_km=min(dists),
        cdf=cdf,
    )
