"""Flat-file outputs: timelines, GeoJSON dumps, centroid statistics."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from cell_residence.centroids import CentroidReport, area_centroid_report
from cell_residence.models import CellGroup, Event
from cell_residence.residence import TopCell
from cell_residence.speed import DwellSegment, speed_series
from cell_residence.timeutils import clock_string, format_local

logger = logging.getLogger(__name__)


def _ensure_dir(out_dir: str | Path) -> Path:
    d = Path(out_dir)
    d.mkdir(parents=True, exist_ok=True)
    return d


def write_area_timeline_csv(events: Iterable[Event], out_path: str | Path, tz_name: str) -> None:
    """Write one "time,areaID" row per event (0 = no area)."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["time", "areaID"])
        for ev in events:
            w.writerow([format_local(ev.epoch_s, tz_name), ev.area_code])


def write_speed_timeline_csv(events: Sequence[Event], out_path: str | Path, tz_name: str) -> int:
    """Write "time,speed" (km/h) for consecutive events; returns rows written."""

    p = Path(out_path)
    n = 0
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["time", "speed"])
        for epoch_s, kmh in speed_series(events):
            w.writerow([format_local(epoch_s, tz_name), f"{kmh:.6f}"])
            n += 1
    return n


def write_multipoint_geojson(events: Iterable[Event], out_path: str | Path) -> None:
    """Dump event positions as a GeoJSON MultiPoint ([lon, lat] pairs)."""

    geometry = {
        "type": "MultiPoint",
        "coordinates": [[ev.longitude, ev.latitude] for ev in events],
    }
    Path(out_path).write_text(json.dumps(geometry, indent=4), encoding="utf-8")


def write_area_maps(events: Sequence[Event], area_count: int, out_dir: str | Path) -> list[Path]:
    """Write area-<id>.json for every discovered area."""

    d = _ensure_dir(out_dir)
    paths: list[Path] = []
    for area_id in range(1, area_count + 1):
        p = d / f"area-{area_id}.json"
        write_multipoint_geojson((e for e in events if e.area_id == area_id), p)
        paths.append(p)
    return paths


def write_speed_segment_maps(
    events: Sequence[Event],
    segments: Iterable[DwellSegment],
    out_dir: str | Path,
    tz_name: str,
) -> list[Path]:
    """Write map-by-speed-<n>-<HHMMSS>-to-<HHMMSS>.json for each dwell segment."""

    d = _ensure_dir(out_dir)
    paths: list[Path] = []
    for seg in segments:
        name = (
            f"map-by-speed-{seg.segment_id}-{clock_string(seg.start_s, tz_name, use_colon=False)}"
            f"-to-{clock_string(seg.end_s, tz_name, use_colon=False)}.json"
        )
        p = d / name
        write_multipoint_geojson(events[seg.start_index : seg.end_index + 1], p)
        paths.append(p)
    return paths


def write_top_cell_maps(
    top: Iterable[TopCell],
    groups: Mapping[str, CellGroup],
    out_dir: str | Path,
) -> list[Path]:
    """Write map-by-cell-top-<rank>.json with all positions logged for each cell."""

    d = _ensure_dir(out_dir)
    paths: list[Path] = []
    for cell in top:
        p = d / f"map-by-cell-top-{cell.rank}.json"
        write_multipoint_geojson(groups[cell.tag].events, p)
        paths.append(p)
    return paths


def write_area_coordinate_files(events: Sequence[Event], area_count: int, out_dir: str | Path) -> list[Path]:
    """Write area-<id>-lon.txt / area-<id>-lat.txt, one value per line.

    These are the plain inputs accepted by web geographic-midpoint calculators.
    """

    d = _ensure_dir(out_dir)
    paths: list[Path] = []
    for area_id in range(1, area_count + 1):
        members = [e for e in events if e.area_id == area_id]
        lon_path = d / f"area-{area_id}-lon.txt"
        lat_path = d / f"area-{area_id}-lat.txt"
        lon_path.write_text("".join(f"{e.longitude}\n" for e in members), encoding="utf-8")
        lat_path.write_text("".join(f"{e.latitude}\n" for e in members), encoding="utf-8")
        paths.extend([lon_path, lat_path])
    return paths


def write_centroid_cdf_csv(report: CentroidReport, out_path: str | Path) -> None:
    """Write the distance CDF of one area ("bound_km,percent")."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["bound_km", "percent"])
        for bound, pct in report.cdf:
            w.writerow([f"{bound:.6f}", f"{pct:.3f}"])


def write_centroid_reports(
    events: Sequence[Event],
    area_count: int,
    out_dir: str | Path,
    method: str,
) -> list[CentroidReport]:
    """Compute and write <method>-area-<id>.csv for every area."""

    d = _ensure_dir(out_dir)
    reports: list[CentroidReport] = []
    for area_id in range(1, area_count + 1):
        report = area_centroid_report(events, area_id, method=method)
        write_centroid_cdf_csv(report, d / f"{method}-area-{area_id}.csv")
        reports.append(report)
        logger.info(
            "区域 %s（%s）：中心=(%.7f, %.7f)，平均偏差=%.4fkm，最大=%.4fkm，最小=%.4fkm",
            area_id,
            method,
            report.center_lat,
            report.center_lon,
            report.mean_km,
            report.max_km,
            report.min_km,
        )
    return reports
