from __future__ import annotations

from pathlib import Path

import streamlit as st

from cell_residence.centroids import area_centroid_report
from cell_residence.csv_io import load_cell_log
from cell_residence.models import DEFAULT_TZ, EventLog, PreconditionError
from cell_residence.ranking import ActivityRanker
from cell_residence.residence import Discovery, DiscoveryParams, discover_residential_areas, label_events
from cell_residence.speed import SpeedParams, segment_by_speed, speed_series
from cell_residence.timeutils import format_local


def _hhmmss(seconds: float) -> str:
    s = int(round(max(0.0, seconds)))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"


@st.cache_data(show_spinner=False)
def _load_log(csv_path: str, tz_name: str, lenient: bool, mtime: float) -> EventLog:
    _ = mtime  # part of cache key so updated files reload automatically
    log, _ = load_cell_log(csv_path, tz_name, strict=not lenient)
    return log


def _discover(log: EventLog, params: DiscoveryParams) -> tuple[Discovery, EventLog]:
    found = discover_residential_areas(log.groups, ActivityRanker.from_groups(log.groups.values()), params)
    labeled = EventLog(events=label_events(log.events, found.area_by_cell), groups=log.groups)
    return found, labeled


def main() -> None:
    st.set_page_config(page_title="基站日志：居住区域识别", layout="wide")
    st.title("基站日志：按小区停留区间识别居住区域")

    with st.sidebar:
        st.subheader("数据与时区")
        tz_name = st.text_input("时区（IANA）", value=DEFAULT_TZ)
        csv_path = st.text_input("日志路径（时间, 经度, 纬度, 小区）", value="data.csv")
        lenient = st.checkbox("跳过无法解析的行", value=False)

        st.subheader("区域识别参数")
        gap_seconds = st.number_input("区间窗口 gap_seconds", value=180.0, min_value=1.0, step=30.0)
        min_stay_seconds = st.number_input("最短停留 min_stay_seconds", value=3600.0, step=600.0)

        with st.expander("速度切分参数（通常不用改）", expanded=False):
            speed_threshold = st.number_input(
                "移动判定速度 km/s（默认 45km/h）", value=0.0125, step=0.001, format="%.4f"
            )
            upscale = st.number_input("直线距离放大系数", value=1.1, step=0.05)
            min_dwell_seconds = st.number_input("停留段最短时长（秒）", value=600.0, step=60.0)

    p = Path(csv_path)
    if not p.exists():
        st.error(f"找不到文件：{csv_path!r}")
        return

    try:
        log = _load_log(csv_path, tz_name, lenient, p.stat().st_mtime)
        found, labeled = _discover(
            log, DiscoveryParams(gap_threshold_s=float(gap_seconds), min_stay_s=float(min_stay_seconds))
        )
    except (PreconditionError, ValueError) as exc:
        st.exception(exc)
        return

    st.subheader("汇总")
    c1, c2, c3 = st.columns(3)
    c1.metric("记录数", str(len(log.events)))
    c2.metric("小区数", str(len(log.groups)))
    c3.metric("居住区域数", str(found.area_count))

    if found.area_count == 0:
        st.info("没有小区满足停留条件。可以尝试调小 gap_seconds 或 min_stay_seconds。")
    else:
        rows: list[dict[str, object]] = []
        for area in found.areas:
            gravity = area_centroid_report(labeled.events, area.area_id, method="gravity")
            average = area_centroid_report(labeled.events, area.area_id, method="average")
            rows.append(
                {
                    "area_id": area.area_id,
                    "cells": ", ".join(area.cells),
                    "intervals": len(area.intervals),
                    "dwell_hhmmss": _hhmmss(area.dwell_seconds),
                    "points": gravity.points,
                    "gravity_lat": round(gravity.center_lat, 7),
                    "gravity_lon": round(gravity.center_lon, 7),
                    "average_lat": round(average.center_lat, 7),
                    "average_lon": round(average.center_lon, 7),
                    "mean_dev_km": round(gravity.mean_km, 4),
                    "max_dev_km": round(gravity.max_km, 4),
                }
            )
        st.subheader("居住区域")
        st.dataframe(rows, use_container_width=True)

        area_id = st.selectbox("在地图上查看区域", [a.area_id for a in found.areas])
        members = labeled.events_in_area(int(area_id))
        st.map({"lat": [e.latitude for e in members], "lon": [e.longitude for e in members]})

        report = area_centroid_report(labeled.events, int(area_id), method="gravity")
        with st.expander("偏差累积分布（center of gravity）", expanded=False):
            st.line_chart({"bound_km": [b for b, _ in report.cdf], "percent": [pct for _, pct in report.cdf]}, x="bound_km")

    st.subheader("按速度切分的停留段")
    try:
        segments = segment_by_speed(
            labeled.events,
            SpeedParams(
                speed_threshold_kmps=float(speed_threshold),
                distance_upscale=float(upscale),
                min_dwell_s=float(min_dwell_seconds),
            ),
        )
        series = list(speed_series(labeled.events))
    except PreconditionError as exc:
        st.exception(exc)
        return

    st.dataframe(
        [
            {
                "segment_id": s.segment_id,
                "start_time": format_local(s.start_s, tz_name),
                "end_time": format_local(s.end_s, tz_name),
                "duration_hhmmss": _hhmmss(s.duration_s),
                "points": s.points,
            }
            for s in segments
        ],
        use_container_width=True,
        height=360,
    )
    with st.expander("相邻记录速度（km/h）", expanded=False):
        st.line_chart({"speed_kmh": [kmh for _, kmh in series]})

    st.caption("说明：时间按所选时区解析；区域编号按小区活跃度从高到低依次发现，从 1 开始。")


if __name__ == "__main__":
    main()
