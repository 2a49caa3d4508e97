"""Command-line interface for cell_residence.

Run:
    python -m cell_residence find-areas --csv data.csv --gap-seconds 180
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from cell_residence.csv_io import load_cell_log
from cell_residence.exporters import (
    write_area_coordinate_files,
    write_area_maps,
    write_area_timeline_csv,
    write_centroid_reports,
    write_speed_segment_maps,
    write_speed_timeline_csv,
    write_top_cell_maps,
)
from cell_residence.inspect import inspect_log
from cell_residence.intervals import segment_times
from cell_residence.models import DEFAULT_TZ, EventLog
from cell_residence.ranking import ActivityRanker
from cell_residence.residence import DiscoveryParams, discover_residential_areas, label_events, top_cells
from cell_residence.speed import SpeedParams, segment_by_speed
from cell_residence.timeutils import format_local

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> EventLog:
    log, _ = load_cell_log(args.csv, args.tz, delimiter=args.delimiter, strict=not args.lenient)
    return log


def _cmd_inspect(args: argparse.Namespace) -> int:
    log, summary = load_cell_log(args.csv, args.tz, delimiter=args.delimiter, strict=not args.lenient)
    res = inspect_log(log)

    print("### CSV字段")
    print(", ".join(summary.fieldnames))
    print()

    print("### 行数")
    print(f"total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    print()

    if res.min_time_s is not None and res.max_time_s is not None:
        print("### 时间范围（本地时区）")
        print(f"start={format_local(res.min_time_s, args.tz)}, end={format_local(res.max_time_s, args.tz)}")
        print()

    if res.delta is not None:
        print("### 采样间隔（秒）")
        print(
            f"count={res.delta.count}, min={res.delta.min_s:.3f}, median={res.delta.median_s:.3f}, "
            f"p95={res.delta.p95_s:.3f}, max={res.delta.max_s:.3f}"
        )
        print()

    print("### 经纬度范围（粗略）")
    print(f"lat=[{res.min_lat}, {res.max_lat}], lon=[{res.min_lon}, {res.max_lon}]")
    print()

    print("### 小区")
    print(f"cells={res.cells}, busiest={res.busiest_cell}（{res.busiest_count}次连接）")
    print()

    print("### 重复时间戳")
    print(res.duplicates_time)
    print()

    if args.json:
        import json

        payload = asdict(res) | {
            "rows_total": summary.rows_total,
            "rows_parsed": summary.rows_parsed,
            "rows_skipped": summary.rows_skipped,
            "fieldnames": list(summary.fieldnames),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _cmd_find_areas(args: argparse.Namespace) -> int:
    log = _load(args)
    params = DiscoveryParams(gap_threshold_s=args.gap_seconds, min_stay_s=args.min_stay_seconds)
    found = discover_residential_areas(log.groups, ActivityRanker.from_groups(log.groups.values()), params)
    log.events = label_events(log.events, found.area_by_cell)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    write_area_timeline_csv(log.events, out_dir / "time-vs-area.csv", args.tz)

    print(f"识别到居住区域 {found.area_count} 个")
    for area in found.areas:
        print(
            f"  区域 {area.area_id}: cells={','.join(area.cells)}, "
            f"intervals={len(area.intervals)}, dwell={area.dwell_seconds}s"
        )

    if found.area_count > 0:
        for method in ("gravity", "average"):
            for report in write_centroid_reports(log.events, found.area_count, out_dir, method):
                print(
                    f"  [{method}] 区域 {report.area_id}: 中心=({report.center_lat:.7f}, {report.center_lon:.7f}), "
                    f"平均偏差={report.mean_km:.4f}km, 最大={report.max_km:.4f}km, 最小={report.min_km:.4f}km"
                )
        write_area_maps(log.events, found.area_count, out_dir)
        write_area_coordinate_files(log.events, found.area_count, out_dir)
    print(f"已导出到：{out_dir}")
    return 0


def _cmd_segments(args: argparse.Namespace) -> int:
    log = _load(args)
    segments = segment_times(log.group(args.cell).times, args.gap_seconds)
    print(f"小区 {args.cell}：连接数={log.num_connections(args.cell)}，区间数={len(segments)}")
    for iv in segments:
        print(f"{format_local(iv.start, args.tz)}-to-{format_local(iv.end, args.tz)}")
    return 0


def _cmd_top_cells(args: argparse.Namespace) -> int:
    log = _load(args)
    top = top_cells(log.groups, args.k, args.gap_seconds)
    for cell in top:
        print(f"Top{cell.rank}: {cell.tag}, Num:{cell.count}, 区间数={len(cell.segments)}")
    if args.out_dir:
        paths = write_top_cell_maps(top, log.groups, args.out_dir)
        print(f"已导出 {len(paths)} 个GeoJSON到：{args.out_dir}")
    return 0


def _cmd_speed_segments(args: argparse.Namespace) -> int:
    log = _load(args)
    params = SpeedParams(
        speed_threshold_kmps=args.speed_threshold_kmps,
        distance_upscale=args.distance_upscale,
        min_dwell_s=args.min_dwell_seconds,
    )
    segments = segment_by_speed(log.events, params)
    for seg in segments:
        print(
            f"#{seg.segment_id}: {format_local(seg.start_s, args.tz)} -> {format_local(seg.end_s, args.tz)} "
            f"（{seg.duration_s}s，{seg.points}点）"
        )
    paths = write_speed_segment_maps(log.events, segments, args.out_dir, args.tz)
    print(f"停留段={len(segments)}，已导出 {len(paths)} 个GeoJSON到：{args.out_dir}")
    return 0


def _cmd_speed_timeline(args: argparse.Namespace) -> int:
    log = _load(args)
    n = write_speed_timeline_csv(log.events, args.out, args.tz)
    print(f"已导出：{args.out}（{n}行）")
    return 0


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=str, default="data.csv", help="输入日志路径（时间, 经度, 纬度, 小区）")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help="日志时间所在时区（IANA）")
    p.add_argument("--delimiter", type=str, default=None, help="分隔符；默认按表头自动识别 tab/逗号")
    p.add_argument("--lenient", action="store_true", help="跳过无法解析的行（默认遇错即停止）")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="cell_residence")
    p.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="分析日志的时间范围/采样间隔/小区数量")
    _add_input_args(p_ins)
    p_ins.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    p_ins.set_defaults(func=_cmd_inspect)

    p_fa = sub.add_parser("find-areas", help="按小区活跃度与停留区间识别居住区域")
    _add_input_args(p_fa)
    p_fa.add_argument("--gap-seconds", type=float, default=180.0, help="区间窗口长度（秒）")
    p_fa.add_argument("--min-stay-seconds", type=float, default=3600.0, help="判定为居住小区的最短停留（秒）")
    p_fa.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_fa.set_defaults(func=_cmd_find_areas)

    p_seg = sub.add_parser("segments", help="列出某个小区的停留区间")
    _add_input_args(p_seg)
    p_seg.add_argument("--cell", type=str, required=True, help="小区标识，例如 CELL_133")
    p_seg.add_argument("--gap-seconds", type=float, default=180.0, help="区间窗口长度（秒）")
    p_seg.set_defaults(func=_cmd_segments)

    p_top = sub.add_parser("top-cells", help="列出连接数最多的 k 个小区")
    _add_input_args(p_top)
    p_top.add_argument("--k", type=int, default=10, help="小区个数")
    p_top.add_argument("--gap-seconds", type=float, default=180.0, help="区间窗口长度（秒）")
    p_top.add_argument("--out-dir", type=str, default=None, help="若指定，导出每个小区的GeoJSON")
    p_top.set_defaults(func=_cmd_top_cells)

    p_sp = sub.add_parser("speed-segments", help="按移动速度切分停留段并导出GeoJSON")
    _add_input_args(p_sp)
    p_sp.add_argument(
        "--speed-threshold-kmps",
        type=float,
        default=0.0125,
        help="移动判定速度（km/s），默认 0.0125 = 45km/h",
    )
    p_sp.add_argument("--distance-upscale", type=float, default=1.1, help="直线距离放大系数")
    p_sp.add_argument("--min-dwell-seconds", type=float, default=600.0, help="停留段最短时长（秒）")
    p_sp.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_sp.set_defaults(func=_cmd_speed_segments)

    p_st = sub.add_parser("speed-timeline", help="导出相邻记录间的速度（km/h）")
    _add_input_args(p_st)
    p_st.add_argument("--out", type=str, default="time-vs-speed.csv", help="输出CSV路径")
    p_st.set_defaults(func=_cmd_speed_timeline)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (ValueError, OSError) as exc:
        # PreconditionError is a ValueError
        logger.debug("批处理中止", exc_info=True)
        print(f"错误：{exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
